# src/infrastructure/Image/opencv_image_decoder.py
import cv2
import numpy as np

from src.domain.Interfaces.image_decoder import IImageDecoder
from src.domain.Models.image_metadata import ImageMetadata
from src.domain.exceptions import ImageDecodeError


class OpenCVImageDecoder(IImageDecoder):
    """
    Decodifica bytes (JPEG/PNG/...) con OpenCV.
    Devuelve siempre uint8, en gris (HxW) o BGR (HxWx3); el alfa se descarta.
    """

    def decode(self, image_bytes: bytes) -> np.ndarray:
        if not image_bytes:
            raise ImageDecodeError("empty image buffer")

        try:
            buf = np.frombuffer(image_bytes, dtype=np.uint8)
            img = cv2.imdecode(buf, cv2.IMREAD_UNCHANGED)
        except cv2.error as e:
            raise ImageDecodeError(str(e)) from e

        if img is None or img.size == 0:
            raise ImageDecodeError("could not decode image bytes")

        if img.dtype == np.uint16:
            img = (img / 257).astype(np.uint8)

        if img.ndim == 3 and img.shape[2] == 4:
            img = img[:, :, :3]

        return img

    def metadata(self, image_bytes: bytes) -> ImageMetadata:
        img = self.decode(image_bytes)
        h, w = img.shape[:2]

        if img.ndim == 2:
            means = (float(img.mean()),)
        else:
            means = tuple(float(m) for m in img.reshape(-1, img.shape[2]).mean(axis=0))

        return ImageMetadata(width=int(w), height=int(h), channel_means=means)
