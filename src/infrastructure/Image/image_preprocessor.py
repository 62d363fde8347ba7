# src/infrastructure/Image/image_preprocessor.py
import logging
from typing import Optional

import cv2
import numpy as np

from src.domain.Interfaces.image_decoder import IImageDecoder
from src.infrastructure.Image.opencv_image_decoder import OpenCVImageDecoder
from src.core.config import settings

logger = logging.getLogger(__name__)

SHARPEN_KERNEL = np.array(
    [[0, -1, 0],
     [-1, 5, -1],
     [0, -1, 0]],
    dtype=np.float32,
)


class ImagePreprocessor:
    """
    Preprocesado previo al OCR (mejora la precisión del proveedor):
    - redimensiona para caber en max_width x max_height, sin ampliar
    - escala de grises
    - normaliza el rango de intensidades (min-max)
    - enfoca
    Devuelve PNG. Si la imagen no se puede procesar se devuelven los bytes
    originales y el proveedor decide.
    """

    def __init__(
        self,
        decoder: Optional[IImageDecoder] = None,
        max_width: Optional[int] = None,
        max_height: Optional[int] = None,
    ):
        self.decoder = decoder or OpenCVImageDecoder()
        self.max_width = max_width or settings.preprocess_max_width
        self.max_height = max_height or settings.preprocess_max_height

    def process(self, image_bytes: bytes) -> bytes:
        try:
            img = self.decoder.decode(image_bytes)
        except Exception as e:
            logger.warning(f"⚠️ Preprocesado omitido, imagen no decodificable: {e}")
            return image_bytes

        h, w = img.shape[:2]
        scale = min(self.max_width / w, self.max_height / h, 1.0)
        if scale < 1.0:
            img = cv2.resize(img, (max(1, int(w * scale)), max(1, int(h * scale))), interpolation=cv2.INTER_AREA)

        gray = cv2.cvtColor(img, cv2.COLOR_BGR2GRAY) if img.ndim == 3 else img
        normalized = cv2.normalize(gray, None, 0, 255, cv2.NORM_MINMAX)
        sharpened = cv2.filter2D(normalized, -1, SHARPEN_KERNEL)

        ok, buf = cv2.imencode(".png", sharpened)
        if not ok:
            logger.warning("⚠️ No se pudo codificar la imagen preprocesada, usando original")
            return image_bytes

        return buf.tobytes()
