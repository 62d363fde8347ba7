# src/infrastructure/Image/blur_detector.py
import logging
from typing import Optional

import cv2
import numpy as np

from src.domain.Interfaces.image_decoder import IImageDecoder
from src.infrastructure.Image.opencv_image_decoder import OpenCVImageDecoder
from src.core.config import settings

logger = logging.getLogger(__name__)

# Kernel de bordes 3x3: centro +8, vecinos -1
EDGE_KERNEL = np.array(
    [[-1, -1, -1],
     [-1,  8, -1],
     [-1, -1, -1]],
    dtype=np.float32,
)


class BlurDetector:
    """
    Heurística de desenfoque por movimiento: media del valor absoluto de la
    respuesta de bordes sobre toda la imagen. Imágenes planas dan ~0,
    imágenes nítidas tienen mucho contraste local.

    Si algo falla se asume "no borrosa" (fail-open): un error raro de
    decodificación no debe bloquear la captura.
    """

    def __init__(self, decoder: Optional[IImageDecoder] = None, threshold: Optional[float] = None):
        self.decoder = decoder or OpenCVImageDecoder()
        self.threshold = threshold if threshold is not None else settings.blur_threshold

    def edge_strength(self, image_bytes: bytes) -> float:
        img = self.decoder.decode(image_bytes)
        edges = cv2.filter2D(img.astype(np.float32), cv2.CV_32F, EDGE_KERNEL)
        return float(np.abs(edges).mean())

    def is_blurred(self, image_bytes: bytes) -> bool:
        try:
            strength = self.edge_strength(image_bytes)
        except Exception as e:
            logger.warning(f"⚠️ Detección de desenfoque falló, se asume nítida: {e}")
            return False

        logger.debug(f"Edge strength={strength:.2f} (umbral {self.threshold})")
        return strength < self.threshold
