# src/infrastructure/Image/image_gatekeeper.py
import logging
from typing import Optional

from src.domain.Interfaces.image_decoder import IImageDecoder
from src.domain.Models.image_metadata import ImageMetadata, ValidationResult
from src.infrastructure.Image.opencv_image_decoder import OpenCVImageDecoder
from src.core.config import settings

logger = logging.getLogger(__name__)

TOO_SMALL = "too small"
TOO_DARK = "too dark"
TOO_BRIGHT = "too bright"
VALIDATION_FAILED = "image validation failed"


class ImageGatekeeper:
    """
    Validación local previa: descarta imágenes que con seguridad no
    contienen texto legible, antes de gastar una llamada al proveedor.

    - ancho < 200 o alto < 100 -> "too small"
    - brillo medio < 30 -> "too dark", > 240 -> "too bright"
    - si no se puede decodificar -> inválida (fail-closed)
    """

    def __init__(
        self,
        decoder: Optional[IImageDecoder] = None,
        min_width: Optional[int] = None,
        min_height: Optional[int] = None,
        min_brightness: Optional[float] = None,
        max_brightness: Optional[float] = None,
    ):
        self.decoder = decoder or OpenCVImageDecoder()
        self.min_width = min_width if min_width is not None else settings.image_min_width
        self.min_height = min_height if min_height is not None else settings.image_min_height
        self.min_brightness = min_brightness if min_brightness is not None else settings.image_min_brightness
        self.max_brightness = max_brightness if max_brightness is not None else settings.image_max_brightness

    def validate(self, image_bytes: bytes) -> ValidationResult:
        try:
            meta = self.decoder.metadata(image_bytes)
        except Exception as e:
            logger.warning(f"⚠️ No se pudieron leer metadatos de la imagen: {e}")
            return ValidationResult(valid=False, reason=VALIDATION_FAILED)

        return self.check(meta)

    def check(self, meta: ImageMetadata) -> ValidationResult:
        if meta.width < self.min_width or meta.height < self.min_height:
            return ValidationResult(valid=False, reason=TOO_SMALL)

        brightness = meta.brightness
        if brightness < self.min_brightness:
            return ValidationResult(valid=False, reason=TOO_DARK)
        if brightness > self.max_brightness:
            return ValidationResult(valid=False, reason=TOO_BRIGHT)

        return ValidationResult(valid=True)
