from typing import Protocol
import numpy as np
from src.domain.Models.image_metadata import ImageMetadata


class IImageDecoder(Protocol):
    """
    Decodifica bytes a píxeles. Lanza ImageDecodeError si no es una imagen válida.
    """
    def decode(self, image_bytes: bytes) -> np.ndarray: ...

    def metadata(self, image_bytes: bytes) -> ImageMetadata: ...
