from dataclasses import dataclass
from typing import Optional, Tuple


@dataclass(frozen=True)
class ImageMetadata:
    """
    Metadatos derivados de decodificar una imagen.
    """
    width: int
    height: int
    channel_means: Tuple[float, ...]   # media de intensidad por canal (0-255)

    @property
    def brightness(self) -> float:
        """Brillo medio: promedio de las medias por canal."""
        if not self.channel_means:
            return 0.0
        return sum(self.channel_means) / len(self.channel_means)


@dataclass(frozen=True)
class ValidationResult:
    valid: bool
    reason: Optional[str] = None
