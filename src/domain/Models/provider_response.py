from dataclasses import dataclass, field
from typing import Any, List, Optional


@dataclass
class RecognizedLine:
    """
    Una región de texto detectada por el proveedor.
    """
    text: str
    bounding_region: Optional[Any] = None   # lista de puntos [(x, y), ...]
    confidence: Optional[float] = None


@dataclass
class ProviderResponse:
    """
    Respuesta cruda del proveedor de reconocimiento de texto.
    """
    recognized_lines: List[RecognizedLine] = field(default_factory=list)
    overall_confidence: Optional[float] = None   # fracción 0-1 si el proveedor la reporta
    is_demo: bool = False
    # texto completo cuando el proveedor lo entrega aparte de las regiones
    text: Optional[str] = None

    @property
    def full_text(self) -> str:
        if self.text is not None:
            return self.text
        return "\n".join(line.text for line in self.recognized_lines if line.text)

    @property
    def region_count(self) -> int:
        return len(self.recognized_lines)

    @property
    def bounding_regions(self) -> List[Any]:
        return [line.bounding_region for line in self.recognized_lines if line.bounding_region is not None]
