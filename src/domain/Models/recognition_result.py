# src/domain/Models/recognition_result.py
from dataclasses import dataclass
from typing import Any, List, Optional, Union


@dataclass(frozen=True)
class RecognitionResult:
    """
    Resultado de reconocer una placa en una imagen.
    """
    plate_number: str          # placa reconstruida, p.ej. "品川 330 あ 1234"
    confidence: float          # 0-100
    raw_text: str              # texto completo devuelto por el proveedor
    bounding_regions: Optional[List[Any]] = None
    is_demo: bool = False      # True si lo sintetizó el proveedor demo

    def to_dict(self) -> dict:
        """Convierte a dict serializable."""
        return {
            "plate_number": self.plate_number,
            "confidence": self.confidence,
            "raw_text": self.raw_text,
            "bounding_regions": self.bounding_regions,
            "is_demo": self.is_demo,
        }


@dataclass(frozen=True)
class Rejected:
    """
    Resultado "sin placa": la imagen no pasó la validación o no se extrajo nada.
    No es un error.
    """
    reason: str

    def to_dict(self) -> dict:
        return {"rejected": True, "reason": self.reason}


RecognitionOutcome = Union[RecognitionResult, Rejected]
