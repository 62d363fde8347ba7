from dataclasses import dataclass
from typing import Optional

NO_PLATE_FOUND = "no plate found"


@dataclass(frozen=True)
class PlateCandidate:
    """
    Descomposición de una placa japonesa: 地名 分類番号 ひらがな 一連番号.
    region/class_code quedan en None cuando viene del patrón flexible.
    """
    kana: str
    serial: str
    region: Optional[str] = None
    class_code: Optional[str] = None

    @property
    def plate_number(self) -> str:
        parts = [self.region, self.class_code, self.kana, self.serial]
        return " ".join(p for p in parts if p)


@dataclass(frozen=True)
class PlateExtraction:
    """
    Resultado del extractor: placa (o None) + confianza.
    """
    plate_number: Optional[str]
    confidence: float = 0.0
    candidate: Optional[PlateCandidate] = None

    @property
    def found(self) -> bool:
        return self.plate_number is not None

    def __str__(self) -> str:
        return self.plate_number if self.plate_number is not None else NO_PLATE_FOUND
