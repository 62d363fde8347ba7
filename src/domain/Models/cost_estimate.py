from dataclasses import dataclass, asdict


@dataclass(frozen=True)
class Savings:
    reduced_images: int
    saved_amount: int
    reduction_percentage: int


@dataclass(frozen=True)
class CostEstimate:
    """
    Estimación mensual de coste del proveedor OCR para un volumen diario supuesto.
    """
    total_images: int
    free_images: int
    paid_images: int
    estimated_cost: int
    currency: str
    savings: Savings

    def to_dict(self) -> dict:
        return asdict(self)
