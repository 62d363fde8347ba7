# src/domain/Services/cost_estimator.py
import math
from typing import Optional

from src.domain.Models.cost_estimate import CostEstimate, Savings
from src.core.config import settings

DAYS_PER_MONTH = 30

# Reducciones supuestas del volumen mensual
DEDUP_REDUCTION = 0.30       # cache de duplicados
VALIDATION_REDUCTION = 0.10  # imágenes descartadas por validación previa
BATCH_REDUCTION = 0.05       # eficiencia por lotes


def _round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def calculate_savings(
    monthly_images: int,
    free_quota: int,
    price_per_image: float,
) -> Savings:
    """
    Ahorro optimista: sólo la parte de la reducción que excede el tramo
    gratuito se convierte en dinero ahorrado.
    """
    total_reduction = monthly_images * (DEDUP_REDUCTION + VALIDATION_REDUCTION + BATCH_REDUCTION)
    saved = max(0.0, total_reduction - free_quota) * price_per_image
    percentage = (total_reduction / monthly_images) * 100 if monthly_images else 0.0

    return Savings(
        reduced_images=_round_half_up(total_reduction),
        saved_amount=_round_half_up(saved),
        reduction_percentage=_round_half_up(percentage),
    )


def estimate_monthly_cost(
    daily_images: int,
    free_quota: Optional[int] = None,
    price_per_image: Optional[float] = None,
    currency: Optional[str] = None,
) -> CostEstimate:
    """
    Estimación de coste mensual del proveedor OCR para un volumen diario supuesto.
    Función pura de reporte: no participa en el reconocimiento.
    """
    if daily_images < 0:
        raise ValueError("daily_images must be >= 0")

    free_quota = free_quota if free_quota is not None else settings.cost_free_quota
    price_per_image = price_per_image if price_per_image is not None else settings.cost_price_per_image
    currency = currency or settings.cost_currency

    monthly_images = daily_images * DAYS_PER_MONTH
    savings = calculate_savings(monthly_images, free_quota, price_per_image)

    if monthly_images <= free_quota:
        return CostEstimate(
            total_images=monthly_images,
            free_images=monthly_images,
            paid_images=0,
            estimated_cost=0,
            currency=currency,
            savings=savings,
        )

    paid_images = monthly_images - free_quota
    return CostEstimate(
        total_images=monthly_images,
        free_images=free_quota,
        paid_images=paid_images,
        estimated_cost=_round_half_up(paid_images * price_per_image),
        currency=currency,
        savings=savings,
    )
