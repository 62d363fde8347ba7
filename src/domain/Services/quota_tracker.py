# src/domain/Services/quota_tracker.py
from __future__ import annotations
import logging
import threading
from datetime import date
from typing import Callable, Optional

from src.domain.Models.usage_status import UsageStatus
from src.core.config import settings

logger = logging.getLogger(__name__)


class QuotaTracker:
    """
    Contador diario de llamadas al proveedor OCR.

    El reinicio por cambio de día se detecta al leer o al registrar,
    comparando el día actual con el último día de reinicio; no hay scheduler.
    Con enforce=False (por defecto) sólo informa: no bloquea llamadas.
    """

    def __init__(
        self,
        quota: Optional[int] = None,
        enforce: Optional[bool] = None,
        today: Callable[[], date] = date.today,
    ):
        self.quota = quota if quota is not None else int(getattr(settings, "ocr_daily_quota", 33))
        self.enforce = enforce if enforce is not None else bool(getattr(settings, "ocr_quota_enforce", False))
        self._today = today

        self._daily_count = 0
        self._last_reset_day = today()
        self._lock = threading.Lock()

    def _rollover(self) -> None:
        # llamar con el lock tomado
        current = self._today()
        if current != self._last_reset_day:
            logger.info(f"📅 Nuevo día {current.isoformat()}, reiniciando cuota ({self._daily_count} usadas ayer)")
            self._daily_count = 0
            self._last_reset_day = current

    def check_quota(self) -> UsageStatus:
        with self._lock:
            self._rollover()
            return UsageStatus(
                remaining=max(0, self.quota - self._daily_count),
                used=self._daily_count,
                quota=self.quota,
            )

    def record_usage(self) -> int:
        """Registra exactamente una llamada real al proveedor y devuelve el total del día."""
        with self._lock:
            self._rollover()
            self._daily_count += 1
            return self._daily_count

    def is_exhausted(self) -> bool:
        return self.check_quota().remaining <= 0
