import logging
from dataclasses import dataclass

from src.domain.Services.result_cache import ResultCache
from src.domain.Services.quota_tracker import QuotaTracker
from src.core.config import settings

logger = logging.getLogger(__name__)


@dataclass
class RecognitionContext:
    """
    Estado compartido del servicio: una única cache de resultados y un único
    contador de cuota durante toda la vida del proceso.
    Se crea al arrancar (lifespan de FastAPI o main del worker), se pasa por
    referencia al orquestador y se cierra al apagar.
    """
    cache: ResultCache
    quota: QuotaTracker

    @classmethod
    def create(cls) -> "RecognitionContext":
        ctx = cls(
            cache=ResultCache(ttl=settings.ocr_cache_ttl),
            quota=QuotaTracker(quota=settings.ocr_daily_quota, enforce=settings.ocr_quota_enforce),
        )
        logger.info(
            f"🧠 Contexto OCR creado (ttl={ctx.cache.ttl}s, cuota diaria={ctx.quota.quota}, "
            f"enforce={ctx.quota.enforce})"
        )
        return ctx

    def close(self) -> None:
        self.cache.clear()
        logger.info("🧹 Contexto OCR cerrado")
