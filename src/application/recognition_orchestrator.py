import logging
import threading
import time
from concurrent.futures import Future
from typing import Optional, Set

from src.monitoring.metrics import (
    recognitions_total, cache_hits_total,
    provider_calls_total, provider_latency, quota_used
)

from src.application.recognition_context import RecognitionContext
from src.domain.Interfaces.recognition_provider import IRecognitionProvider
from src.domain.Models.cost_estimate import CostEstimate
from src.domain.Models.provider_response import ProviderResponse
from src.domain.Models.recognition_result import RecognitionOutcome, RecognitionResult, Rejected
from src.domain.Models.usage_status import UsageStatus
from src.domain.Services.cost_estimator import estimate_monthly_cost
from src.domain.Services.plate_extractor import PlateExtractor
from src.domain.Services.result_cache import compute_image_hash
from src.domain.exceptions import RecognitionFailedError
from src.infrastructure.Image.blur_detector import BlurDetector
from src.infrastructure.Image.image_gatekeeper import ImageGatekeeper
from src.infrastructure.Image.image_preprocessor import ImagePreprocessor
from src.core.config import settings

logger = logging.getLogger(__name__)

TOO_BLURRY = "too blurry"
NO_PLATE_RECOGNIZED = "no plate recognized"
QUOTA_EXHAUSTED = "daily quota exhausted"


class RecognitionOrchestrator:
    """
    Secuencia por imagen (estricta, sin paralelismo interno):
    validación -> desenfoque -> cache -> cuota -> [preproceso] -> proveedor -> extracción

    Validación, desenfoque y hash de cache usan los bytes originales; el
    preprocesador (opcional) sólo transforma lo que se envía al proveedor.

    Invocaciones para imágenes distintas pueden correr en paralelo: el único
    estado compartido es la cache y la cuota del RecognitionContext.

    Cada llamada al proveedor corre en su propio hilo daemon, así el timeout
    empieza a contar cuando arranca la llamada y una llamada colgada no
    retrasa a las siguientes. El uso se registra en ese hilo en cuanto el
    proveedor responde, aunque la respuesta llegue después del timeout.
    """

    def __init__(
        self,
        context: RecognitionContext,
        provider: IRecognitionProvider,
        gatekeeper: Optional[ImageGatekeeper] = None,
        blur_detector: Optional[BlurDetector] = None,
        extractor: Optional[PlateExtractor] = None,
        provider_timeout: Optional[float] = None,
        preprocessor: Optional[ImagePreprocessor] = None,
    ):
        self.context = context
        self.provider = provider
        self.gatekeeper = gatekeeper or ImageGatekeeper()
        self.blur_detector = blur_detector or BlurDetector()
        self.extractor = extractor or PlateExtractor()
        self.preprocessor = preprocessor

        self.provider_timeout = provider_timeout if provider_timeout is not None else settings.ocr_provider_timeout

        self._pending: Set[threading.Thread] = set()
        self._pending_lock = threading.Lock()
        # registro de uso y gauge en una sola sección crítica
        self._usage_lock = threading.Lock()

    # ---------------------------------------------------------
    # API
    # ---------------------------------------------------------
    def recognize(self, image_bytes: bytes) -> RecognitionOutcome:
        # 1) validación previa (fail-closed)
        validation = self.gatekeeper.validate(image_bytes)
        if not validation.valid:
            return self._reject(validation.reason)

        # 2) desenfoque (fail-open)
        if self.blur_detector.is_blurred(image_bytes):
            return self._reject(TOO_BLURRY)

        # 3) cache
        image_hash = compute_image_hash(image_bytes)
        cached = self.context.cache.lookup(image_hash)
        if cached is not None:
            logger.debug(f"Usando resultado OCR en cache ({image_hash[:8]})")
            cache_hits_total.inc()
            recognitions_total.labels(outcome="cached").inc()
            return cached

        # 4) cuota (informativa salvo enforce)
        usage = self.context.quota.check_quota()
        logger.info(f"Cuota OCR: {usage.remaining}/{usage.quota} restantes hoy")
        if self.context.quota.enforce and not self.provider.is_demo and self.context.quota.is_exhausted():
            return self._reject(QUOTA_EXHAUSTED)

        # 5) proveedor (el uso ya quedó registrado al responder)
        if self.preprocessor is not None:
            image_bytes = self.preprocessor.process(image_bytes)
        response = self._call_provider(image_bytes)
        is_demo = self._is_demo(response)

        # 6) extracción
        extraction = self.extractor.extract(
            response.full_text,
            region_count=response.region_count,
            provider_confidence=response.overall_confidence,
        )
        if not extraction.found:
            return self._reject(NO_PLATE_RECOGNIZED)

        result = RecognitionResult(
            plate_number=extraction.plate_number,
            confidence=extraction.confidence,
            raw_text=response.full_text,
            bounding_regions=response.bounding_regions or None,
            is_demo=is_demo,
        )

        if not is_demo:
            self.context.cache.store(image_hash, result)

        logger.info(f"🚗 Placa reconocida: {result.plate_number} ({result.confidence:.0f}%)")
        recognitions_total.labels(outcome="returned").inc()
        return result

    def get_usage_status(self) -> UsageStatus:
        return self.context.quota.check_quota()

    def estimate_cost(self, daily_images: Optional[int] = None) -> CostEstimate:
        if daily_images is None:
            daily_images = settings.cost_assumed_daily_images
        return estimate_monthly_cost(daily_images)

    def shutdown(self, wait: bool = False, timeout: Optional[float] = None) -> None:
        """
        Con wait=True espera a las llamadas al proveedor que siguen en curso,
        p.ej. las que ya superaron su timeout (timeout=None: sin límite).
        """
        with self._pending_lock:
            pending = list(self._pending)
        if not pending:
            return

        if not wait:
            logger.warning(f"⚠️ {len(pending)} llamadas al proveedor siguen en curso al cerrar")
            return

        for thread in pending:
            thread.join(timeout=timeout)

    # ---------------------------------------------------------
    # PROVIDER
    # ---------------------------------------------------------
    def _is_demo(self, response: ProviderResponse) -> bool:
        return response.is_demo or self.provider.is_demo

    def _call_provider(self, image_bytes: bytes) -> ProviderResponse:
        provider_name = getattr(self.provider, "name", "provider")
        provider_calls_total.labels(provider=provider_name).inc()

        future: Future = Future()
        thread = threading.Thread(
            target=self._run_provider,
            args=(image_bytes, future, provider_name),
            name="ocr-provider",
            daemon=True,
        )
        with self._pending_lock:
            self._pending.add(thread)
        thread.start()

        try:
            return future.result(timeout=self.provider_timeout)
        except Exception:
            logger.exception(f"❌ Error en proveedor OCR '{provider_name}'")
            recognitions_total.labels(outcome="failed").inc()
            # sin reintentos: la imagen falla y la causa no se expone
            raise RecognitionFailedError() from None

    def _run_provider(self, image_bytes: bytes, future: Future, provider_name: str) -> None:
        t0 = time.perf_counter()
        try:
            response = self.provider.send(image_bytes)
        except Exception as e:
            future.set_exception(e)
        else:
            # una respuesta real cuenta una vez, llegue o no antes del timeout
            if not self._is_demo(response):
                with self._usage_lock:
                    quota_used.set(self.context.quota.record_usage())
            future.set_result(response)
        finally:
            provider_latency.labels(provider=provider_name).set(time.perf_counter() - t0)
            with self._pending_lock:
                self._pending.discard(threading.current_thread())

    def _reject(self, reason: str) -> Rejected:
        logger.info(f"Imagen descartada: {reason}")
        recognitions_total.labels(outcome="rejected").inc()
        return Rejected(reason=reason)
