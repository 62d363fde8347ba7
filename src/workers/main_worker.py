import warnings
warnings.filterwarnings("ignore")

import argparse
import logging
from pathlib import Path

from src.core.config import settings
from src.application.recognition_context import RecognitionContext
from src.application.recognition_orchestrator import RecognitionOrchestrator
from src.domain.Models.recognition_result import Rejected
from src.domain.exceptions import RecognitionFailedError
from src.infrastructure.Image.image_preprocessor import ImagePreprocessor
from src.infrastructure.Messaging.console_publisher import ConsolePublisher
from src.infrastructure.OCR.factory import create_recognition_provider
from src.monitoring.metrics import start_metrics_server
from src.utils.batch_queue import BatchQueue

logging.basicConfig(
    level=settings.log_level.upper(),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s"
)
logger = logging.getLogger(__name__)


def parse_args(argv=None):
    parser = argparse.ArgumentParser(description="Reconocimiento de placas sobre imágenes en disco")
    parser.add_argument("images", nargs="+", help="Rutas de las imágenes")
    parser.add_argument("--batch-size", type=int, default=settings.batch_max_size,
                        help="Resultados por lote publicado")
    parser.add_argument("--no-preprocess", action="store_true", help="No preprocesar antes del OCR")
    return parser.parse_args(argv)


def run(paths, orchestrator, publisher, batch_size: int) -> int:
    """
    Reconoce cada imagen, agrupa los resultados en lotes y los publica.
    Devuelve cuántas imágenes terminaron en fallo del proveedor.
    """
    queue = BatchQueue(max_size=batch_size)
    failures = 0

    for path in paths:
        try:
            data = Path(path).read_bytes()
        except OSError:
            logger.exception(f"No se pudo leer {path}")
            failures += 1
            continue

        try:
            outcome = orchestrator.recognize(data)
        except RecognitionFailedError as e:
            logger.error(f"❌ {path}: {e}")
            outcome = Rejected(reason=str(e))
            failures += 1

        batch = queue.add(outcome)
        if batch:
            publisher.publish(batch)

    rest = queue.flush()
    if rest:
        publisher.publish(rest)

    return failures


def main(argv=None) -> int:
    args = parse_args(argv)

    # PROMETHEUS_PORT=0 desactiva el servidor de métricas
    if settings.prometheus_port:
        start_metrics_server(port=settings.prometheus_port)

    context = RecognitionContext.create()
    preprocessor = None if args.no_preprocess or not settings.preprocess_enabled else ImagePreprocessor()
    orchestrator = RecognitionOrchestrator(context, create_recognition_provider(), preprocessor=preprocessor)

    logger.info(f"🚀 Procesando {len(args.images)} imágenes…")
    try:
        failures = run(args.images, orchestrator, ConsolePublisher(), args.batch_size)

        usage = orchestrator.get_usage_status()
        logger.info(f"📊 Cuota: {usage.used}/{usage.quota} usadas, {usage.remaining} restantes")

        cost = orchestrator.estimate_cost()
        logger.info(
            f"💴 Coste mensual estimado ({settings.cost_assumed_daily_images}/día): "
            f"{cost.estimated_cost} {cost.currency}"
        )
    finally:
        orchestrator.shutdown()
        context.close()

    return 1 if failures else 0


if __name__ == "__main__":
    raise SystemExit(main())
