import logging
from prometheus_client import Gauge, Counter, start_http_server

logger = logging.getLogger(__name__)

# Resultados de reconocimiento por desenlace (returned / cached / rejected / failed)
recognitions_total = Counter(
    "ocr_recognitions_total",
    "Total de reconocimientos por resultado",
    ["outcome"]
)

# Aciertos de cache
cache_hits_total = Counter(
    "ocr_cache_hits_total",
    "Total de reconocimientos servidos desde cache"
)

# Llamadas al proveedor
provider_calls_total = Counter(
    "ocr_provider_calls_total",
    "Total de llamadas al proveedor OCR",
    ["provider"]
)

# Latencia proveedor
provider_latency = Gauge(
    "ocr_provider_latency_seconds",
    "Tiempo de la última llamada al proveedor OCR",
    ["provider"]
)

# Cuota usada hoy
quota_used = Gauge(
    "ocr_quota_used",
    "Llamadas al proveedor consumidas en el día"
)


def start_metrics_server(port: int = 9100):
    """Arranca servidor de métricas Prometheus."""
    start_http_server(port)
    logger.info(f"📊 Prometheus metrics disponible en :{port}")
