import base64
import json
import logging
import time
from typing import Optional

from google.cloud import vision

from src.domain.Interfaces.recognition_provider import IRecognitionProvider
from src.domain.Models.provider_response import ProviderResponse, RecognizedLine
from src.domain.exceptions import ProviderError
from src.core.config import settings

logger = logging.getLogger(__name__)


def _build_client(credentials_base64: Optional[str]) -> vision.ImageAnnotatorClient:
    if not credentials_base64:
        return vision.ImageAnnotatorClient()

    info = json.loads(base64.b64decode(credentials_base64).decode("utf-8"))
    return vision.ImageAnnotatorClient.from_service_account_info(info)


class GoogleVision_RecognitionProvider(IRecognitionProvider):
    """
    Proveedor de reconocimiento con Google Cloud Vision (text_detection).

    text_annotations[0] trae el texto completo de la imagen; el resto son
    las palabras detectadas, cada una con su bounding_poly.
    """
    name = "google"

    def __init__(self, client=None, credentials_base64: Optional[str] = None):
        if client is None:
            client = _build_client(credentials_base64 or settings.google_credentials_base64)
        self.client = client

    def send(self, image_bytes: bytes) -> ProviderResponse:
        try:
            t0 = time.perf_counter()
            response = self.client.text_detection(image=vision.Image(content=image_bytes))
            logger.debug(f"Google Vision respondió en {time.perf_counter() - t0:.3f}s")
        except Exception as e:
            raise ProviderError(f"google vision failed: {e}") from e

        if response.error.message:
            raise ProviderError(f"google vision error: {response.error.message}")

        annotations = list(response.text_annotations)
        if not annotations:
            return ProviderResponse()

        full = annotations[0]
        lines = [
            RecognizedLine(
                text=a.description.strip(),
                bounding_region=[(int(v.x), int(v.y)) for v in a.bounding_poly.vertices],
            )
            for a in annotations[1:]
        ]

        # confidence suele venir a 0 en text_detection: 0 -> no reportada
        overall = float(getattr(full, "confidence", 0.0) or 0.0) or None

        return ProviderResponse(
            recognized_lines=lines,
            overall_confidence=overall,
            text=full.description,
        )
