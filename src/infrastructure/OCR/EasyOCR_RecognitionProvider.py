import logging
import time
from typing import List, Optional

import easyocr

from src.domain.Interfaces.image_decoder import IImageDecoder
from src.domain.Interfaces.recognition_provider import IRecognitionProvider
from src.domain.Models.provider_response import ProviderResponse, RecognizedLine
from src.domain.exceptions import ProviderError
from src.infrastructure.Image.opencv_image_decoder import OpenCVImageDecoder
from src.core.config import settings

logger = logging.getLogger(__name__)


class EasyOCR_RecognitionProvider(IRecognitionProvider):
    """
    Proveedor de reconocimiento usando EasyOCR sobre la imagen completa:
    - una RecognizedLine por cada región detectada
    - confianza global = media de las confianzas por región (0-1)
    """
    name = "easyocr"

    def __init__(
        self,
        langs: Optional[List[str]] = None,
        gpu: Optional[bool] = None,
        decoder: Optional[IImageDecoder] = None,
        reader=None,
    ):
        self.langs = langs or settings.ocr_lang_list
        self.gpu = settings.ocr_gpu if gpu is None else gpu
        self.decoder = decoder or OpenCVImageDecoder()
        # el Reader carga modelos pesados: se crea una sola vez
        self.reader = reader or easyocr.Reader(self.langs, gpu=self.gpu)

    def send(self, image_bytes: bytes) -> ProviderResponse:
        try:
            img = self.decoder.decode(image_bytes)
            t0 = time.perf_counter()
            results = self.reader.readtext(img)
            logger.debug(f"EasyOCR: {len(results)} regiones en {time.perf_counter() - t0:.3f}s")
        except Exception as e:
            raise ProviderError(f"easyocr failed: {e}") from e

        lines = []
        for bbox, text, confidence in results:
            lines.append(RecognizedLine(
                text=str(text).strip(),
                bounding_region=[(int(x), int(y)) for x, y in bbox],
                confidence=float(confidence),
            ))

        confidences = [line.confidence for line in lines if line.confidence is not None]
        overall = sum(confidences) / len(confidences) if confidences else None

        return ProviderResponse(recognized_lines=lines, overall_confidence=overall)
