import logging
from src.core.config import settings
from src.domain.Interfaces.recognition_provider import IRecognitionProvider

logger = logging.getLogger(__name__)


def create_recognition_provider() -> IRecognitionProvider:
    provider = (settings.ocr_provider or "").lower()

    if provider == "easyocr":
        from src.infrastructure.OCR.EasyOCR_RecognitionProvider import EasyOCR_RecognitionProvider
        logger.info(f"🔤 Proveedor OCR: EasyOCR ({settings.ocr_langs})")
        return EasyOCR_RecognitionProvider()

    if provider == "google":
        from src.infrastructure.OCR.GoogleVision_RecognitionProvider import GoogleVision_RecognitionProvider
        logger.info("🔤 Proveedor OCR: Google Cloud Vision")
        return GoogleVision_RecognitionProvider()

    if provider and provider != "demo":
        logger.warning(f"⚠️ Proveedor OCR desconocido '{provider}', usando modo demo")
    else:
        logger.info("ℹ️ Sin proveedor OCR configurado, usando modo demo")

    from src.infrastructure.OCR.demo_recognition_provider import DemoRecognitionProvider
    return DemoRecognitionProvider()
