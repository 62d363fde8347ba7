import logging
import random
from typing import Optional

from src.domain.Interfaces.recognition_provider import IRecognitionProvider
from src.domain.Models.provider_response import ProviderResponse, RecognizedLine

logger = logging.getLogger(__name__)

DEMO_REGIONS = ["品川", "練馬", "横浜", "千葉", "大阪"]
DEMO_KANA = ["あ", "か", "さ", "た", "な"]


class DemoRecognitionProvider(IRecognitionProvider):
    """
    Implementación demo usada cuando no hay proveedor real configurado.
    Sintetiza una placa plausible pero ficticia; la respuesta queda marcada is_demo.
    """
    name = "demo"
    is_demo = True

    def __init__(self, rng: Optional[random.Random] = None):
        self.rng = rng or random.Random()

    def send(self, image_bytes: bytes) -> ProviderResponse:
        region = self.rng.choice(DEMO_REGIONS)
        classification = str(300 + self.rng.randrange(40))
        kana = self.rng.choice(DEMO_KANA)
        number = str(1000 + self.rng.randrange(9000))

        plate = f"{region} {classification} {kana} {number}"
        logger.info(f"🧪 Modo demo: placa sintética {plate}")

        return ProviderResponse(
            recognized_lines=[RecognizedLine(text=plate)],
            overall_confidence=round(self.rng.uniform(0.0, 1.0), 2),
            is_demo=True,
        )
