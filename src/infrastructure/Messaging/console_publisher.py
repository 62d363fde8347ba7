import json
import logging
import sys
from typing import Optional, Sequence, TextIO

from src.domain.Interfaces.event_publisher import IEventPublisher
from src.domain.Models.recognition_result import RecognitionOutcome

logger = logging.getLogger(__name__)


class ConsolePublisher(IEventPublisher):
    """
    Implementación simple que imprime cada lote de resultados como JSON legible.
    """

    def __init__(self, stream: Optional[TextIO] = None):
        self.stream = stream or sys.stdout

    def publish(self, batch: Sequence[RecognitionOutcome]) -> None:
        output = {
            "size": len(batch),
            "results": [],
        }

        for item in batch:
            if hasattr(item, "to_dict"):
                output["results"].append(item.to_dict())
            else:
                # fallback: si es string u otro tipo
                output["results"].append(str(item))

        print("📢 Publicando lote:", file=self.stream)
        print(json.dumps(output, indent=2, ensure_ascii=False, default=str), file=self.stream)
        logger.debug(f"Lote publicado ({len(batch)} resultados)")
