from abc import ABC, abstractmethod
from typing import Sequence
from src.domain.Models.recognition_result import RecognitionOutcome


class IEventPublisher(ABC):
    """
    Publicador de lotes de resultados hacia sistemas externos (ej. consola).
    """
    @abstractmethod
    def publish(self, batch: Sequence[RecognitionOutcome]) -> None:
        """Publica un lote de resultados de reconocimiento."""
        pass
