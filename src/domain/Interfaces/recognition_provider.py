from abc import ABC, abstractmethod
from src.domain.Models.provider_response import ProviderResponse


class IRecognitionProvider(ABC):
    """
    Capacidad externa de reconocimiento de texto sobre una imagen completa.
    """
    name: str = "provider"
    is_demo: bool = False

    @abstractmethod
    def send(self, image_bytes: bytes) -> ProviderResponse:
        """
        Envía la imagen al proveedor y devuelve las líneas reconocidas.
        Lanza ProviderError si falla (red, auth, cuota).
        """
        pass
