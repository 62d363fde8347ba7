# src/domain/exceptions.py

RECOGNITION_FAILED_MESSAGE = "recognition failed"


class ProviderError(Exception):
    """
    Fallo del proveedor externo de OCR (red, autenticación, cuota del proveedor...).
    """


class ImageDecodeError(Exception):
    """Los bytes no se pudieron decodificar como imagen."""


class RecognitionFailedError(Exception):
    """
    Único error "duro" expuesto por el orquestador.
    Oculta la causa original del proveedor tras un mensaje estable.
    """

    def __init__(self, message: str = RECOGNITION_FAILED_MESSAGE):
        super().__init__(message)
