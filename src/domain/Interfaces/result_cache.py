# src/domain/Interfaces/result_cache.py
from typing import Protocol, Optional
from src.domain.Models.recognition_result import RecognitionResult


class IResultCache(Protocol):
    """
    Contrato de memoización de resultados por hash de imagen.

    lookup nunca devuelve una entrada más vieja que el TTL, aunque siga
    físicamente guardada hasta el siguiente store.
    """
    def lookup(self, image_hash: str) -> Optional[RecognitionResult]:
        ...

    def store(self, image_hash: str, result: RecognitionResult) -> None:
        ...
