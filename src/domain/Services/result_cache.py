# src/domain/Services/result_cache.py
from __future__ import annotations
import hashlib
import logging
import threading
import time
from dataclasses import dataclass
from typing import Callable, Dict, Optional

from src.domain.Interfaces.result_cache import IResultCache
from src.domain.Models.recognition_result import RecognitionResult
from src.core.config import settings

logger = logging.getLogger(__name__)


def compute_image_hash(image_bytes: bytes) -> str:
    """
    Digest determinista de los bytes de la imagen.
    Sólo se usa como clave de cache, no como primitiva de seguridad.
    """
    return hashlib.md5(image_bytes, usedforsecurity=False).hexdigest()


@dataclass
class _CacheEntry:
    """
    Entrada interna de la cache.
    """
    value: RecognitionResult
    inserted_at: float


class ResultCache(IResultCache):
    """
    Cache de resultados OCR direccionada por contenido.

    - una entrada por hash
    - TTL configurable (settings.ocr_cache_ttl, 5 min por defecto)
    - expiración perezosa: sólo se purga dentro de store(), nunca con timer
    - lookup trata una entrada vencida como miss pero no la borra
    """

    def __init__(
        self,
        ttl: Optional[float] = None,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.ttl = ttl if ttl is not None else float(getattr(settings, "ocr_cache_ttl", 300.0))
        self._clock = clock
        self._entries: Dict[str, _CacheEntry] = {}
        self._lock = threading.Lock()

    # ---------------------------------------------------------
    #  API PRINCIPAL
    # ---------------------------------------------------------
    def lookup(self, image_hash: str) -> Optional[RecognitionResult]:
        with self._lock:
            entry = self._entries.get(image_hash)
            if entry is None:
                return None

            if (self._clock() - entry.inserted_at) < self.ttl:
                logger.debug(f"Cache hit {image_hash[:8]}")
                return entry.value

        # vencida: se comporta como miss, la purga queda para el próximo store
        return None

    def store(self, image_hash: str, result: RecognitionResult) -> None:
        with self._lock:
            now = self._clock()
            self._entries[image_hash] = _CacheEntry(value=result, inserted_at=now)
            self._purge(now)

    # ---------------------------------------------------------
    #  HELPERS
    # ---------------------------------------------------------
    def _purge(self, now: float) -> None:
        """Eliminar entradas con edad > TTL (in-place, con lock tomado)."""
        for k, e in list(self._entries.items()):
            if (now - e.inserted_at) > self.ttl:
                self._entries.pop(k, None)

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    # utilidad para tests / apagado: limpiar todo
    def clear(self) -> None:
        with self._lock:
            self._entries.clear()
