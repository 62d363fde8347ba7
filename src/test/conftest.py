# src/test/conftest.py
from datetime import date

import cv2
import numpy as np
import pytest

from src.application.recognition_context import RecognitionContext
from src.domain.Interfaces.recognition_provider import IRecognitionProvider
from src.domain.Models.provider_response import ProviderResponse, RecognizedLine
from src.domain.Services.quota_tracker import QuotaTracker
from src.domain.Services.result_cache import ResultCache


def encode_png(img: np.ndarray) -> bytes:
    ok, buf = cv2.imencode(".png", img)
    assert ok
    return buf.tobytes()


def noise_image(width: int = 300, height: int = 200, seed: int = 0) -> bytes:
    """Imagen nítida (ruido uniforme), brillo medio ~127."""
    rng = np.random.default_rng(seed)
    return encode_png(rng.integers(0, 256, size=(height, width, 3), dtype=np.uint8))


def flat_image(width: int = 300, height: int = 200, value: int = 128) -> bytes:
    """Imagen de intensidad constante (borrosa por definición)."""
    return encode_png(np.full((height, width, 3), value, dtype=np.uint8))


class FakeClock:
    def __init__(self, now: float = 1000.0):
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class FakeDay:
    def __init__(self, today: date = date(2026, 10, 19)):
        self.today = today

    def __call__(self) -> date:
        return self.today


class FakeProvider(IRecognitionProvider):
    name = "fake"

    def __init__(self, lines=None, overall_confidence=None, error=None):
        self.lines = lines if lines is not None else ["品川 330", "あ 1234"]
        self.overall_confidence = overall_confidence
        self.error = error
        self.calls = 0

    def send(self, image_bytes: bytes) -> ProviderResponse:
        self.calls += 1
        if self.error is not None:
            raise self.error
        return ProviderResponse(
            recognized_lines=[RecognizedLine(text=t, bounding_region=[(0, 0), (10, 0), (10, 10), (0, 10)]) for t in self.lines],
            overall_confidence=self.overall_confidence,
        )


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def day():
    return FakeDay()


@pytest.fixture
def context(clock, day):
    return RecognitionContext(
        cache=ResultCache(ttl=300.0, clock=clock),
        quota=QuotaTracker(quota=33, enforce=False, today=day),
    )


@pytest.fixture
def provider():
    return FakeProvider()
