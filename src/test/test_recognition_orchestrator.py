"""
Tests del orquestador: orden del pipeline, cache, cuota, modo demo y fallos del proveedor.
"""
import random
import threading
from concurrent.futures import ThreadPoolExecutor
import time
from datetime import timedelta

import cv2
import numpy as np
import pytest
from prometheus_client import REGISTRY

from src.application.recognition_orchestrator import (
    RecognitionOrchestrator, TOO_BLURRY, NO_PLATE_RECOGNIZED, QUOTA_EXHAUSTED,
)
from src.domain.Models.recognition_result import RecognitionResult, Rejected
from src.domain.exceptions import ProviderError, RecognitionFailedError, RECOGNITION_FAILED_MESSAGE
from src.domain.Services.quota_tracker import QuotaTracker
from src.infrastructure.Image.blur_detector import BlurDetector
from src.infrastructure.Image.image_gatekeeper import ImageGatekeeper
from src.infrastructure.Image.image_preprocessor import ImagePreprocessor
from src.infrastructure.OCR.demo_recognition_provider import DemoRecognitionProvider
from conftest import FakeProvider, encode_png, flat_image, noise_image


def _orchestrator(context, provider, **kwargs):
    return RecognitionOrchestrator(
        context,
        provider,
        gatekeeper=ImageGatekeeper(min_width=200, min_height=100, min_brightness=30, max_brightness=240),
        blur_detector=BlurDetector(threshold=10),
        provider_timeout=kwargs.pop("provider_timeout", 5.0),
        **kwargs,
    )


@pytest.fixture
def orchestrator(context, provider):
    orch = _orchestrator(context, provider)
    yield orch
    orch.shutdown()


class TestPipeline:

    def test_recognizes_plate(self, orchestrator, provider):
        result = orchestrator.recognize(noise_image())
        assert isinstance(result, RecognitionResult)
        assert result.plate_number == "品川 330 あ 1234"
        assert result.confidence >= 80
        assert result.raw_text == "品川 330\nあ 1234"
        assert len(result.bounding_regions) == 2
        assert result.is_demo is False
        assert provider.calls == 1
        assert orchestrator.get_usage_status().used == 1

    @pytest.mark.parametrize("width,height", [(150, 300), (300, 80)])
    def test_too_small_never_calls_provider(self, orchestrator, provider, width, height):
        outcome = orchestrator.recognize(noise_image(width, height))
        assert outcome == Rejected("too small")
        assert provider.calls == 0
        assert orchestrator.get_usage_status().used == 0

    def test_too_dark(self, orchestrator, provider):
        assert orchestrator.recognize(flat_image(value=5)) == Rejected("too dark")
        assert provider.calls == 0

    def test_blurry_image(self, orchestrator, provider):
        assert orchestrator.recognize(flat_image(value=128)) == Rejected(TOO_BLURRY)
        assert provider.calls == 0
        assert orchestrator.get_usage_status().used == 0

    def test_undecodable_bytes_are_rejected(self, orchestrator, provider):
        outcome = orchestrator.recognize(b"not an image")
        assert isinstance(outcome, Rejected)
        assert provider.calls == 0

    def test_no_plate_is_rejected_not_cached(self, context):
        provider = FakeProvider(lines=["PARKING", "EXIT"])
        orch = _orchestrator(context, provider)
        try:
            image = noise_image()
            assert orch.recognize(image) == Rejected(NO_PLATE_RECOGNIZED)
            assert orch.recognize(image) == Rejected(NO_PLATE_RECOGNIZED)
            # cada intento consume cuota porque el proveedor respondió
            assert provider.calls == 2
            assert orch.get_usage_status().used == 2
            assert len(context.cache) == 0
        finally:
            orch.shutdown()

    def test_empty_provider_response_counts_usage(self, context):
        provider = FakeProvider(lines=[])
        orch = _orchestrator(context, provider)
        try:
            assert orch.recognize(noise_image()) == Rejected(NO_PLATE_RECOGNIZED)
            assert orch.get_usage_status().used == 1
        finally:
            orch.shutdown()


class TestCache:

    def test_identical_bytes_hit_cache(self, orchestrator, provider):
        image = noise_image(seed=7)
        first = orchestrator.recognize(image)
        second = orchestrator.recognize(image)

        assert first == second
        assert provider.calls == 1
        assert orchestrator.get_usage_status().used == 1

    def test_different_images_miss(self, orchestrator, provider):
        orchestrator.recognize(noise_image(seed=1))
        orchestrator.recognize(noise_image(seed=2))
        assert provider.calls == 2

    def test_expired_entry_triggers_new_call(self, orchestrator, provider, clock):
        image = noise_image(seed=7)
        orchestrator.recognize(image)

        clock.advance(301)
        orchestrator.recognize(image)

        assert provider.calls == 2
        assert orchestrator.get_usage_status().used == 2


class TestQuota:

    def test_used_resets_on_new_day(self, orchestrator, day):
        for seed in range(3):
            orchestrator.recognize(noise_image(seed=seed))
        assert orchestrator.get_usage_status().used == 3

        day.today = day.today + timedelta(days=1)
        assert orchestrator.get_usage_status().used == 0

    def test_exhausted_quota_is_informational_by_default(self, context, provider):
        for _ in range(context.quota.quota):
            context.quota.record_usage()
        orch = _orchestrator(context, provider)
        try:
            assert isinstance(orch.recognize(noise_image()), RecognitionResult)
            assert orch.get_usage_status().remaining == 0
        finally:
            orch.shutdown()

    def test_quota_gauge_follows_recorded_usage(self, context, provider):
        for _ in range(5):
            context.quota.record_usage()
        orch = _orchestrator(context, provider)
        try:
            orch.recognize(noise_image(seed=3))
            assert REGISTRY.get_sample_value("ocr_quota_used") == 6
        finally:
            orch.shutdown()

    def test_enforced_quota_rejects(self, context, provider, day):
        context.quota = QuotaTracker(quota=1, enforce=True, today=day)
        orch = _orchestrator(context, provider)
        try:
            assert isinstance(orch.recognize(noise_image(seed=1)), RecognitionResult)
            assert orch.recognize(noise_image(seed=2)) == Rejected(QUOTA_EXHAUSTED)
            assert provider.calls == 1
        finally:
            orch.shutdown()


class TestProviderFailures:

    def test_provider_error_is_translated(self, context):
        provider = FakeProvider(error=ProviderError("401 invalid api key"))
        orch = _orchestrator(context, provider)
        try:
            with pytest.raises(RecognitionFailedError) as excinfo:
                orch.recognize(noise_image())
            assert str(excinfo.value) == RECOGNITION_FAILED_MESSAGE
            assert "api key" not in str(excinfo.value)
            assert excinfo.value.__cause__ is None
            assert orch.get_usage_status().used == 0
        finally:
            orch.shutdown()

    def test_unexpected_exception_is_translated(self, context):
        orch = _orchestrator(context, FakeProvider(error=RuntimeError("boom")))
        try:
            with pytest.raises(RecognitionFailedError):
                orch.recognize(noise_image())
        finally:
            orch.shutdown()

    def test_timeout_is_translated(self, context):
        class SlowProvider(FakeProvider):
            def send(self, image_bytes):
                time.sleep(0.5)
                return super().send(image_bytes)

        orch = _orchestrator(context, SlowProvider(), provider_timeout=0.05)
        try:
            with pytest.raises(RecognitionFailedError):
                orch.recognize(noise_image())
            assert orch.get_usage_status().used == 0
        finally:
            orch.shutdown(wait=True)
        assert orch.get_usage_status().used == 1

    def test_hung_call_does_not_delay_next_call(self, context):
        release = threading.Event()

        class HangsOnceProvider(FakeProvider):
            def send(self, image_bytes):
                first = self.calls == 0
                response = super().send(image_bytes)
                if first:
                    release.wait(5)
                return response

        provider = HangsOnceProvider()
        orch = _orchestrator(context, provider, provider_timeout=0.3)
        try:
            with pytest.raises(RecognitionFailedError):
                orch.recognize(noise_image(seed=1))

            assert isinstance(orch.recognize(noise_image(seed=2)), RecognitionResult)
            assert orch.get_usage_status().used == 1

            # la respuesta tardía también consume cuota, una sola vez
            release.set()
            orch.shutdown(wait=True)
            assert provider.calls == 2
            assert orch.get_usage_status().used == 2
            assert REGISTRY.get_sample_value("ocr_quota_used") == 2
        finally:
            release.set()
            orch.shutdown()

    def test_failure_does_not_affect_next_call(self, context):
        provider = FakeProvider(error=ProviderError("network down"))
        orch = _orchestrator(context, provider)
        try:
            with pytest.raises(RecognitionFailedError):
                orch.recognize(noise_image(seed=1))

            provider.error = None
            assert isinstance(orch.recognize(noise_image(seed=1)), RecognitionResult)
        finally:
            orch.shutdown()


class TestPreprocessing:

    def test_dark_image_is_rejected_before_preprocessing(self, context, provider):
        orch = _orchestrator(context, provider, preprocessor=ImagePreprocessor())
        try:
            # ruido 0-39: el normalizado min-max lo llevaría a brillo medio
            rng = np.random.default_rng(3)
            dark = encode_png(rng.integers(0, 40, size=(200, 300, 3), dtype=np.uint8))
            assert orch.recognize(dark) == Rejected("too dark")
            assert provider.calls == 0
        finally:
            orch.shutdown()

    def test_provider_receives_preprocessed_bytes(self, context):
        class RecordingProvider(FakeProvider):
            def send(self, image_bytes):
                self.received = image_bytes
                return super().send(image_bytes)

        provider = RecordingProvider()
        orch = _orchestrator(context, provider, preprocessor=ImagePreprocessor())
        try:
            image = noise_image(seed=4)
            assert isinstance(orch.recognize(image), RecognitionResult)
            assert provider.received != image
            assert cv2.imdecode(np.frombuffer(provider.received, np.uint8), cv2.IMREAD_UNCHANGED).ndim == 2

            # la cache se indexa por los bytes originales
            orch.recognize(image)
            assert provider.calls == 1
        finally:
            orch.shutdown()


class TestDemoProvider:

    def test_demo_result_is_flagged_and_free(self, context):
        orch = _orchestrator(context, DemoRecognitionProvider(rng=random.Random(42)))
        try:
            result = orch.recognize(noise_image())
            assert isinstance(result, RecognitionResult)
            assert result.is_demo is True
            assert result.confidence >= 80
            assert orch.get_usage_status().used == 0
            assert len(context.cache) == 0
        finally:
            orch.shutdown()


def test_estimate_cost(orchestrator):
    assert orchestrator.estimate_cost(33).estimated_cost == 0
    assert orchestrator.estimate_cost(100).paid_images == 2000


def test_concurrent_distinct_images(context, provider):
    images = [noise_image(seed=s) for s in range(8)]
    orch = _orchestrator(context, provider)
    try:
        with ThreadPoolExecutor(max_workers=4) as pool:
            results = list(pool.map(orch.recognize, images))
    finally:
        orch.shutdown()

    assert all(isinstance(r, RecognitionResult) for r in results)
    assert orch.get_usage_status().used == 8
    assert REGISTRY.get_sample_value("ocr_quota_used") == 8
    assert len(context.cache) == 8
