import base64
import binascii
import logging
import re
from contextlib import asynccontextmanager
from datetime import datetime, timezone
from typing import Optional

from fastapi import FastAPI, Query, Request
from fastapi.concurrency import run_in_threadpool
from fastapi.responses import JSONResponse
from prometheus_client import make_asgi_app
from pydantic import BaseModel

from src.core.config import settings
from src.application.recognition_context import RecognitionContext
from src.application.recognition_orchestrator import RecognitionOrchestrator
from src.domain.Interfaces.recognition_provider import IRecognitionProvider
from src.domain.Models.recognition_result import RecognitionResult
from src.domain.exceptions import RecognitionFailedError
from src.infrastructure.Image.image_preprocessor import ImagePreprocessor
from src.infrastructure.OCR.factory import create_recognition_provider

logger = logging.getLogger(__name__)

_DATA_URL_PREFIX = re.compile(r"^data:image/[a-zA-Z0-9.+-]+;base64,")


class Base64ImageRequest(BaseModel):
    image_data: Optional[str] = None


def _error(status: int, message: str) -> JSONResponse:
    return JSONResponse(status_code=status, content={"success": False, "error": message})


def create_app(provider: Optional[IRecognitionProvider] = None) -> FastAPI:

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        context = RecognitionContext.create()
        orchestrator = RecognitionOrchestrator(
            context,
            provider or create_recognition_provider(),
            preprocessor=ImagePreprocessor() if settings.preprocess_enabled else None,
        )
        app.state.context = context
        app.state.orchestrator = orchestrator
        logger.info("🚀 API OCR iniciada.")
        try:
            yield
        finally:
            orchestrator.shutdown()
            context.close()

    app = FastAPI(title=settings.app_name, lifespan=lifespan)
    # métricas Prometheus en el mismo puerto que la API
    app.mount("/metrics", make_asgi_app())

    @app.exception_handler(RecognitionFailedError)
    async def recognition_failed_handler(request: Request, exc: RecognitionFailedError):
        return _error(500, str(exc))

    async def _recognize(request: Request, image_bytes: bytes) -> dict:
        outcome = await run_in_threadpool(request.app.state.orchestrator.recognize, image_bytes)

        if isinstance(outcome, RecognitionResult):
            logger.info(f"Placa detectada: {outcome.plate_number}")
            return {
                "success": True,
                "data": {
                    "plate_number": outcome.plate_number,
                    "confidence": outcome.confidence,
                    "raw_text": outcome.raw_text,
                    "is_demo": outcome.is_demo,
                    "timestamp": datetime.now(timezone.utc).isoformat(),
                },
            }

        return {
            "success": False,
            "message": "no plate detected",
            "reason": outcome.reason,
            "confidence": 0,
        }

    @app.get("/health")
    def health_check(request: Request):
        return {
            "status": "ok",
            "env": settings.app_env,
            "provider": getattr(request.app.state.orchestrator.provider, "name", None),
        }

    @app.post("/ocr/process")
    async def process_image(request: Request):
        content_type = request.headers.get("content-type", "")
        if not content_type.startswith("image/"):
            return _error(415, "only image uploads are accepted")

        image_bytes = await request.body()
        if not image_bytes:
            return _error(400, "image file is required")
        if len(image_bytes) > settings.upload_max_bytes:
            return _error(413, "image too large")

        return await _recognize(request, image_bytes)

    @app.post("/ocr/process-base64")
    async def process_base64(request: Request, payload: Base64ImageRequest):
        if not payload.image_data:
            return _error(400, "image data is required")

        raw = _DATA_URL_PREFIX.sub("", payload.image_data.strip())
        try:
            image_bytes = base64.b64decode(raw, validate=True)
        except (binascii.Error, ValueError):
            return _error(400, "invalid base64 image data")

        if len(image_bytes) > settings.upload_max_bytes:
            return _error(413, "image too large")

        return await _recognize(request, image_bytes)

    @app.get("/ocr/usage")
    def usage_status(request: Request):
        return request.app.state.orchestrator.get_usage_status().to_dict()

    @app.get("/ocr/cost")
    def cost_estimate(request: Request, daily_images: Optional[int] = Query(None, ge=0)):
        return request.app.state.orchestrator.estimate_cost(daily_images).to_dict()

    return app


app = create_app()
