"""HTTP service exposing the crack analysis pipeline."""

from __future__ import annotations

import asyncio
import logging
from concurrent.futures import ThreadPoolExecutor
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import APIRouter, FastAPI, File, UploadFile
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from . import __version__
from .config import AnalysisConfig
from .errors import CrackAnalysisError
from .pipeline import CrackAnalyzer
from .schemas import AnalysisResponse, ErrorResponse, HealthResponse

logger = logging.getLogger(__name__)

API_PREFIX = "/api/v1/crack-detection"
SERVICE_NAME = "Crack Detection Service"


def create_app(config: Optional[AnalysisConfig] = None) -> FastAPI:
    """Build the FastAPI application around one shared, read-only config."""

    config = config or AnalysisConfig.from_env()
    analyzer = CrackAnalyzer(config)
    executor = ThreadPoolExecutor(max_workers=config.processing_threads, thread_name_prefix="crack-analysis")

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        logger.info("Starting %s with %d worker threads", SERVICE_NAME, config.processing_threads)
        yield
        logger.info("Shutting down %s", SERVICE_NAME)
        executor.shutdown(wait=True)

    app = FastAPI(
        title=SERVICE_NAME,
        description="Detect and quantify surface cracks in uploaded images",
        version=__version__,
        lifespan=lifespan,
    )
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["GET", "POST", "PUT", "DELETE"],
        allow_headers=["*"],
    )
    app.state.config = config
    app.state.analyzer = analyzer

    router = APIRouter(prefix=API_PREFIX, tags=["Crack Detection"])

    @router.get("/health", response_model=HealthResponse)
    async def health() -> HealthResponse:
        """Check that the service is running."""
        return HealthResponse(status="UP", service=SERVICE_NAME, version=__version__)

    @router.post(
        "/analyze",
        response_model=AnalysisResponse,
        responses={400: {"model": ErrorResponse}, 500: {"model": ErrorResponse}},
    )
    async def analyze_image(image: Optional[UploadFile] = File(None)):
        """Detect cracks in an uploaded image."""

        data = await image.read() if image is not None else b""
        if not data:
            return _error_response(400, ErrorResponse(error="Please upload an image file"))

        logger.info("Processing image: %s", image.filename)
        loop = asyncio.get_running_loop()
        try:
            result = await loop.run_in_executor(executor, analyzer.analyze, data, image.filename)
        except CrackAnalysisError as exc:
            if exc.client_error:
                logger.warning("Rejected %s: %s", image.filename, exc)
                body = ErrorResponse(error=exc.describe(), supported_formats=list(config.supported_formats))
                return _error_response(400, body)
            logger.error("Error processing %s: %s", image.filename, exc)
            return _error_response(500, ErrorResponse(error=exc.describe()))
        return AnalysisResponse.from_result(result)

    app.include_router(router)
    return app


def _error_response(status_code: int, body: ErrorResponse) -> JSONResponse:
    return JSONResponse(status_code=status_code, content=body.model_dump(by_alias=True, exclude_none=True))
