"""
Listing Video HTTP Server

FastAPI shell around the JobOrchestrator:
- POST /generate-video - Validate, compose and submit a render
- POST /check-video-status - Fresh normalized status for a job
- GET /health - Health check with circuit breaker and config status

Errors are returned as {error, details?}: 400 for bad input, 500 for
missing configuration, 502 when the provider rejects or cannot be read.

Usage:
    python -m uvicorn services.orchestrator.server:app --host 0.0.0.0 --port 8765

    # Or via main.py
    python main.py server
"""

import logging
from contextlib import asynccontextmanager
from datetime import datetime
from typing import Any, Optional

from fastapi import Depends, FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from pydantic import BaseModel

from core.circuit_breaker import CircuitBreaker
from core.config import get_config
from core.errors import ListingVideoError
from services.video_generation.models import Provider

from .jobs import JobOrchestrator

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup and shutdown events."""
    logger.info("Starting listing video server...")
    for issue in get_config().validate():
        logger.warning(f"Config issue: {issue}")

    app.state.orchestrator = JobOrchestrator()

    yield

    logger.info("Shutting down listing video server...")
    await app.state.orchestrator.close()


app = FastAPI(
    title="Listing Video API",
    description="Vertical property walkthrough videos from listing photos",
    version="1.0.0",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_methods=["POST", "OPTIONS"],
    allow_headers=["authorization", "x-client-info", "apikey", "content-type"],
)


# Request Models
class PropertyFactsBody(BaseModel):
    """Property facts as sent by clients. Checked by the domain model."""
    address: Optional[str] = None
    price: Any = None
    bedCount: Any = None
    bathCount: Any = None
    description: Optional[str] = None


class StyleOptionsBody(BaseModel):
    style: Optional[str] = None
    voice: Optional[str] = None
    music: Optional[str] = None


class GenerateVideoBody(BaseModel):
    """Request to generate a listing video."""
    images: list[Any] = []
    propertyFacts: Optional[PropertyFactsBody] = None
    styleOptions: Optional[StyleOptionsBody] = None
    provider: Optional[str] = None


class CheckStatusBody(BaseModel):
    """Request for a job's current status."""
    jobId: Optional[str] = None
    provider: str = Provider.SHOTSTACK.value


def get_orchestrator(request: Request) -> JobOrchestrator:
    return request.app.state.orchestrator


@app.exception_handler(ListingVideoError)
async def listing_video_error_handler(request: Request, exc: ListingVideoError):
    log = logger.warning if exc.http_status < 500 else logger.error
    log(f"{type(exc).__name__} [{exc.error_code}] on {request.url.path}: {exc.message}")
    return JSONResponse(status_code=exc.http_status, content=exc.to_response())


@app.exception_handler(RequestValidationError)
async def request_validation_error_handler(request: Request, exc: RequestValidationError):
    return JSONResponse(
        status_code=400,
        content={"error": "Invalid request body", "details": str(exc.errors())[:500]},
    )


@app.get("/")
async def root():
    """Root endpoint with API info."""
    return {
        "service": "Listing Video",
        "version": "1.0.0",
        "endpoints": {
            "POST /generate-video": "Start a listing walkthrough render",
            "POST /check-video-status": "Normalized render status",
            "GET /health": "Health check",
        },
    }


@app.get("/health")
async def health():
    """Health check endpoint."""
    return {
        "status": "healthy",
        "config_issues": get_config().validate(),
        "circuit_breakers": {
            name: breaker.get_status()
            for name, breaker in CircuitBreaker._instances.items()
        },
        "timestamp": datetime.utcnow().isoformat(),
    }


@app.post("/generate-video")
async def generate_video(
    body: GenerateVideoBody,
    orchestrator: JobOrchestrator = Depends(get_orchestrator),
):
    """
    Start a render.

    Returns immediately with the provider job id. Poll
    /check-video-status with it until the status is done or failed.
    """
    payload = {
        "images": body.images,
        "propertyFacts": body.propertyFacts.model_dump() if body.propertyFacts else None,
        "styleOptions": body.styleOptions.model_dump() if body.styleOptions else None,
    }
    result = await orchestrator.submit(payload, provider=body.provider)
    return result.to_response()


@app.post("/check-video-status")
async def check_video_status(
    body: CheckStatusBody,
    orchestrator: JobOrchestrator = Depends(get_orchestrator),
):
    """Fresh normalized status. Never served from a cache."""
    status = await orchestrator.poll(body.provider, body.jobId or "")
    return status.to_response()
