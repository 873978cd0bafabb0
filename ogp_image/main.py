"""FastAPI application entrypoint."""
from __future__ import annotations

import logging
import time

from fastapi import Depends, FastAPI, HTTPException, Request
from fastapi.responses import PlainTextResponse, Response

from .config import load_settings
from .errors import PreviewError
from .logging_setup import configure_logging
from .service import PreviewService, build_service

SETTINGS = load_settings()
LOG_FILE_PATH = configure_logging(SETTINGS.log_level)
logger = logging.getLogger(__name__)
logger.info("Logging configured. File output: %s", LOG_FILE_PATH)

app = FastAPI(title="OGP Image Generator")


@app.on_event("startup")
def on_startup() -> None:
    start = time.perf_counter()
    logger.info("Starting application initialisation")
    app.state.service = build_service(SETTINGS)
    logger.info("Preview service initialised in %.2fs", time.perf_counter() - start)


def get_service(request: Request) -> PreviewService:
    service = getattr(request.app.state, "service", None)
    if service is None:
        raise HTTPException(status_code=503, detail="Service is not initialised")
    return service


@app.get("/")
def preview(
    encoded_url: str | None = None,
    service: PreviewService = Depends(get_service),
) -> Response:
    if not encoded_url:
        raise HTTPException(status_code=400, detail="query parameter error: encoded_url is empty")

    try:
        data = service.render(encoded_url)
    except PreviewError as exc:
        if exc.status_code < 500:
            logger.info("Rejected preview request %s: %s", encoded_url, exc)
        else:
            logger.error("Failed to create preview for %s: %s", encoded_url, exc)
        raise HTTPException(
            status_code=exc.status_code,
            detail={"kind": exc.kind.value, "message": str(exc)},
        ) from exc
    return Response(content=data, media_type="image/png")


@app.get("/health", response_class=PlainTextResponse)
def health() -> str:
    return "OK"
