"""FastAPI front for the Gemini relay.

Endpoints:
- GET /health
- POST /api/gemini-proxy  { "prompt": "..." }
"""
from __future__ import annotations
import logging

from fastapi import Depends, FastAPI, Request
from fastapi.concurrency import run_in_threadpool
from fastapi.responses import JSONResponse

from gemini_relay.common.logging_setup import setup_logging
from gemini_relay.relay.config import Settings, get_settings
from gemini_relay.relay.handler import handle

LOGGER = logging.getLogger("gemini_relay.relay.app")
setup_logging(get_settings().log_level)

# Every verb is routed to the handler so that non-POST calls get its 405 body.
RELAY_METHODS = ["GET", "HEAD", "POST", "PUT", "PATCH", "DELETE", "OPTIONS"]

app = FastAPI(title="gemini-relay")


@app.on_event("startup")
def _check_api_key_on_startup() -> None:
    """Warn early when the relay is deployed without its API key."""
    if not get_settings().api_key:
        LOGGER.warning("GEMINI_API_KEY is not set; relay requests will answer 503")


@app.get("/health")
def health(settings: Settings = Depends(get_settings)) -> dict[str, str]:
    return {"status": "ok", "model": settings.model_id}


@app.api_route("/api/gemini-proxy", methods=RELAY_METHODS)
async def gemini_proxy(request: Request, settings: Settings = Depends(get_settings)) -> JSONResponse:
    body = await request.body()
    # handle() blocks during backoff; keep it off the event loop.
    result = await run_in_threadpool(handle, request.method, body, settings=settings)
    return JSONResponse(status_code=result.status_code, content=result.body)
