"""FastAPI application exposing the Viper assistant endpoints."""
from __future__ import annotations

import logging
import math
from contextlib import asynccontextmanager
from datetime import datetime, timezone
from typing import Any, AsyncIterator, Awaitable, Dict, Optional

from fastapi import Body, Depends, FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from . import __version__
from .config import AssistantSettings, load_config
from .errors import RateLimitExceeded, RequestValidationFailed
from .gateway import AssistantGateway
from .llm import AssistantClient, AssistantReply, create_client
from .ratelimit import SlidingWindowLimiter

logger = logging.getLogger(__name__)


# -----------------------------
# Utilities
# -----------------------------
def _reply_body(field: str, reply: AssistantReply) -> Dict[str, Any]:
    body: Dict[str, Any] = {field: reply.text, "timestamp": reply.timestamp}
    if reply.is_demo:
        body["isDemo"] = True
    return body


async def _respond(field: str, failure: str, call: Awaitable[AssistantReply]) -> JSONResponse:
    """Await a gateway call and shape its reply; client failures become a 500."""
    try:
        reply = await call
    except RequestValidationFailed:
        raise
    except Exception as e:
        logger.exception("%s", failure)
        return JSONResponse(status_code=500, content={"error": failure, "message": str(e)})
    return JSONResponse(_reply_body(field, reply))


def _make_limiter(cfg: Dict[str, Any]) -> Optional[SlidingWindowLimiter]:
    rl = cfg.get("rate_limit", {}) or {}
    if not rl.get("enabled", True):
        return None
    return SlidingWindowLimiter(
        max_requests=int(rl.get("max_requests", 20)),
        window_seconds=float(rl.get("window_seconds", 60)),
        message="Too many AI requests",
    )


# -----------------------------
# App factory
# -----------------------------
def create_app(
    config_path: Optional[str] = None,
    client: Optional[AssistantClient] = None,
    limiter: Optional[SlidingWindowLimiter] = None,
) -> FastAPI:
    cfg = load_config(config_path)

    # CORS
    cors_origins = cfg.get("server", {}).get("cors_origins", ["http://localhost:5173"])

    # Services
    owns_client = client is None
    if client is None:
        client = create_client(AssistantSettings.from_config(cfg))
    if limiter is None:
        limiter = _make_limiter(cfg)
    gateway = AssistantGateway(client)

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        logger.info("Viper assistant ready (demo=%s)", gateway.is_demo)
        yield
        if owns_client:
            await client.aclose()

    app = FastAPI(title="Viper Assistant Server", version=__version__, lifespan=lifespan)
    app.state.gateway = gateway
    app.state.limiter = limiter
    app.add_middleware(
        CORSMiddleware,
        allow_origins=cors_origins,
        allow_credentials=True,
        allow_methods=["GET", "POST", "PUT", "DELETE"],
        allow_headers=["Content-Type", "Authorization"],
    )

    @app.middleware("http")
    async def log_requests(request: Request, call_next):
        client_host = request.client.host if request.client else "-"
        logger.info("%s %s - %s", request.method, request.url.path, client_host)
        return await call_next(request)

    # ── Error mapping ────────────────────────────────────────────────────────

    @app.exception_handler(RequestValidationFailed)
    async def on_invalid(request: Request, exc: RequestValidationFailed) -> JSONResponse:
        return JSONResponse(status_code=400, content={"error": str(exc)})

    @app.exception_handler(RequestValidationError)
    async def on_bad_body(request: Request, exc: RequestValidationError) -> JSONResponse:
        logger.debug("Rejected body on %s: %s", request.url.path, exc.errors())
        return JSONResponse(status_code=400, content={"error": "Request body must be a JSON object"})

    @app.exception_handler(RateLimitExceeded)
    async def on_rate_limited(request: Request, exc: RateLimitExceeded) -> JSONResponse:
        return JSONResponse(
            status_code=429,
            content={"error": str(exc)},
            headers={"Retry-After": str(max(1, math.ceil(exc.retry_after)))},
        )

    async def ai_rate_limit(request: Request) -> None:
        if limiter is None:
            return
        key = request.client.host if request.client else "anonymous"
        limiter.hit(key)

    # ── Routes ───────────────────────────────────────────────────────────────

    @app.get("/api/health")
    def health() -> Dict[str, Any]:
        return {
            "status": "OK",
            "timestamp": datetime.now(timezone.utc).isoformat().replace("+00:00", "Z"),
        }

    @app.post("/api/ai/chat", dependencies=[Depends(ai_rate_limit)])
    async def chat(payload: Optional[Dict[str, Any]] = Body(default=None)) -> JSONResponse:
        return await _respond("response", "Failed to get AI response", gateway.chat(payload or {}))

    @app.post("/api/ai/analyze-code", dependencies=[Depends(ai_rate_limit)])
    async def analyze_code(payload: Optional[Dict[str, Any]] = Body(default=None)) -> JSONResponse:
        return await _respond("analysis", "Failed to analyze code", gateway.analyze_code(payload or {}))

    @app.post("/api/ai/generate-code", dependencies=[Depends(ai_rate_limit)])
    async def generate_code(payload: Optional[Dict[str, Any]] = Body(default=None)) -> JSONResponse:
        return await _respond("code", "Failed to generate code", gateway.generate_code(payload or {}))

    return app
