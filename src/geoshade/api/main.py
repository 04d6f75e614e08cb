"""Geoshade API — FastAPI application hosting one selection engine session.

Run:
    uvicorn geoshade.api.main:app --reload
    # or
    geoshade-api
"""

import logging
import uuid
from contextlib import asynccontextmanager

import uvicorn
from fastapi import FastAPI, HTTPException, Request
from fastapi.middleware.cors import CORSMiddleware
from starlette.middleware.base import BaseHTTPMiddleware

from geoshade.api.backend import router as backend_router
from geoshade.api.routes import get_geo_session, router, set_geo_session
from geoshade.config import ConfigResolver, settings
from geoshade.observability.logging import correlation_id, setup_logging
from geoshade.session import GeoSession

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Resolve configuration and start the engine session."""
    setup_logging(json_format=settings.log_json, level=settings.log_level)

    session = GeoSession(ConfigResolver())
    try:
        await session.start()
    except Exception as e:
        logger.error("Session start failed: %s — API will start in degraded mode", e)
    set_geo_session(session)
    logger.info("Geoshade API ready")
    yield
    logger.info("Shutting down")
    await session.close()
    set_geo_session(None)


class CorrelationIDMiddleware(BaseHTTPMiddleware):
    """Set correlation ID from X-Request-ID header or generate a new one."""

    async def dispatch(self, request: Request, call_next):
        cid = request.headers.get("x-request-id", str(uuid.uuid4()))
        token = correlation_id.set(cid)
        try:
            response = await call_next(request)
            response.headers["x-request-id"] = cid
            return response
        finally:
            correlation_id.reset(token)


app = FastAPI(
    title="Geoshade",
    description="Select US states or counties on a map, then save and export the selection.",
    version="0.1.0",
    lifespan=lifespan,
)

app.add_middleware(CorrelationIDMiddleware)
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(router)
app.include_router(backend_router)


@app.get("/health")
async def health():
    """Health check — reports which features the resolved configuration enables."""
    checks = {}
    try:
        session = get_geo_session()
    except HTTPException as e:
        return {"status": "degraded", "checks": {"session": f"error: {e.detail}"}}

    config = session.resolver.get()
    checks["session"] = "ok"
    checks["map"] = "ok" if session.overlay.enabled else "disabled: missing API key"
    checks["backend"] = "ok" if config.save_enabled else "disabled: missing backend URL"
    checks["boundaries"] = "loaded" if session.provider.boundaries_loaded else "not_loaded"

    status = "healthy" if session.overlay.enabled and config.save_enabled else "degraded"
    return {"status": status, "checks": checks}


def run() -> None:
    """Entry point for geoshade-api."""
    uvicorn.run("geoshade.api.main:app", host="0.0.0.0", port=8000)


if __name__ == "__main__":
    run()
