"""Insight Stream Core API - Main Application."""

from contextlib import asynccontextmanager
from typing import AsyncGenerator

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from insight_core.api.middleware.request_logging import RequestLoggingMiddleware
from insight_core.api.routes import api_keys as api_keys_routes
from insight_core.api.routes import audit as audit_routes
from insight_core.api.routes import auth as auth_routes
from insight_core.api.routes import contact as contact_routes
from insight_core.api.routes import feeds as feeds_routes
from insight_core.api.routes import mentions as mentions_routes
from insight_core.api.routes import reddit as reddit_routes
from insight_core.api.routes import users as users_routes
from insight_core.api.routes import youtube as youtube_routes
from insight_core.config import get_settings
from insight_core.infrastructure.crypto import warn_if_unencrypted
from insight_core.observability.logging import configure_logging


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan handler."""
    # Startup
    settings = get_settings()
    configure_logging(
        level=settings.log_level,
        json_format=settings.log_json,
        service_name="insight-core",
    )
    warn_if_unencrypted(settings.encryption_key)
    app.state.settings = settings
    yield
    # Shutdown


app = FastAPI(
    title="Insight Stream Core API",
    description="Keyword mention monitoring across Reddit, Hacker News, news and RSS",
    version="0.1.0",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=get_settings().cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.add_middleware(RequestLoggingMiddleware)

# Include API routers
app.include_router(api_keys_routes.router)
app.include_router(audit_routes.router)
app.include_router(auth_routes.router)
app.include_router(contact_routes.router)
app.include_router(feeds_routes.router)
app.include_router(mentions_routes.router)
app.include_router(reddit_routes.router)
app.include_router(users_routes.router)
app.include_router(youtube_routes.router)


@app.get("/healthz")
async def health_check() -> dict:
    """Health check endpoint."""
    return {"ok": True, "service": "insight-core"}


@app.get("/")
async def root() -> dict:
    """Root endpoint."""
    return {
        "name": "Insight Stream Core API",
        "version": "0.1.0",
        "status": "running",
    }
