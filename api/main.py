"""
FastAPI application factory and configuration.
"""

from contextlib import asynccontextmanager
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import PlainTextResponse

# Load environment variables before importing config-dependent modules
env_path = Path(__file__).parent.parent / ".env"
load_dotenv(env_path)

from scriptsnip.config import CORS_ORIGINS, CREATE_RATE_LIMIT, CREATE_RATE_WINDOW_SECONDS
from scriptsnip.db import ScriptStore
from scriptsnip.logger import setup_logging

from .errors import register_exception_handlers
from .routes import scripts
from .services.rate_limiter import RateLimiter


def create_app(
    store: Optional[ScriptStore] = None,
    create_limiter: Optional[RateLimiter] = None,
) -> FastAPI:
    """
    Create and configure the FastAPI application.

    Args:
        store: Store gateway to serve from (default: one at SCRIPTSNIP_DB_PATH)
        create_limiter: Limiter for POST /api/scripts (default: from config)
    """
    store = store or ScriptStore()
    create_limiter = create_limiter or RateLimiter(CREATE_RATE_LIMIT, CREATE_RATE_WINDOW_SECONDS)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """Application lifespan events."""
        # Startup
        setup_logging()
        store.init_database()
        yield
        # Shutdown - connections are per-request, nothing to close

    app = FastAPI(
        title="Script Snippet API",
        description="REST API for storing and browsing short script snippets",
        version="0.1.0",
        lifespan=lifespan,
    )
    app.state.store = store
    app.state.create_limiter = create_limiter

    # CORS configuration for frontend
    app.add_middleware(
        CORSMiddleware,
        allow_origins=CORS_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    register_exception_handlers(app)

    # Include routers
    app.include_router(scripts.router, prefix="/api", tags=["scripts"])

    @app.get("/", response_class=PlainTextResponse)
    async def root():
        """Root liveness message."""
        return "Basic Server Root OK"

    @app.get("/test", response_class=PlainTextResponse)
    async def test_route():
        """Plain-text smoke test route."""
        return "Test route OK"

    @app.get("/api/health")
    async def health_check():
        """Health check endpoint."""
        return {"status": "ok"}

    return app


# Create app instance for uvicorn
app = create_app()
