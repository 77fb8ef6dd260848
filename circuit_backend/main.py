"""Circuit Quest Backend: FastAPI application entry point."""

import logging
import os
from contextlib import asynccontextmanager
from typing import Optional

from dotenv import load_dotenv
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from circuit_backend.middleware.rate_limit import RateLimitMiddleware
from circuit_backend.routes import library, sessions
from circuit_backend.session_store import InMemorySessionStore
from circuit_engine.levels import DEFAULT_CATALOG

load_dotenv()

logging.basicConfig(
    level=os.getenv("LOG_LEVEL", "INFO").upper(),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application startup and shutdown."""
    app.state.catalog = DEFAULT_CATALOG
    app.state.session_store = InMemorySessionStore(
        catalog=DEFAULT_CATALOG,
        ttl_hours=float(os.getenv("SESSION_TTL_HOURS", "24")),
    )
    yield


def create_app(requests_per_minute: Optional[int] = None) -> FastAPI:
    app = FastAPI(
        title="Circuit Quest API",
        description="Gap-filling circuit puzzles: place parts, match the level target",
        version="0.1.0",
        lifespan=lifespan,
    )

    # CORS: allow frontend origins
    _frontend_url = os.getenv("FRONTEND_URL")
    app.add_middleware(
        CORSMiddleware,
        allow_origins=[_frontend_url] if _frontend_url else [],
        allow_origin_regex=r"^https?://(localhost|127\.0\.0\.1)(:\d+)?$",
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    if requests_per_minute is None:
        requests_per_minute = int(os.getenv("RATE_LIMIT_PER_MINUTE", "120"))
    app.add_middleware(RateLimitMiddleware, requests_per_minute=requests_per_minute)

    app.include_router(sessions.router, prefix="/api", tags=["Sessions"])
    app.include_router(library.router, prefix="/api", tags=["Library"])

    @app.get("/api/health")
    async def health_check():
        return {"status": "healthy", "service": "circuit-quest-backend"}

    return app


app = create_app()
