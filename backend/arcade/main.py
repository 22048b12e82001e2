"""Arcade Gate API - Main FastAPI Application."""

import logging
import time
import uuid
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from slowapi.errors import RateLimitExceeded
from starlette.middleware.base import BaseHTTPMiddleware

from arcade.api.deps import limiter
from arcade.api.routes import access, leaderboard, scores
from arcade.config import get_settings
from arcade.core.errors import ArcadeError
from arcade.db.database import async_session_maker, init_db
from arcade.schemas.common import StatusResponse
from arcade.services.broadcast_hub import BroadcastHub
from arcade.services.leaderboard_service import LeaderboardQuery

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    datefmt="%Y-%m-%d %H:%M:%S",
)
logger = logging.getLogger("arcade_gate")

settings = get_settings()


def rate_limit_exceeded_handler(request: Request, exc: RateLimitExceeded):
    """Handle rate limit exceeded errors."""
    logger.warning(
        f"Rate limit exceeded for {request.client.host if request.client else 'unknown'} "
        f"on {request.url.path}"
    )
    return JSONResponse(
        status_code=429,
        content=StatusResponse(
            status=429,
            message=f"Rate limit exceeded: {exc.detail}",
        ).model_dump(),
    )


def arcade_error_handler(request: Request, exc: ArcadeError):
    """Render domain errors in the status-in-body format."""
    logger.warning(f"{request.url.path} rejected with {exc.status}: {exc.message}")
    return JSONResponse(status_code=200, content=exc.to_body())


def request_validation_error_handler(request: Request, exc: RequestValidationError):
    """Render malformed payloads as status 400 in the body."""
    problems = "; ".join(
        f"{'.'.join(str(part) for part in error['loc'] if part != 'body')}: {error['msg']}"
        for error in exc.errors()
    )
    logger.warning(f"{request.url.path} rejected with 400: {problems}")
    return JSONResponse(
        status_code=200,
        content=StatusResponse(status=400, message=f"Invalid request data: {problems}").model_dump(),
    )


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """Middleware for logging requests with correlation IDs."""

    async def dispatch(self, request: Request, call_next):
        request_id = str(uuid.uuid4())[:8]
        start_time = time.time()

        # Add request ID to request state for use in handlers
        request.state.request_id = request_id

        logger.info(
            f"[{request_id}] --> {request.method} {request.url.path} "
            f"from {request.client.host if request.client else 'unknown'}"
        )

        try:
            response = await call_next(request)
            process_time = (time.time() - start_time) * 1000

            logger.info(
                f"[{request_id}] <-- {response.status_code} "
                f"({process_time:.2f}ms)"
            )

            response.headers["X-Request-ID"] = request_id
            return response

        except Exception as e:
            process_time = (time.time() - start_time) * 1000
            logger.error(
                f"[{request_id}] <-- ERROR: {type(e).__name__}: {str(e)} "
                f"({process_time:.2f}ms)"
            )
            raise


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan manager."""
    logger.info("Starting Arcade Gate API...")

    await init_db()
    logger.info("Database tables ready")

    # Startup: one hub per process, shared by the ingestion and WebSocket routes
    query = LeaderboardQuery(async_session_maker, default_limit=settings.leaderboard_size)
    app.state.leaderboard_query = query
    app.state.hub = BroadcastHub(query, size=settings.leaderboard_size)
    logger.info(f"Broadcast hub started (top {settings.leaderboard_size})")

    yield

    # Shutdown: close viewer channels
    logger.info("Shutting down Arcade Gate API...")
    await app.state.hub.shutdown()
    logger.info("Broadcast hub stopped")


app = FastAPI(
    title=settings.app_name,
    version=settings.app_version,
    description="NFT-gated game sessions with a live leaderboard",
    docs_url="/docs",
    redoc_url="/redoc",
    lifespan=lifespan,
)

# Add rate limiter to app state
app.state.limiter = limiter
app.add_exception_handler(RateLimitExceeded, rate_limit_exceeded_handler)
app.add_exception_handler(ArcadeError, arcade_error_handler)
app.add_exception_handler(RequestValidationError, request_validation_error_handler)

# Add request logging middleware
app.add_middleware(RequestLoggingMiddleware)

# CORS middleware - configured based on environment
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins_list,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.get("/health")
async def health_check() -> dict:
    """Health check endpoint."""
    return {"status": 200, "version": settings.app_version}


@app.get("/")
async def root() -> dict:
    """Root endpoint with API info."""
    return {
        "name": settings.app_name,
        "version": settings.app_version,
        "docs": "/docs",
    }


@app.get("/config")
async def get_config() -> dict:
    """Get frontend configuration (chain and game parameters)."""
    return {
        "chain_id": settings.chain_id,
        "chain_rpc_url": settings.chain_rpc_url,
        "nft_contract_address": settings.nft_contract_address,
        "game_id": settings.game_id,
        "game_embed_base_url": settings.game_embed_base_url,
    }


# Include routers
app.include_router(access.router)
app.include_router(scores.router)
app.include_router(leaderboard.router)
