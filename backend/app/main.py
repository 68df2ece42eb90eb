"""Main application entry point."""

import logging
from contextlib import asynccontextmanager

# Configure logging FIRST, before any other imports
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(levelname)s - %(message)s",
)

# Reduce noise from third-party libraries (must be set before importing them)
logging.getLogger("sqlalchemy").setLevel(logging.WARNING)
logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)
logging.getLogger("sqlalchemy.engine.Engine").setLevel(logging.WARNING)
logging.getLogger("httpx").setLevel(logging.WARNING)
logging.getLogger("httpcore").setLevel(logging.WARNING)
logging.getLogger("asyncio").setLevel(logging.WARNING)

from fastapi import FastAPI, Request, Response
from fastapi.responses import ORJSONResponse

# Try to use uvloop for better performance (Unix only)
try:
    import uvloop
    uvloop.install()
    _UVLOOP_ENABLED = True
except ImportError:
    _UVLOOP_ENABLED = False

from app.api import router
from app.config import get_settings
from app.storage import close_database, init_database

logger = logging.getLogger(__name__)

VERSION = "0.1.0"

# Sent on every response, including errors and preflight
CORS_HEADERS = {
    "Access-Control-Allow-Origin": "*",
    "Access-Control-Allow-Methods": "GET, POST, PUT, DELETE, OPTIONS",
    "Access-Control-Allow-Headers": "Content-Type, Authorization",
}


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan manager."""
    logger.info("Starting signal backend...")
    logger.info(f"Event loop: {'uvloop' if _UVLOOP_ENABLED else 'asyncio'}")

    try:
        await init_database()
        logger.info("Database initialized")
    except Exception as e:
        logger.error(f"Startup failed: {e}")
        await close_database()
        raise  # Re-raise to prevent app from starting in broken state

    yield

    logger.info("Shutting down...")
    try:
        await close_database()
        logger.info("Database connections closed")
    except Exception as e:
        logger.warning(f"Error closing database: {e}")

    logger.info("Shutdown complete")


# Create FastAPI app with orjson for faster JSON serialization
app = FastAPI(
    title="Signal Backend",
    description="Price ingestion, indicator updates and signal lifecycle evaluation",
    version=VERSION,
    lifespan=lifespan,
    default_response_class=ORJSONResponse,
)


@app.middleware("http")
async def cors_headers(request: Request, call_next):
    """Answer preflight requests and echo CORS headers on every response."""
    if request.method == "OPTIONS":
        return Response(status_code=200, headers=CORS_HEADERS)

    try:
        response = await call_next(request)
    except Exception as e:
        logger.error(f"Unhandled error on {request.method} {request.url.path}: {e}")
        return ORJSONResponse(
            status_code=500,
            content={"error": "Internal server error", "details": str(e)},
            headers=CORS_HEADERS,
        )
    response.headers.update(CORS_HEADERS)
    return response


app.include_router(router)


@app.get("/")
async def root():
    """Root endpoint."""
    return {
        "name": "Signal Backend",
        "version": VERSION,
        "docs": "/docs",
        "event_loop": "uvloop" if _UVLOOP_ENABLED else "asyncio",
    }


@app.get("/health")
async def health():
    """Health check endpoint."""
    return {"status": "healthy"}


def main():
    """Run the application."""
    import uvicorn

    settings = get_settings()
    uvicorn.run(
        "app.main:app",
        host=settings.host,
        port=settings.port,
        reload=settings.debug,
    )


if __name__ == "__main__":
    main()
