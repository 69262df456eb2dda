import argparse
import logging
import uvicorn
from fastapi import FastAPI, Request, Depends, status
from fastapi.responses import JSONResponse
from contextlib import asynccontextmanager

import sys
from pathlib import Path

# Add project root to path for package imports
base_dir = Path(__file__).parent
sys.path.insert(0, str(base_dir))

from db.database import init_db, get_db, DB_PATH
from config import load_config, CONFIG_DIR
from routes import review, sessions, stats, notifications, quota, packages, maintenance  # Import routers
from utils.errors import InvalidInputError, NotFoundError, StorageError

logger = logging.getLogger("lingocoach")


def configure_logging(level: str = "INFO") -> None:
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    )


# First-run init
@asynccontextmanager
async def lifespan(app: FastAPI):
    # Startup: init config, logging and DB
    config = load_config()  # Ensures config exists
    configure_logging(config["logging"]["level"])
    init_db()
    yield
    # Shutdown if needed

app = FastAPI(
    title="LingoCoach",
    description="Local-first vocabulary trainer with SM-2 spaced repetition",
    lifespan=lifespan,
)

# Include routers
app.include_router(review.router, prefix="/review", tags=["review"])
app.include_router(sessions.router, prefix="/sessions", tags=["sessions"])
app.include_router(stats.router, prefix="/stats", tags=["stats"])
app.include_router(notifications.router, prefix="/notifications", tags=["notifications"])
app.include_router(quota.router, prefix="/quota", tags=["quota"])
app.include_router(packages.router, prefix="/packages", tags=["packages"])
app.include_router(maintenance.router, prefix="/maintenance", tags=["maintenance"])


@app.exception_handler(InvalidInputError)
async def invalid_input_handler(request: Request, exc: InvalidInputError):
    return JSONResponse(status_code=status.HTTP_400_BAD_REQUEST, content={"detail": str(exc), "error": "invalid_input"})

@app.exception_handler(NotFoundError)
async def not_found_handler(request: Request, exc: NotFoundError):
    return JSONResponse(status_code=status.HTTP_404_NOT_FOUND, content={"detail": str(exc), "error": "not_found"})

@app.exception_handler(StorageError)
async def storage_error_handler(request: Request, exc: StorageError):
    logger.error("Storage failure on %s %s: %s", request.method, request.url.path, exc)
    return JSONResponse(
        status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
        content={"detail": "Storage temporarily unavailable", "error": "storage"},
    )


@app.get("/health")
async def health(conn = Depends(get_db)):
    cursor = conn.cursor()
    cursor.execute("SELECT 1")
    return {"status": "ok", "database": cursor.fetchone()[0] == 1}


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="LingoCoach App")
    parser.add_argument("--init", action="store_true", help="Initialize DB and config")
    parser.add_argument("--dev", action="store_true", help="Run in dev mode with reload")
    parser.add_argument("--port", type=int, default=8000, help="Port to listen on")
    args = parser.parse_args()
    if args.init:
        config = load_config()  # Ensures config is copied if missing
        configure_logging(config["logging"]["level"])
        init_db()
        logger.info("DB initialized at %s and config copied to %s", DB_PATH, CONFIG_DIR)
        sys.exit(0)
    # Run server
    reload = args.dev
    uvicorn.run("main:app", host="127.0.0.1", port=args.port, reload=reload, log_level="info")
