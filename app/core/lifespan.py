import logging
from contextlib import asynccontextmanager
from pathlib import Path

from fastapi import FastAPI

from app.core.config import settings

# Configure logger
logging.basicConfig(
    level=getattr(logging, settings.LOG_LEVEL, logging.INFO),
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)


def ensure_upload_dir() -> Path:
    """Create the scratch directory used for downloaded files if it is missing."""
    upload_dir = Path(settings.UPLOAD_DIR)
    upload_dir.mkdir(parents=True, exist_ok=True)
    return upload_dir


@asynccontextmanager
async def lifespan(app: FastAPI):
    # Startup
    upload_dir = ensure_upload_dir()
    logger.info("📁 Scratch directory ready at %s", upload_dir)
    logger.info("🚀 Upload relay started (upstream=%s)", settings.OPENAI_BASE_URL)

    yield

    # Shutdown
    logger.info("🛑 Upload relay shutting down")
