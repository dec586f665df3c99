"""Main FastAPI Application"""
import logging
from contextlib import asynccontextmanager

import uvicorn
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from docchat import __version__
from docchat.config import ensure_directories
from docchat.routes import router
from docchat.services import shutdown_services

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan manager"""
    logger.info("Starting DocChat API...")
    ensure_directories()
    yield
    logger.info("Shutting down...")
    await shutdown_services()


app = FastAPI(
    title="DocChat API",
    description="Chat with your documents: upload, toggle and ask questions with cited answers",
    version=__version__,
    lifespan=lifespan
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(router)


def run():
    uvicorn.run("docchat.main:app", host="0.0.0.0", port=8000, log_level="info")


if __name__ == "__main__":
    run()
