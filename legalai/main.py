"""
LegalAI Relay - FastAPI Application Entry Point
"""

import logging
import os
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError

from legalai.routers import chat, config
from legalai.services.config_manager import ConfigManager

logger = logging.getLogger(__name__)


def configure_logging():
    logging.basicConfig(
        level=os.environ.get("LEGALAI_LOG_LEVEL", "INFO").upper(),
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    )


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan manager - startup and shutdown logic"""
    logger.info("Starting LegalAI relay...")
    config_manager = ConfigManager.get_instance()
    if not config_manager.get("groq", {}).get("apiKey"):
        # Not fatal: each request fails with a configuration error instead
        logger.warning("GROQ_API_KEY is not configured")
    yield
    logger.info("Shutting down LegalAI relay...")


app = FastAPI(
    title="LegalAI Relay",
    description="Streaming chat relay for the LegalAI assistant",
    version="1.0.0",
    lifespan=lifespan,
)


@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError):
    """Keep malformed bodies in the flat {error} shape"""
    logger.warning("Rejected request to %s: %s", request.url.path, exc.errors())
    return chat.error_response("Invalid request body")


# Include routers
app.include_router(chat.router, prefix="/api/legal-chat", tags=["chat"])
app.include_router(config.router, prefix="/api/config", tags=["config"])


@app.get("/health")
async def health_check():
    """Health check endpoint"""
    return {"status": "healthy", "service": "legalai-relay"}


if __name__ == "__main__":
    import uvicorn

    configure_logging()
    uvicorn.run(app, host="0.0.0.0", port=8000)
