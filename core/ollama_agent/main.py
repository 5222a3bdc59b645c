"""Ollama Agent - FastAPI application entry point."""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from ollama_agent import __version__
from ollama_agent.api import controller_store
from ollama_agent.api.routes import chat, models, tools
from ollama_agent.api.schemas import HealthResponse
from ollama_agent.config import API_PREFIX, HOST, OLLAMA_BASE_URL, PORT
from ollama_agent.utils.logging import logger

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup and shutdown lifecycle."""
    logger.info(f"Ollama Agent v{__version__} starting...")
    logger.info(f"Using Ollama at {OLLAMA_BASE_URL}")
    logger.info(f"Server running at http://{HOST}:{PORT}")
    yield
    await controller_store.shutdown_controller()
    logger.info("Ollama Agent stopped")


app = FastAPI(
    title="Ollama Agent",
    description="Chat client for a local Ollama server, with demonstration tools",
    version=__version__,
    lifespan=lifespan,
)

# Configure CORS for local development
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Register routes
app.include_router(chat.router, prefix=API_PREFIX)
app.include_router(models.router, prefix=API_PREFIX)
app.include_router(tools.router, prefix=API_PREFIX)


@app.get(f"{API_PREFIX}/health", response_model=HealthResponse)
async def health_check() -> HealthResponse:
    """Health check endpoint."""
    return HealthResponse(status="ok", version=__version__)


def run():
    import uvicorn

    uvicorn.run(app, host=HOST, port=PORT)


if __name__ == "__main__":
    run()
