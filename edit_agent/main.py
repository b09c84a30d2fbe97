"""Main FastAPI application entry point."""

import os
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from . import __version__
from .api import agent, health, passthrough
from .core import ImageGenerator, ImageNormalizer, Judge, Orchestrator
from .providers import GeminiClient, OpenRouterClient, WaveSpeedAIClient
from .utils.config import load_config
from .utils.logger import get_logger

logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Lifespan context manager for startup and shutdown.

    Initializes provider clients and the refinement loop on startup,
    closes the clients on shutdown.
    """
    logger.info("Application starting up...")

    config = load_config()

    gemini = GeminiClient(
        api_key=config.gemini_api_key,
        timeout=config.timeouts.gemini_seconds,
    )
    await gemini.initialize()

    # Passthroughs are optional; they stay disabled without a key.
    openrouter = None
    if config.openrouter_api_key:
        openrouter = OpenRouterClient(
            api_key=config.openrouter_api_key,
            timeout=config.timeouts.openrouter_seconds,
        )
        await openrouter.initialize()

    wavespeed = None
    if config.wavespeed_api_key:
        wavespeed = WaveSpeedAIClient(
            api_key=config.wavespeed_api_key,
            timeout=config.timeouts.wavespeed_seconds,
            polling_timeout=config.timeouts.wavespeed_polling_seconds,
        )
        await wavespeed.initialize()

    logger.info(
        "Provider clients initialized",
        extra={
            "chat_enabled": openrouter is not None,
            "image_enabled": wavespeed is not None,
        }
    )

    orchestrator = Orchestrator(
        generator=ImageGenerator(
            gemini_client=gemini,
            model=config.models.generation,
            timeout_seconds=config.loop.generation_timeout_seconds,
        ),
        judge=Judge(
            gemini_client=gemini,
            model=config.models.judge,
            timeout_seconds=config.loop.evaluation_timeout_seconds,
        ),
        normalizer=ImageNormalizer(upload_max_dimension=config.loop.upload_max_dimension),
        default_max_iterations=config.loop.default_max_iterations,
    )

    app.state.config = config
    app.state.gemini = gemini
    app.state.openrouter = openrouter
    app.state.wavespeed = wavespeed
    app.state.orchestrator = orchestrator

    logger.info("Application startup complete")

    try:
        yield
    finally:
        logger.info("Application shutting down...")
        await gemini.close()
        if openrouter:
            await openrouter.close()
        if wavespeed:
            await wavespeed.close()
        logger.info("Application shutdown complete")


app = FastAPI(
    title="Edit Agent",
    description="Iterative image editing with a generate/judge refinement loop",
    version=__version__,
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=False,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(health.router, prefix="/health", tags=["health"])
app.include_router(agent.router, prefix="/api/ai/agent", tags=["agent"])
app.include_router(passthrough.router, prefix="/api/ai", tags=["passthrough"])


@app.get("/")
async def root():
    """Root endpoint."""
    return {
        "service": "edit-agent",
        "version": __version__,
        "status": "running",
        "docs": "/docs",
    }


def run_server(host: str = "0.0.0.0", port: int = None, reload: bool = False):
    import uvicorn

    uvicorn.run(
        "edit_agent.main:app",
        host=host,
        port=port or int(os.getenv("PORT", 8000)),
        reload=reload,
        log_level="info",
    )


if __name__ == "__main__":
    run_server()
