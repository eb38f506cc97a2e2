"""
Design Critic Service - Main Application

A FastAPI backend that accepts a website screenshot (or captures one with
Playwright when URL input is enabled), has Claude critique the design against
a fixed ten-category rubric, and stores the verdict for later retrieval.
"""

import logging

from fastapi import FastAPI
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from dotenv import load_dotenv

from design_critic.analyzer.pipeline import AnalysisPipeline, build_pipeline
from design_critic.api.routes import request_validation_error_handler, router
from design_critic.config import Settings

logger = logging.getLogger(__name__)


def configure_logging(level: str = "INFO"):
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


def create_app(settings: Settings = None, pipeline: AnalysisPipeline = None) -> FastAPI:
    """
    Build the FastAPI app.

    Settings are read once here; `pipeline` lets callers inject fakes.
    """
    settings = settings or Settings()
    configure_logging(settings.LOG_LEVEL)

    app = FastAPI(title="Design Critic Service")
    app.state.settings = settings
    app.state.pipeline = pipeline or build_pipeline(settings)

    # Configure CORS
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.include_router(router)
    app.add_exception_handler(RequestValidationError, request_validation_error_handler)

    logger.info(
        f"Design Critic ready (url input: {settings.ALLOW_URL_INPUT}, "
        f"store: {settings.RESULT_STORE_BACKEND}, score mode: {settings.OVERALL_SCORE_MODE})"
    )
    return app


# Load environment variables
load_dotenv()

app = create_app()


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(app, host="0.0.0.0", port=8000, timeout_keep_alive=60)
