"""
Centralized configuration for Design Critic
All environment variables and settings are defined here
"""

from typing import Literal
from pydantic_settings import BaseSettings
from pydantic import Field


class Settings(BaseSettings):
    """
    Application settings loaded from environment variables.
    Provides centralized configuration with validation and defaults.
    """

    # ======================
    # Evaluator Configuration
    # ======================
    ANTHROPIC_API_KEY: str = Field(default="", description="Anthropic API key")
    ANTHROPIC_MODEL: str = Field(
        default="claude-sonnet-4-20250514",
        description="Vision model used to critique designs"
    )
    MAX_TOKENS: int = Field(default=4096, description="Max tokens for the evaluator response")
    TEMPERATURE: float = Field(default=0.7, description="Sampling temperature for the evaluator")
    EVALUATOR_TIMEOUT_SECONDS: float = Field(
        default=55.0,
        description="Timeout for a single evaluator round trip"
    )
    EVALUATOR_MAX_ATTEMPTS: int = Field(
        default=1,
        ge=1,
        description="Attempts for transient evaluator failures (1 = no retry)"
    )
    OVERALL_SCORE_MODE: Literal["reported", "computed"] = Field(
        default="reported",
        description="Use the evaluator's overall score or recompute the category mean"
    )

    # ======================
    # Intake Configuration
    # ======================
    ALLOW_URL_INPUT: bool = Field(
        default=False,
        description="Accept type=url submissions and capture them with a browser"
    )
    MAX_UPLOAD_BYTES: int = Field(
        default=10 * 1024 * 1024,
        description="Maximum uploaded screenshot size in bytes"
    )

    # ======================
    # Pipeline Configuration
    # ======================
    PIPELINE_TIMEOUT_SECONDS: float = Field(
        default=60.0,
        description="End-to-end deadline for one analysis"
    )

    # ======================
    # Screenshot Configuration
    # ======================
    CAPTURE_TIMEOUT_SECONDS: float = Field(
        default=30.0,
        description="Navigation timeout for webpage capture"
    )
    VIEWPORT_WIDTH: int = Field(
        default=1920,
        description="Browser viewport width"
    )
    VIEWPORT_HEIGHT: int = Field(
        default=1080,
        description="Browser viewport height"
    )
    DEVICE_SCALE_FACTOR: float = Field(
        default=2.0,
        description="Browser device scale factor"
    )
    MAX_SCREENSHOT_DIMENSION: int = Field(
        default=7500,
        description="Maximum image dimension sent to the evaluator"
    )
    MAX_EVALUATOR_IMAGE_BYTES: int = Field(
        default=5_242_880,
        description="Maximum encoded image size sent to the evaluator"
    )

    # ======================
    # Storage Configuration
    # ======================
    RESULT_STORE_BACKEND: Literal["filesystem", "redis"] = Field(
        default="filesystem",
        description="Backing implementation for the result store"
    )
    RESULTS_DIR: str = Field(
        default="public/results",
        description="Directory holding analysis JSON documents"
    )
    SCREENSHOTS_DIR: str = Field(
        default="public/screenshots",
        description="Directory holding analyzed PNG images"
    )
    REDIS_URL: str = Field(
        default="redis://localhost:6379/0",
        description="Redis connection URL (redis backend only)"
    )

    # ======================
    # Logging Configuration
    # ======================
    LOG_LEVEL: str = Field(
        default="INFO",
        description="Logging level"
    )

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"
        case_sensitive = True
        extra = "ignore"  # Allow extra env vars in .env file