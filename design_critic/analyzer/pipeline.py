"""
Analysis pipeline for Design Critic.

capture (URL only) -> normalize -> evaluate -> validate -> persist, run
strictly in sequence under a single end-to-end deadline.
"""

import asyncio
import logging
import time

from design_critic.analyzer.prompts import get_design_prompt
from design_critic.analyzer.validator import shape_result
from design_critic.api.models import AnalysisRequest, SourceType
from design_critic.config import Settings
from design_critic.core.browser import WebpageCapturer
from design_critic.core.storage import (
    FileSystemResultStore,
    RedisResultStore,
    ResultStore,
)
from design_critic.exceptions import AnalysisTimeoutError, CaptureError, InputValidationError
from design_critic.utils.anthropic_client import EvaluatorClient
from design_critic.utils.image_processor import normalize_capture, prepare_for_evaluator

logger = logging.getLogger(__name__)


class AnalysisPipeline:
    """
    Runs one analysis request end to end and returns the new result id.

    Collaborators are injected so tests can substitute fakes. Nothing is
    persisted unless every earlier stage succeeded inside the deadline.
    """

    def __init__(
        self,
        evaluator: EvaluatorClient,
        store: ResultStore,
        capturer: WebpageCapturer = None,
        timeout_seconds: float = 60.0,
        overall_score_mode: str = "reported",
        max_dimension: int = 7500,
        max_image_bytes: int = 5_242_880,
    ):
        self.evaluator = evaluator
        self.store = store
        self.capturer = capturer
        self.timeout_seconds = timeout_seconds
        self.overall_score_mode = overall_score_mode
        self.max_dimension = max_dimension
        self.max_image_bytes = max_image_bytes

    async def analyze(self, request: AnalysisRequest) -> str:
        """
        Analyze one request.

        Returns:
            The ResultIdentifier of the persisted analysis

        Raises:
            AnalysisTimeoutError: If the deadline expires (any open browser is
                closed and nothing is persisted)
            DesignCriticError: For any stage failure
        """
        started = time.monotonic()
        deadline = started + self.timeout_seconds
        try:
            result_id = await asyncio.wait_for(
                self._run(request, deadline), timeout=self.timeout_seconds
            )
        except asyncio.TimeoutError:
            logger.error(
                f"⏱️ Analysis timeout after {self.timeout_seconds}s for "
                f"{request.source_type.value}:{request.source_value}"
            )
            raise AnalysisTimeoutError(
                f"Analysis timed out after {self.timeout_seconds} seconds"
            )

        logger.info(
            f"✅ Analysis {result_id} completed in {time.monotonic() - started:.1f}s"
        )
        return result_id

    async def _run(self, request: AnalysisRequest, deadline: float) -> str:
        if request.source_type == SourceType.URL:
            if self.capturer is None:
                raise CaptureError("Webpage capture is not configured")
            logger.info(f"Capturing screenshot for: {request.source_value}")
            raster = await self.capturer.capture(request.source_value)
            png_bytes = await asyncio.to_thread(normalize_capture, raster)
        else:
            if not request.image_bytes:
                raise InputValidationError("Screenshot file is required")
            png_bytes = request.image_bytes

        image = await asyncio.to_thread(
            prepare_for_evaluator, png_bytes, self.max_dimension, self.max_image_bytes
        )
        rubric = get_design_prompt(request.source_type, request.source_value)

        logger.info("Analyzing design...")
        raw_text = await asyncio.to_thread(self.evaluator.evaluate, image, rubric)

        result = await asyncio.to_thread(
            shape_result, raw_text, request, self.overall_score_mode
        )

        # A put that has started runs to completion in its thread, so never
        # start one once the deadline has passed
        if time.monotonic() >= deadline:
            raise asyncio.TimeoutError()

        return await asyncio.to_thread(self.store.put, result, png_bytes)


def build_store(settings: Settings) -> ResultStore:
    if settings.RESULT_STORE_BACKEND == "redis":
        return RedisResultStore(redis_url=settings.REDIS_URL)
    return FileSystemResultStore(settings.RESULTS_DIR, settings.SCREENSHOTS_DIR)


def build_pipeline(settings: Settings, store: ResultStore = None) -> AnalysisPipeline:
    """Wire the production collaborators from settings"""
    evaluator = EvaluatorClient(
        api_key=settings.ANTHROPIC_API_KEY,
        model=settings.ANTHROPIC_MODEL,
        max_tokens=settings.MAX_TOKENS,
        temperature=settings.TEMPERATURE,
        timeout=settings.EVALUATOR_TIMEOUT_SECONDS,
        max_attempts=settings.EVALUATOR_MAX_ATTEMPTS,
    )
    capturer = None
    if settings.ALLOW_URL_INPUT:
        capturer = WebpageCapturer(
            viewport_width=settings.VIEWPORT_WIDTH,
            viewport_height=settings.VIEWPORT_HEIGHT,
            device_scale_factor=settings.DEVICE_SCALE_FACTOR,
            navigation_timeout=settings.CAPTURE_TIMEOUT_SECONDS,
        )

    return AnalysisPipeline(
        evaluator=evaluator,
        store=store or build_store(settings),
        capturer=capturer,
        timeout_seconds=settings.PIPELINE_TIMEOUT_SECONDS,
        overall_score_mode=settings.OVERALL_SCORE_MODE,
        max_dimension=settings.MAX_SCREENSHOT_DIMENSION,
        max_image_bytes=settings.MAX_EVALUATOR_IMAGE_BYTES,
    )
