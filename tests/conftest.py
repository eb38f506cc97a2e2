import asyncio
import io
import json

import pytest
from fastapi.testclient import TestClient
from PIL import Image

from design_critic.analyzer.pipeline import AnalysisPipeline
from design_critic.analyzer.prompts import CATEGORY_KEYS
from design_critic.config import Settings
from design_critic.core.storage import FileSystemResultStore
from design_critic.main import create_app


def _image_bytes(image_format: str, size=(64, 48), mode="RGB") -> bytes:
    buf = io.BytesIO()
    Image.new(mode, size, (200, 120, 40)).save(buf, format=image_format)
    return buf.getvalue()


@pytest.fixture()
def png_bytes() -> bytes:
    return _image_bytes("PNG")


@pytest.fixture()
def jpeg_bytes() -> bytes:
    return _image_bytes("JPEG")


def make_verdict(score=7, **overrides) -> dict:
    verdict = {
        "overallScore": score,
        "categories": {
            key: {"score": score, "rationale": f"{key} rationale"}
            for key in CATEGORY_KEYS
        },
        "summary": "A tidy layout with a restrained palette.\n\nType could be bolder.",
        "aiSlopDetection": {"score": score, "indicators": ["Generic gradient blur orbs"]},
        "topRefinements": ["Increase heading contrast", "Replace stock icons"],
    }
    verdict.update(overrides)
    return verdict


@pytest.fixture()
def verdict() -> dict:
    return make_verdict()


class FakeEvaluator:
    """Returns canned text and records what it was asked."""

    def __init__(self, text: str):
        self.text = text
        self.calls = []

    def evaluate(self, image, rubric):
        self.calls.append((image, rubric))
        return self.text


class FakeCapturer:
    def __init__(self, raster: bytes = None, delay: float = 0.0, error: Exception = None):
        self.raster = raster
        self.delay = delay
        self.error = error
        self.urls = []
        self.closed = False

    async def capture(self, url: str) -> bytes:
        self.urls.append(url)
        try:
            if self.delay:
                await asyncio.sleep(self.delay)
            if self.error:
                raise self.error
            return self.raster
        finally:
            self.closed = True


@pytest.fixture()
def settings(tmp_path) -> Settings:
    return Settings(
        ANTHROPIC_API_KEY="test-key",
        RESULTS_DIR=str(tmp_path / "results"),
        SCREENSHOTS_DIR=str(tmp_path / "screenshots"),
        ALLOW_URL_INPUT=True,
    )


@pytest.fixture()
def store(settings) -> FileSystemResultStore:
    return FileSystemResultStore(settings.RESULTS_DIR, settings.SCREENSHOTS_DIR)


@pytest.fixture()
def make_client(settings, store):
    """Build a TestClient around a pipeline with the given fakes."""

    def _make(evaluator, capturer=None, timeout_seconds=5.0, **settings_update):
        app_settings = settings.model_copy(update=settings_update)
        pipeline = AnalysisPipeline(
            evaluator=evaluator,
            store=store,
            capturer=capturer,
            timeout_seconds=timeout_seconds,
            overall_score_mode=app_settings.OVERALL_SCORE_MODE,
        )
        return TestClient(create_app(settings=app_settings, pipeline=pipeline))

    return _make


@pytest.fixture()
def verdict_text(verdict) -> str:
    return json.dumps(verdict)


