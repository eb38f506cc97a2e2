import asyncio
import json
import threading
import time
from unittest.mock import MagicMock, patch

import pytest

from conftest import FakeCapturer, FakeEvaluator, make_verdict
from design_critic.analyzer.pipeline import AnalysisPipeline, build_pipeline, build_store
from design_critic.analyzer.validator import shape_result
from design_critic.api.models import AnalysisRequest, SourceType
from design_critic.core.browser import WebpageCapturer
from design_critic.core.storage import FileSystemResultStore, RedisResultStore
from design_critic.exceptions import (
    AnalysisTimeoutError,
    CaptureError,
    EvaluationError,
    PersistenceError,
)


def _screenshot_request(png_bytes) -> AnalysisRequest:
    return AnalysisRequest(
        source_type=SourceType.SCREENSHOT, source_value="shot.png", image_bytes=png_bytes
    )


class TestAnalysisPipeline:
    async def test_screenshot_is_evaluated_and_persisted(self, store, png_bytes, verdict_text) -> None:
        evaluator = FakeEvaluator(verdict_text)
        pipeline = AnalysisPipeline(evaluator=evaluator, store=store)

        result_id = await pipeline.analyze(_screenshot_request(png_bytes))

        stored = store.get(result_id)
        assert stored.image_bytes == png_bytes
        assert stored.result.source_value == "shot.png"
        image, rubric = evaluator.calls[0]
        assert image.media_type == "image/png"
        assert "aestheticCohesion" in rubric

    async def test_url_is_captured_first(self, store, png_bytes, verdict_text) -> None:
        capturer = FakeCapturer(raster=png_bytes)
        pipeline = AnalysisPipeline(
            evaluator=FakeEvaluator(verdict_text), store=store, capturer=capturer
        )
        request = AnalysisRequest(source_type=SourceType.URL, source_value="https://example.com")

        result_id = await pipeline.analyze(request)

        assert capturer.urls == ["https://example.com"]
        stored = store.get(result_id)
        assert stored.result.source_type == SourceType.URL
        assert stored.image_bytes == png_bytes

    async def test_url_without_capturer(self, store, verdict_text) -> None:
        pipeline = AnalysisPipeline(evaluator=FakeEvaluator(verdict_text), store=store)
        request = AnalysisRequest(source_type=SourceType.URL, source_value="https://example.com")
        with pytest.raises(CaptureError):
            await pipeline.analyze(request)

    async def test_deadline_aborts_capture(self, store, tmp_path, verdict_text) -> None:
        capturer = FakeCapturer(delay=30)
        evaluator = FakeEvaluator(verdict_text)
        pipeline = AnalysisPipeline(
            evaluator=evaluator, store=store, capturer=capturer, timeout_seconds=0.1
        )
        request = AnalysisRequest(source_type=SourceType.URL, source_value="https://example.com")

        with pytest.raises(AnalysisTimeoutError):
            await pipeline.analyze(request)

        assert capturer.closed
        assert evaluator.calls == []
        assert not (tmp_path / "results").exists()

    async def test_evaluator_failure_persists_nothing(self, store, tmp_path, png_bytes) -> None:
        evaluator = MagicMock()
        evaluator.evaluate.side_effect = EvaluationError("connection reset")
        pipeline = AnalysisPipeline(evaluator=evaluator, store=store)

        with pytest.raises(EvaluationError):
            await pipeline.analyze(_screenshot_request(png_bytes))
        assert not (tmp_path / "results").exists()

    async def test_persistence_failure_propagates(self, png_bytes, verdict_text) -> None:
        store = MagicMock()
        store.put.side_effect = PersistenceError("disk full")
        pipeline = AnalysisPipeline(evaluator=FakeEvaluator(verdict_text), store=store)
        with pytest.raises(PersistenceError):
            await pipeline.analyze(_screenshot_request(png_bytes))

    async def test_evaluations_are_not_assumed_deterministic(self, store, png_bytes) -> None:
        class VaryingEvaluator:
            def __init__(self):
                self.scores = iter([3, 9])

            def evaluate(self, image, rubric):
                return json.dumps(make_verdict(score=next(self.scores)))

        pipeline = AnalysisPipeline(evaluator=VaryingEvaluator(), store=store)
        first = await pipeline.analyze(_screenshot_request(png_bytes))
        second = await pipeline.analyze(_screenshot_request(png_bytes))

        assert first != second
        for result_id in (first, second):
            result = store.get(result_id).result
            assert 1 <= result.overall_score <= 10
            assert all(1 <= s <= 10 for s in result.categories.scores())

    async def test_shaping_and_persisting_run_off_the_event_loop(self, store, png_bytes, verdict_text) -> None:
        worker_threads = []

        def recording_shape_result(*args):
            worker_threads.append(threading.get_ident())
            return shape_result(*args)

        class RecordingStore(FileSystemResultStore):
            def put(self, result, image_bytes):
                worker_threads.append(threading.get_ident())
                return super().put(result, image_bytes)

        recording = RecordingStore(store.results_dir, store.screenshots_dir)
        pipeline = AnalysisPipeline(evaluator=FakeEvaluator(verdict_text), store=recording)

        with patch("design_critic.analyzer.pipeline.shape_result", recording_shape_result):
            await pipeline.analyze(_screenshot_request(png_bytes))

        assert len(worker_threads) == 2
        assert threading.get_ident() not in worker_threads

    async def test_slow_store_does_not_block_the_deadline(self, png_bytes, verdict_text) -> None:
        class SlowStore:
            def put(self, result, image_bytes):
                time.sleep(0.5)
                return "e" * 32

        pipeline = AnalysisPipeline(
            evaluator=FakeEvaluator(verdict_text), store=SlowStore(), timeout_seconds=0.1
        )
        started = time.monotonic()
        with pytest.raises(AnalysisTimeoutError):
            await pipeline.analyze(_screenshot_request(png_bytes))
        assert time.monotonic() - started < 0.4

    async def test_late_evaluation_is_never_persisted(self, store, tmp_path, png_bytes, verdict_text) -> None:
        class SlowEvaluator(FakeEvaluator):
            def evaluate(self, image, rubric):
                time.sleep(0.3)
                return super().evaluate(image, rubric)

        pipeline = AnalysisPipeline(
            evaluator=SlowEvaluator(verdict_text), store=store, timeout_seconds=0.1
        )
        with pytest.raises(AnalysisTimeoutError):
            await pipeline.analyze(_screenshot_request(png_bytes))

        await asyncio.sleep(0.4)
        assert not (tmp_path / "results").exists()


class TestBuildPipeline:
    def test_url_capture_follows_setting(self, settings) -> None:
        enabled = build_pipeline(settings.model_copy(update={"ALLOW_URL_INPUT": True}))
        disabled = build_pipeline(settings.model_copy(update={"ALLOW_URL_INPUT": False}))
        assert isinstance(enabled.capturer, WebpageCapturer)
        assert disabled.capturer is None

    def test_settings_flow_into_collaborators(self, settings) -> None:
        pipeline = build_pipeline(
            settings.model_copy(
                update={
                    "PIPELINE_TIMEOUT_SECONDS": 42,
                    "OVERALL_SCORE_MODE": "computed",
                    "EVALUATOR_MAX_ATTEMPTS": 2,
                }
            )
        )
        assert pipeline.timeout_seconds == 42
        assert pipeline.overall_score_mode == "computed"
        assert pipeline.evaluator.max_attempts == 2
        assert isinstance(pipeline.store, FileSystemResultStore)

    def test_redis_backend(self, settings, monkeypatch) -> None:
        created = {}

        class StubRedisStore(RedisResultStore):
            def __init__(self, redis_url):
                created["url"] = redis_url

        monkeypatch.setattr("design_critic.analyzer.pipeline.RedisResultStore", StubRedisStore)
        store = build_store(
            settings.model_copy(
                update={"RESULT_STORE_BACKEND": "redis", "REDIS_URL": "redis://cache:6379/2"}
            )
        )
        assert isinstance(store, StubRedisStore)
        assert created["url"] == "redis://cache:6379/2"
