"""
Result validation and shaping.

Turns raw evaluator text into an immutable AnalysisResult: parse, enforce the
verdict schema, settle the overall score, and attach provenance.
"""

import logging
from datetime import datetime, timezone
from typing import Optional

from pydantic import ValidationError

from design_critic.api.models import AnalysisRequest, AnalysisResult, EvaluatorVerdict
from design_critic.exceptions import MalformedAnalysisError
from design_critic.utils.json_parser import parse_json_object

logger = logging.getLogger(__name__)

OVERALL_SCORE_REPORTED = "reported"
OVERALL_SCORE_COMPUTED = "computed"


def compute_overall_score(verdict: EvaluatorVerdict) -> float:
    """Mean of the ten category scores, rounded to one decimal"""
    scores = verdict.categories.scores()
    return round(sum(scores) / len(scores), 1)


def shape_result(
    raw_text: str,
    request: AnalysisRequest,
    overall_score_mode: str = OVERALL_SCORE_REPORTED,
    now: Optional[datetime] = None,
) -> AnalysisResult:
    """
    Validate evaluator output and build the durable result.

    Args:
        raw_text: Text returned by the evaluator
        request: The originating request (provides sourceType/sourceValue)
        overall_score_mode: "reported" keeps the evaluator's overallScore,
            "computed" replaces it with the category mean
        now: Creation instant (defaults to the current UTC time)

    Returns:
        AnalysisResult

    Raises:
        MalformedAnalysisError: If the text is not JSON or violates the schema
    """
    data = parse_json_object(raw_text)

    try:
        verdict = EvaluatorVerdict.model_validate(data)
    except ValidationError as e:
        logger.error(
            f"❌ Evaluator output failed schema validation "
            f"({e.error_count()} errors): {e}"
        )
        raise MalformedAnalysisError(
            f"Analysis output does not match the expected schema: {e.error_count()} errors"
        ) from e

    if overall_score_mode == OVERALL_SCORE_COMPUTED:
        overall_score = compute_overall_score(verdict)
        if verdict.overall_score is not None and verdict.overall_score != overall_score:
            logger.info(
                f"Replacing reported overall score {verdict.overall_score} "
                f"with computed {overall_score}"
            )
    elif overall_score_mode == OVERALL_SCORE_REPORTED:
        if verdict.overall_score is None:
            raise MalformedAnalysisError("Analysis output is missing overallScore")
        overall_score = verdict.overall_score
    else:
        raise ValueError(f"Unknown overall score mode: {overall_score_mode}")

    # Models accept their camelCase wire names only
    return AnalysisResult.model_validate(
        {
            "overallScore": overall_score,
            "categories": verdict.categories,
            "summary": verdict.summary,
            "aiSlopDetection": verdict.ai_slop_detection,
            "topRefinements": verdict.top_refinements,
            "timestamp": now or datetime.now(timezone.utc),
            "sourceType": request.source_type,
            "sourceValue": request.source_value,
        }
    )
