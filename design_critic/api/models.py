from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Annotated, List, Optional

from pydantic import BaseModel, ConfigDict, Field, StringConstraints
from pydantic.alias_generators import to_camel


Score = Annotated[float, Field(ge=1, le=10, strict=True)]
NonEmptyText = Annotated[str, StringConstraints(strip_whitespace=True, min_length=1)]


class SourceType(str, Enum):
    URL = "url"
    SCREENSHOT = "screenshot"


@dataclass(frozen=True)
class AnalysisRequest:
    """One submission, as accepted by request intake."""

    source_type: SourceType
    source_value: str
    image_bytes: Optional[bytes] = None


class _CamelModel(BaseModel):
    # Wire format is camelCase only; snake_case or unknown keys are rejected
    model_config = ConfigDict(
        alias_generator=to_camel,
        extra="forbid",
        frozen=True,
    )


# Models
class CategoryScore(_CamelModel):
    score: Score
    rationale: NonEmptyText


class Categories(_CamelModel):
    aesthetic_cohesion: CategoryScore
    hierarchy_layout: CategoryScore
    typography: CategoryScore
    color_contrast: CategoryScore
    imagery_iconography: CategoryScore
    brand_expression: CategoryScore
    system_consistency: CategoryScore
    visual_craft: CategoryScore
    ai_slop_indicators: CategoryScore
    emotional_resonance: CategoryScore

    def scores(self) -> List[float]:
        return [getattr(self, name).score for name in type(self).model_fields]


class AISlopDetection(_CamelModel):
    score: Score
    indicators: List[str] = Field(default_factory=list)


class EvaluatorVerdict(_CamelModel):
    """Verdict as returned by the evaluator, before provenance is attached."""

    overall_score: Optional[Score] = None
    categories: Categories
    summary: NonEmptyText
    ai_slop_detection: AISlopDetection
    top_refinements: Annotated[List[str], Field(min_length=1)]


class AnalysisResult(EvaluatorVerdict):
    overall_score: Score
    timestamp: datetime
    source_type: SourceType
    source_value: str


class AnalyzeResponse(BaseModel):
    id: str
    success: bool = True


class ErrorResponse(BaseModel):
    error: str


@dataclass(frozen=True)
class StoredAnalysis:
    result: AnalysisResult
    image_bytes: bytes
