# API package - FastAPI components
from .models import (
    SourceType,
    AnalysisRequest,
    CategoryScore,
    Categories,
    AISlopDetection,
    EvaluatorVerdict,
    AnalysisResult,
    AnalyzeResponse,
    StoredAnalysis,
)

__all__ = [
    # Models
    "SourceType",
    "AnalysisRequest",
    "CategoryScore",
    "Categories",
    "AISlopDetection",
    "EvaluatorVerdict",
    "AnalysisResult",
    "AnalyzeResponse",
    "StoredAnalysis",
]
