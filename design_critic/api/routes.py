import asyncio
from typing import Optional
from fastapi import APIRouter, Depends, File, Form, Request, UploadFile
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse, Response
import logging

from design_critic.analyzer.pipeline import AnalysisPipeline
from design_critic.api.intake import build_request
from design_critic.api.models import AnalyzeResponse, ErrorResponse
from design_critic.config import Settings
from design_critic.core.storage import ResultStore
from design_critic.exceptions import DesignCriticError, InputValidationError

logger = logging.getLogger(__name__)

# Create router
router = APIRouter()


def get_settings(request: Request) -> Settings:
    return request.app.state.settings


def get_pipeline(request: Request) -> AnalysisPipeline:
    return request.app.state.pipeline


def get_store(request: Request) -> ResultStore:
    return request.app.state.pipeline.store


def _error(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"error": message})


async def request_validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Malformed form fields get the same flat 400 body as every other rejection"""
    logger.info(f"Rejected malformed request to {request.url.path}: {exc.errors()}")
    return _error(400, "Invalid request type")


ANALYZE_ERRORS = {400: {"model": ErrorResponse}, 500: {"model": ErrorResponse}}
LOOKUP_ERRORS = {404: {"model": ErrorResponse}, 500: {"model": ErrorResponse}}


@router.get("/")
async def root(settings: Settings = Depends(get_settings)):
    return {
        "service": "Design Critic",
        "status": "running",
        "url_input_enabled": settings.ALLOW_URL_INPUT,
        "endpoints": {
            "analyze": "/analyze (POST)",
            "result": "/results/{id}.json (GET)",
            "screenshot": "/screenshots/{id}.png (GET)",
        },
    }


@router.post("/analyze", response_model=AnalyzeResponse, responses=ANALYZE_ERRORS)
async def analyze_design(
    source_type: Optional[str] = Form(None, alias="type"),
    value: Optional[str] = Form(None),
    screenshot: Optional[UploadFile] = File(None),
    settings: Settings = Depends(get_settings),
    pipeline: AnalysisPipeline = Depends(get_pipeline),
):
    """
    Critiques a screenshot (or, when enabled, a captured URL) and stores the verdict.

    Multipart form fields:
    - type: "screenshot" or "url"
    - screenshot: the image file (type=screenshot)
    - value: the website URL (type=url)

    Returns {"id": ..., "success": true}; fetch the verdict from /results/{id}.json.
    """
    try:
        data = None
        filename = None
        content_type = None
        if screenshot is not None:
            # Read one byte past the limit so oversized uploads are detected
            data = await screenshot.read(settings.MAX_UPLOAD_BYTES + 1)
            filename = screenshot.filename
            content_type = screenshot.content_type

        analysis_request = build_request(
            source_type,
            value=value,
            filename=filename,
            content_type=content_type,
            data=data,
            allow_url_input=settings.ALLOW_URL_INPUT,
            max_upload_bytes=settings.MAX_UPLOAD_BYTES,
        )
    except InputValidationError as e:
        logger.info(f"Rejected submission: {e.public_message}")
        return _error(e.status_code, e.public_message)

    try:
        result_id = await pipeline.analyze(analysis_request)
    except DesignCriticError as e:
        logger.exception(
            f"ERROR: Analysis failed for {analysis_request.source_value}: {str(e)}"
        )
        return _error(e.status_code, e.public_message)
    except Exception as e:
        logger.exception(
            f"ERROR: Unexpected failure for {analysis_request.source_value}: {str(e)}"
        )
        return _error(500, "Failed to analyze design. Please try again.")

    return AnalyzeResponse(id=result_id, success=True)


@router.get("/results/{result_id}.json", responses=LOOKUP_ERRORS)
async def get_result(result_id: str, store: ResultStore = Depends(get_store)):
    """Returns the stored analysis JSON exactly as persisted."""
    try:
        stored = await asyncio.to_thread(store.get, result_id)
    except DesignCriticError as e:
        return _error(e.status_code, e.public_message)

    if stored is None:
        return _error(404, "Analysis not found")

    return JSONResponse(content=stored.result.model_dump(mode="json", by_alias=True))


@router.get("/screenshots/{result_id}.png", responses=LOOKUP_ERRORS)
async def get_screenshot(result_id: str, store: ResultStore = Depends(get_store)):
    """Returns the analyzed image as PNG."""
    try:
        stored = await asyncio.to_thread(store.get, result_id)
    except DesignCriticError as e:
        return _error(e.status_code, e.public_message)

    if stored is None:
        return _error(404, "Analysis not found")

    return Response(content=stored.image_bytes, media_type="image/png")


@router.get("/health")
async def health_check():
    return {"status": "healthy"}
