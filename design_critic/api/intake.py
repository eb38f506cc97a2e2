"""
Request intake: turns a submitted form into a validated AnalysisRequest.
"""

from typing import Optional

from pydantic import HttpUrl, TypeAdapter, ValidationError

from design_critic.api.models import AnalysisRequest, SourceType
from design_critic.exceptions import InputValidationError
from design_critic.utils.image_processor import MAX_UPLOAD_BYTES, normalize_upload

_url_adapter = TypeAdapter(HttpUrl)


def validate_url(value: Optional[str]) -> str:
    if not value or not value.strip():
        raise InputValidationError("URL is required")

    value = value.strip()
    try:
        _url_adapter.validate_python(value)
    except ValidationError:
        raise InputValidationError("Invalid URL format")
    return value


def build_request(
    source_type: Optional[str],
    value: Optional[str] = None,
    filename: Optional[str] = None,
    content_type: Optional[str] = None,
    data: Optional[bytes] = None,
    allow_url_input: bool = False,
    max_upload_bytes: int = MAX_UPLOAD_BYTES,
) -> AnalysisRequest:
    """
    Validate one submission.

    Args:
        source_type: Form field `type`, "url" or "screenshot"
        value: Form field `value` (URL submissions)
        filename: Uploaded file name (screenshot submissions)
        content_type: Declared media type of the upload
        data: Uploaded bytes, None when no file was attached
        allow_url_input: Whether URL submissions are enabled
        max_upload_bytes: Upload size limit

    Raises:
        InputValidationError: With the message returned to the caller
    """
    if source_type == SourceType.URL.value:
        if not allow_url_input:
            raise InputValidationError("URL analysis is disabled")
        url = validate_url(value)
        return AnalysisRequest(source_type=SourceType.URL, source_value=url)

    if source_type == SourceType.SCREENSHOT.value:
        if data is None or not filename:
            raise InputValidationError("Screenshot file is required")
        png_bytes = normalize_upload(data, content_type, max_upload_bytes)
        return AnalysisRequest(
            source_type=SourceType.SCREENSHOT,
            source_value=filename,
            image_bytes=png_bytes,
        )

    raise InputValidationError("Invalid request type")
