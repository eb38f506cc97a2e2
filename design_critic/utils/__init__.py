# Utils package - Utility modules organized by domain
from .anthropic_client import EvaluatorClient
from .json_parser import parse_json_object
from .image_processor import EncodedImage, normalize_upload, prepare_for_evaluator

__all__ = [
    "EvaluatorClient",
    "parse_json_object",
    "EncodedImage",
    "normalize_upload",
    "prepare_for_evaluator",
]
