import json
import logging
import re

import json5

from design_critic.exceptions import MalformedAnalysisError

logger = logging.getLogger(__name__)

_FENCED_BLOCK = re.compile(r"```(?:json)?\s*(.*?)```", re.DOTALL)


def extract_json_text(response_text: str) -> str:
    """Strip Markdown code fences and any prose around the outermost object"""
    text = response_text.strip()

    # Keep only the body of the first fenced block; prose after it is dropped
    fenced = _FENCED_BLOCK.search(text)
    if fenced:
        text = fenced.group(1).strip()

    # Extract JSON from response if it's wrapped in text
    start_idx = text.find("{")
    end_idx = text.rfind("}")
    if start_idx != -1 and end_idx > start_idx:
        text = text[start_idx : end_idx + 1]

    return text


def parse_json_object(response_text: str) -> dict:
    """
    Layered JSON parsing of evaluator output.

    Attempts, in order:
    1. Standard json.loads()
    2. json5 parser (tolerates comments and trailing commas)

    Nothing is invented: text that neither parser accepts, or that parses to
    something other than an object, is rejected.

    Args:
        response_text: Raw text response from the evaluator

    Returns:
        Parsed dictionary

    Raises:
        MalformedAnalysisError: If all parsing attempts fail
    """
    text = extract_json_text(response_text)
    errors = []

    # Layer 1: Try standard JSON parser first
    try:
        result = json.loads(text)
    except json.JSONDecodeError as e:
        errors.append(f"Standard JSON: {str(e)}")
        logger.debug(f"Layer 1 failed: {str(e)}")

        # Layer 2: Try json5 (tolerates trailing commas and comments)
        try:
            result = json5.loads(text)
            logger.info("Evaluator output parsed with json5 fallback")
        except Exception as e5:
            errors.append(f"JSON5: {str(e5)}")
            logger.error(
                f"❌ Evaluator output is not JSON ({'; '.join(errors)}). "
                f"Raw response ({len(response_text)} chars): {response_text[:2000]}"
            )
            raise MalformedAnalysisError(
                f"Failed to parse analysis output: {'; '.join(errors)}"
            ) from e5

    if not isinstance(result, dict):
        logger.error(
            f"❌ Evaluator output is JSON but not an object: {response_text[:2000]}"
        )
        raise MalformedAnalysisError(
            f"Expected a JSON object, got {type(result).__name__}"
        )

    return result
