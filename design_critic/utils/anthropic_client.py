"""
Anthropic API client utilities for Design Critic.

This module wraps the Anthropic Claude vision API as the design evaluator:
one image plus the rubric in, raw verdict text out.
"""

import logging

import anthropic
from tenacity import (
    Retrying,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from design_critic.exceptions import EvaluationError
from design_critic.utils.image_processor import EncodedImage

logger = logging.getLogger(__name__)

TRANSIENT_ERRORS = (anthropic.APIConnectionError, anthropic.RateLimitError)


class EvaluatorClient:
    """
    Sends a screenshot and the critique rubric to Claude and returns its text.

    Constructed once at startup and injected into the pipeline. The instance
    holds no per-request state, so concurrent requests can share it.
    """

    def __init__(
        self,
        api_key: str,
        model: str = "claude-sonnet-4-20250514",
        max_tokens: int = 4096,
        temperature: float = 0.7,
        timeout: float = 55.0,
        max_attempts: int = 1,
        retry_wait=None,
        client: anthropic.Anthropic = None,
    ):
        """
        Args:
            api_key: Anthropic API key
            model: Claude model name
            max_tokens: Response length budget
            temperature: Sampling temperature
            timeout: Seconds allowed for one round trip
            max_attempts: Attempts for transient failures (1 = single attempt)
            retry_wait: tenacity wait strategy between attempts
            client: Pre-built Anthropic client (tests)
        """
        self.model = model
        self.max_tokens = max_tokens
        self.temperature = temperature
        self.max_attempts = max_attempts
        self.retry_wait = retry_wait or wait_exponential(multiplier=1, min=2, max=10)
        self._client = client or anthropic.Anthropic(
            api_key=api_key, timeout=timeout, max_retries=0
        )

    def evaluate(self, image: EncodedImage, rubric: str) -> str:
        """
        Run one critique round trip.

        Retries only on connection errors and rate limits, and only when
        max_attempts > 1. Does NOT retry authentication or request errors.

        Args:
            image: Encoded screenshot
            rubric: Critique instructions

        Returns:
            Raw text produced by the model

        Raises:
            EvaluationError: On API failure or an empty response
        """
        retrying = Retrying(
            stop=stop_after_attempt(self.max_attempts),
            wait=self.retry_wait,
            retry=retry_if_exception_type(TRANSIENT_ERRORS),
            reraise=True,
        )

        try:
            message = retrying(self._create_message, image, rubric)
        except anthropic.APIError as e:
            logger.error(f"❌ Evaluator call failed: {str(e)}")
            raise EvaluationError(f"Evaluator call failed: {str(e)}") from e

        text = "".join(
            block.text for block in message.content if getattr(block, "type", None) == "text"
        ).strip()

        if not text:
            logger.error(f"❌ Evaluator returned an empty response (stop_reason={message.stop_reason})")
            raise EvaluationError("Evaluator returned an empty response")

        logger.info(f"✅ Evaluator responded with {len(text)} chars")
        return text

    def _create_message(self, image: EncodedImage, rubric: str):
        return self._client.messages.create(
            model=self.model,
            max_tokens=self.max_tokens,
            temperature=self.temperature,
            messages=[
                {
                    "role": "user",
                    "content": [
                        {
                            "type": "image",
                            "source": {
                                "type": "base64",
                                "media_type": image.media_type,
                                "data": image.data,
                            },
                        },
                        {
                            "type": "text",
                            "text": rubric,
                        },
                    ],
                }
            ],
        )
