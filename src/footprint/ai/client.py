"""Central Gemini API Client for Cultural Footprint.

This module is the SOLE INTERFACE to the Gemini API. No other file in the
codebase should import google-genai's client.

The client provides:
- Typed exceptions for predictable error handling
- Structured (JSON schema constrained) generation
- Security-first logging (never logs secrets, prompts or images)

It performs no retries: one failed request is final for the caller.

Example:
    >>> client = get_client()
    >>> response = await client.generate_structured(
    ...     parts=[types.Part.from_text(text="Watched Dune today")],
    ...     system_instruction=SYSTEM_INSTRUCTION,
    ...     response_schema=build_response_schema(),
    ... )
    >>> response.text
    '{"title": "Dune", ...}'
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass, field
from typing import Any, Literal

from google import genai
from google.genai import errors as genai_errors
from google.genai import types

from footprint.config import AIConfig, APIKeyNotFoundError, get_api_key, get_config
from footprint.utils.logging import RedactingFilter, get_logger


logger = get_logger(__name__)
logger.addFilter(RedactingFilter())


# =============================================================================
# Exception Hierarchy
# =============================================================================


class AIClientError(Exception):
    """Base exception for all AI client errors.

    Attributes:
        message: Human-readable error description (safe to log).
        retriable: Whether trying again later could succeed.
        original_error: The underlying exception that caused this error.
    """

    def __init__(
        self,
        message: str,
        retriable: bool = False,
        original_error: Exception | None = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.retriable = retriable
        self.original_error = original_error

    def __str__(self) -> str:
        return self.message


class AIUnavailableError(AIClientError):
    """AI cannot be used at all (disabled, no key, SDK could not start)."""

    def __init__(
        self,
        reason: Literal["disabled", "no_api_key", "sdk_error"],
        message: str | None = None,
        original_error: Exception | None = None,
    ) -> None:
        self.reason = reason
        default_messages = {
            "disabled": "AI features are disabled in configuration",
            "no_api_key": "No Gemini API key configured",
            "sdk_error": "Gemini client could not be initialized",
        }
        super().__init__(
            message or default_messages.get(reason, f"AI unavailable: {reason}"),
            original_error=original_error,
        )


class AIAuthenticationError(AIClientError):
    """The API key was rejected (401/403)."""

    pass


class AIRateLimitError(AIClientError):
    """Rate limit or quota exceeded (429)."""

    def __init__(self, message: str, original_error: Exception | None = None) -> None:
        super().__init__(message, retriable=True, original_error=original_error)


class AIServerError(AIClientError):
    """Gemini returned a 5xx error."""

    def __init__(self, message: str, original_error: Exception | None = None) -> None:
        super().__init__(message, retriable=True, original_error=original_error)


class AITimeoutError(AIClientError):
    """The request did not finish within the configured timeout."""

    def __init__(self, message: str, original_error: Exception | None = None) -> None:
        super().__init__(message, retriable=True, original_error=original_error)


class AIRequestError(AIClientError):
    """Bad request, blocked or empty response, or any other failure."""

    pass


# =============================================================================
# Response Data Class
# =============================================================================


@dataclass
class AIResponse:
    """Response from an AI generation request.

    Attributes:
        text: The generated text (JSON for structured calls).
        model: The model that generated the response.
        prompt_tokens: Number of tokens in the prompt (if available).
        completion_tokens: Number of tokens in the completion (if available).
        finish_reason: Why generation stopped (if available).
        raw_response: The original response object from the API.
    """

    text: str
    model: str
    prompt_tokens: int | None = None
    completion_tokens: int | None = None
    finish_reason: str | None = None
    raw_response: Any = field(default=None, repr=False)

    @property
    def total_tokens(self) -> int:
        return (self.prompt_tokens or 0) + (self.completion_tokens or 0)


# =============================================================================
# AI Client
# =============================================================================


class AIClient:
    """Asynchronous client for Gemini structured generation.

    Attributes:
        settings: AI configuration settings.
        model_name: Name of the Gemini model to use.
    """

    def __init__(
        self,
        api_key: str | None = None,
        settings: AIConfig | None = None,
    ) -> None:
        """Initialize the AI client.

        Args:
            api_key: Gemini API key. If None, read from configuration.
            settings: AI configuration settings. Uses loaded config if None.

        Raises:
            AIUnavailableError: If AI is disabled, no key is available or the
                SDK client cannot be created.
        """
        self.settings = settings or get_config().ai

        if not self.settings.enabled:
            raise AIUnavailableError("disabled")

        if api_key is None:
            try:
                api_key = get_api_key().get_secret_value()
            except APIKeyNotFoundError as e:
                raise AIUnavailableError("no_api_key", original_error=e) from e

        try:
            self._client = genai.Client(api_key=api_key)
        except Exception as e:
            raise AIUnavailableError(
                "sdk_error", f"Gemini client could not be initialized: {type(e).__name__}", e
            ) from e

        logger.debug(f"AI client initialized with model: {self.settings.model_name}")

    @property
    def model_name(self) -> str:
        return self.settings.model_name

    async def generate_structured(
        self,
        parts: list[types.Part],
        system_instruction: str,
        response_schema: types.Schema,
        temperature: float | None = None,
    ) -> AIResponse:
        """Generate a JSON response constrained by a schema.

        Args:
            parts: User content parts (inline image and/or text).
            system_instruction: Fixed instruction guiding the model.
            response_schema: Schema the JSON output must follow.
            temperature: Override the configured temperature.

        Returns:
            AIResponse whose text is the raw JSON document.

        Raises:
            AIClientError: Any subclass, depending on the failure.
        """
        config = types.GenerateContentConfig(
            system_instruction=system_instruction,
            response_mime_type="application/json",
            response_schema=response_schema,
            temperature=temperature if temperature is not None else self.settings.temperature,
        )
        contents = [types.Content(role="user", parts=parts)]

        logger.debug(f"Requesting structured output from {self.model_name} ({len(parts)} part(s))")

        try:
            response = await asyncio.wait_for(
                self._client.aio.models.generate_content(
                    model=self.settings.model_name,
                    contents=contents,
                    config=config,
                ),
                timeout=self.settings.timeout_seconds,
            )
        except asyncio.TimeoutError as e:
            raise AITimeoutError(
                f"No response within {self.settings.timeout_seconds}s", original_error=e
            ) from e
        except genai_errors.APIError as e:
            raise self._map_api_error(e) from e
        except Exception as e:
            raise AIRequestError(f"AI request failed: {type(e).__name__}: {e}", original_error=e) from e

        return self._parse_response(response)

    # =========================================================================
    # Private Methods
    # =========================================================================

    def _map_api_error(self, error: genai_errors.APIError) -> AIClientError:
        """Map a google-genai API error to our hierarchy by status code."""
        code = getattr(error, "code", None)
        detail = getattr(error, "message", None) or str(error)

        if code in (401, 403):
            return AIAuthenticationError(f"Authentication failed - check API key ({code})", original_error=error)
        if code == 429:
            return AIRateLimitError(f"Rate limit or quota exceeded: {detail}", original_error=error)
        if isinstance(code, int) and code >= 500:
            return AIServerError(f"Gemini server error {code}: {detail}", original_error=error)
        return AIRequestError(f"Invalid request ({code}): {detail}", original_error=error)

    def _parse_response(self, response: Any) -> AIResponse:
        """Convert a Gemini response into an AIResponse.

        Raises:
            AIRequestError: If the response is blocked or has no text.
        """
        candidates = getattr(response, "candidates", None)
        if not candidates:
            feedback = getattr(response, "prompt_feedback", None)
            if feedback:
                raise AIRequestError(f"Response blocked: {feedback}")
            raise AIRequestError("Empty response from API")

        finish_reason = getattr(getattr(candidates[0], "finish_reason", None), "name", None)
        if not isinstance(finish_reason, str):
            finish_reason = None
        if finish_reason == "SAFETY":
            raise AIRequestError("Response blocked due to safety settings")

        text = response.text
        if not text or not text.strip():
            raise AIRequestError("No response text from AI")

        prompt_tokens = None
        completion_tokens = None
        metadata = getattr(response, "usage_metadata", None)
        if metadata is not None:
            prompt_tokens = getattr(metadata, "prompt_token_count", None)
            completion_tokens = getattr(metadata, "candidates_token_count", None)

        return AIResponse(
            text=text,
            model=self.settings.model_name,
            prompt_tokens=prompt_tokens,
            completion_tokens=completion_tokens,
            finish_reason=finish_reason,
            raw_response=response,
        )


# =============================================================================
# Module-Level Functions
# =============================================================================


def get_client(
    api_key: str | None = None,
    settings: AIConfig | None = None,
) -> AIClient:
    """Get a configured AI client instance.

    Raises:
        AIUnavailableError: If the client cannot be created.
    """
    return AIClient(api_key=api_key, settings=settings)
