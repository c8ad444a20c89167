"""AI module for Cultural Footprint.

Provides the Gemini-backed ingestion path that turns free text and/or an
image into a structured entry draft. client.py is the SOLE interface to
the Gemini API.

Exports:
    - AIClient / get_client: structured generation over google-genai
    - IngestionService: one-shot text/image -> IngestionDraft
    - IngestionSession: single-flight submit that inserts into an EntryStore
    - Exception hierarchy for typed error handling
"""

from footprint.ai.client import (
    AIAuthenticationError,
    AIClient,
    AIClientError,
    AIRateLimitError,
    AIRequestError,
    AIResponse,
    AIServerError,
    AITimeoutError,
    AIUnavailableError,
    get_client,
)
from footprint.ai.ingest import (
    FALLBACK_MESSAGE,
    IngestionDraft,
    IngestionError,
    IngestionInFlightError,
    IngestionService,
    IngestionSession,
    detect_image_mime_type,
)
from footprint.ai.prompts import DEFAULT_USER_PROMPT, SYSTEM_INSTRUCTION, build_response_schema

__all__ = [
    # Client
    "AIClient",
    "AIResponse",
    "get_client",
    # Ingestion
    "IngestionDraft",
    "IngestionService",
    "IngestionSession",
    "detect_image_mime_type",
    "FALLBACK_MESSAGE",
    # Prompts
    "SYSTEM_INSTRUCTION",
    "DEFAULT_USER_PROMPT",
    "build_response_schema",
    # Exceptions
    "AIClientError",
    "AIUnavailableError",
    "AIAuthenticationError",
    "AIRateLimitError",
    "AIServerError",
    "AITimeoutError",
    "AIRequestError",
    "IngestionError",
    "IngestionInFlightError",
]
