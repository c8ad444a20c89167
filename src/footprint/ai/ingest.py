"""AI-assisted ingestion: free text and/or an image in, a candidate entry out.

The flow is:
1. Build the request parts (inline image first, then the user's text)
2. Ask Gemini for JSON constrained by the entry schema
3. Validate the JSON strictly against IngestionDraft
4. Let the caller assign an id and cover image, then insert it

Any failure along the way surfaces as a single IngestionError. Nothing is
ever written to the EntryStore from a partial or malformed result.
"""

from __future__ import annotations

import io

from google.genai import types
from PIL import Image, UnidentifiedImageError
from pydantic import BaseModel, ConfigDict, StrictFloat, StrictInt, StrictStr, ValidationError

from footprint.ai.client import AIClient, AIClientError, get_client
from footprint.ai.prompts import DEFAULT_USER_PROMPT, SYSTEM_INSTRUCTION, build_response_schema
from footprint.config import AIConfig
from footprint.core.models import Category, MediaItem, encode_cover_image, new_entry_id
from footprint.core.store import EntryStore
from footprint.utils.logging import LogContext, get_logger

logger = get_logger(__name__)

FALLBACK_MESSAGE = (
    "Could not analyze entry automatically. You can add it manually instead."
)


# =============================================================================
# Exceptions
# =============================================================================


class IngestionError(Exception):
    """Ingestion failed as a whole; the caller should offer manual entry.

    Attributes:
        message: What went wrong (safe to log).
        user_message: Actionable text to show the user.
        original_error: The underlying exception, if any.
    """

    user_message = FALLBACK_MESSAGE

    def __init__(self, message: str, original_error: Exception | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.original_error = original_error


class IngestionInFlightError(RuntimeError):
    """A second ingestion was submitted while one is still running."""

    pass


# =============================================================================
# Response Contract
# =============================================================================


class IngestionDraft(BaseModel):
    """The exact shape the model must return. Every field is required."""

    model_config = ConfigDict(extra="ignore")

    title: StrictStr
    category: Category
    date: StrictStr
    thoughts: StrictStr
    tags: list[StrictStr]
    rating: StrictInt | StrictFloat
    summary: StrictStr

    def to_entry(self, image_bytes: bytes | None = None, mime_type: str | None = None) -> MediaItem:
        """Turn the draft into an entry with a fresh id.

        If an image was part of the request it becomes the cover; the model
        never echoes images back.
        """
        cover_image = None
        if image_bytes:
            cover_image = encode_cover_image(image_bytes, mime_type or detect_image_mime_type(image_bytes))

        return MediaItem(
            id=new_entry_id(),
            title=self.title,
            category=self.category,
            date=self.date,
            thoughts=self.thoughts,
            tags=list(self.tags),
            rating=self.rating,
            summary=self.summary,
            cover_image=cover_image,
        )


def detect_image_mime_type(data: bytes) -> str:
    """Sniff an image's MIME type with Pillow.

    Raises:
        IngestionError: If the bytes are not a recognizable image.
    """
    try:
        with Image.open(io.BytesIO(data)) as image:
            image_format = image.format
    except (UnidentifiedImageError, OSError) as e:
        raise IngestionError("Attached file is not a recognizable image", e) from e

    mime_type = Image.MIME.get(image_format or "")
    if not mime_type:
        raise IngestionError(f"Unsupported image format: {image_format}")
    return mime_type


def _strip_code_fence(text: str) -> str:
    text = text.strip()
    if text.startswith("```json"):
        text = text[7:]
    elif text.startswith("```"):
        text = text[3:]
    if text.endswith("```"):
        text = text[:-3]
    return text.strip()


# =============================================================================
# Ingestion Service
# =============================================================================


class IngestionService:
    """Produces IngestionDrafts from free text and/or an image.

    The AI client is created lazily so that a missing API key only fails
    the ingestion call, not application start-up.
    """

    def __init__(self, client: AIClient | None = None, settings: AIConfig | None = None) -> None:
        self._client = client
        self._settings = settings

    def _get_client(self) -> AIClient:
        if self._client is None:
            self._client = get_client(settings=self._settings)
        return self._client

    def build_parts(
        self,
        prompt_text: str = "",
        image_bytes: bytes | None = None,
        mime_type: str | None = None,
    ) -> list[types.Part]:
        """Build request parts: inline image (if any) first, then the prompt."""
        parts: list[types.Part] = []
        if image_bytes:
            parts.append(
                types.Part.from_bytes(
                    data=image_bytes,
                    mime_type=mime_type or detect_image_mime_type(image_bytes),
                )
            )
        parts.append(types.Part.from_text(text=prompt_text.strip() or DEFAULT_USER_PROMPT))
        return parts

    def parse_draft(self, text: str) -> IngestionDraft:
        """Validate raw model output against the entry contract.

        Raises:
            IngestionError: On malformed JSON or any schema violation.
        """
        try:
            return IngestionDraft.model_validate_json(_strip_code_fence(text))
        except ValidationError as e:
            fields = sorted({".".join(str(p) for p in err["loc"]) or "<root>" for err in e.errors()})
            raise IngestionError(
                f"AI response did not match the entry schema ({', '.join(fields)})", e
            ) from e

    async def ingest(
        self,
        prompt_text: str = "",
        image_bytes: bytes | None = None,
        mime_type: str | None = None,
    ) -> IngestionDraft:
        """Ask the model for a structured entry. Makes exactly one attempt.

        Raises:
            IngestionError: On any failure (no key, network, bad response).
        """
        with LogContext("Analyzing entry", logger=logger):
            parts = self.build_parts(prompt_text, image_bytes, mime_type)
            try:
                client = self._get_client()
                response = await client.generate_structured(
                    parts=parts,
                    system_instruction=SYSTEM_INSTRUCTION,
                    response_schema=build_response_schema(),
                )
            except AIClientError as e:
                raise IngestionError(f"AI request failed: {e.message}", e) from e

            logger.debug(f"Draft received from {response.model} ({response.total_tokens} tokens)")
            return self.parse_draft(response.text)


class IngestionSession:
    """Single-flight wrapper used by front ends.

    Owns the ``busy`` flag: set before the request, cleared when it settles
    whether it succeeded or failed. Other store operations stay available
    while a request is outstanding.
    """

    def __init__(self, service: IngestionService, store: EntryStore) -> None:
        self._service = service
        self._store = store
        self.busy = False

    async def submit(
        self,
        prompt_text: str = "",
        image_bytes: bytes | None = None,
        mime_type: str | None = None,
    ) -> MediaItem:
        """Ingest and insert a new entry.

        Raises:
            IngestionInFlightError: If another submission is still running.
            IngestionError: If ingestion fails; the store is left untouched.
        """
        if self.busy:
            raise IngestionInFlightError("An ingestion request is already in progress")

        self.busy = True
        try:
            draft = await self._service.ingest(prompt_text, image_bytes, mime_type)
            entry = draft.to_entry(image_bytes, mime_type)
        finally:
            self.busy = False

        return self._store.insert(entry)
