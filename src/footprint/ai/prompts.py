"""Prompt text and response schema for entry ingestion."""

from __future__ import annotations

from google.genai import types

from footprint.core.models import Category

SYSTEM_INSTRUCTION = """You are a personal cultural archivist.
Your goal is to analyze the user's input (which could be a text review, a photo of a book cover, \
a movie poster, or a screenshot of a music player) and extract structured data for a personal \
media tracking log.

Classify the item into exactly one of these categories: 'Movie' (电影), 'TV' (电视剧), \
'Book' (书籍), 'Music' (音乐).

If the input is just an image, infer the title and details from visual cues.
If the input contains text, extract the user's feelings and impressions as the thoughts.
If the user gave no impressions, write a brief, factual note about the work instead.

Return a JSON object."""

DEFAULT_USER_PROMPT = "Analyze this item."

REQUIRED_FIELDS = ["title", "category", "date", "thoughts", "tags", "rating", "summary"]


def build_response_schema() -> types.Schema:
    """Schema every ingestion response must satisfy; all fields are required."""
    return types.Schema(
        type=types.Type.OBJECT,
        properties={
            "title": types.Schema(type=types.Type.STRING, description="The title of the work"),
            "category": types.Schema(
                type=types.Type.STRING,
                enum=[category.value for category in Category],
            ),
            "date": types.Schema(
                type=types.Type.STRING,
                description="Date consumed in YYYY-MM-DD format. Use today if unknown.",
            ),
            "thoughts": types.Schema(
                type=types.Type.STRING,
                description=(
                    "The user's thoughts or first impressions. If not provided, "
                    "generate a brief interesting fact or summary."
                ),
            ),
            "tags": types.Schema(
                type=types.Type.ARRAY,
                items=types.Schema(type=types.Type.STRING),
                description="3-5 relevant tags (genre, mood, etc.)",
            ),
            "rating": types.Schema(type=types.Type.NUMBER, description="Rating from 1 to 5"),
            "summary": types.Schema(
                type=types.Type.STRING,
                description="A one-sentence objective summary of the work.",
            ),
        },
        required=list(REQUIRED_FIELDS),
    )
