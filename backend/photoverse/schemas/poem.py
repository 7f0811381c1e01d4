"""
PhotoVerse Backend — Pydantic Domain & API Schemas
====================================================

What:  The Poem result, the per-call GenerationRequest, the style/mood
       enums with their bilingual labels, and the HTTP response models.
Why:   Provider output is untrusted text. Parsing it through the Poem model
       is the single place where "title and poem are both non-empty strings"
       is enforced, whichever provider produced it.
"""

import base64
import binascii
from enum import Enum
from typing import Dict, List, Literal, Optional

from pydantic import BaseModel, Field, field_validator

Language = Literal["es", "en"]
SUPPORTED_LANGUAGES = ("es", "en")


# ══════════════════════════════════════════════════════════════════════════
# Style & Mood
# ══════════════════════════════════════════════════════════════════════════


class PoemStyle(str, Enum):
    SONNET = "sonnet"
    HAIKU = "haiku"
    FREE_VERSE = "free_verse"
    ROMANTIC = "romantic"
    MINIMALIST = "minimalist"
    CLASSIC = "classic"

    def label(self, language: str) -> str:
        return STYLE_LABELS[self][language]


class PoemMood(str, Enum):
    NOSTALGIA = "nostalgia"
    CELEBRATION = "celebration"
    REFLECTION = "reflection"
    LOVE = "love"
    ADVENTURE = "adventure"
    SERENITY = "serenity"

    def label(self, language: str) -> str:
        return MOOD_LABELS[self][language]


# Display labels only. Generation uses them to name the style/mood in the
# instruction's language; nothing else branches on them.
STYLE_LABELS: Dict[PoemStyle, Dict[str, str]] = {
    PoemStyle.SONNET: {"es": "Soneto", "en": "Sonnet"},
    PoemStyle.HAIKU: {"es": "Haiku", "en": "Haiku"},
    PoemStyle.FREE_VERSE: {"es": "Verso Libre", "en": "Free Verse"},
    PoemStyle.ROMANTIC: {"es": "Romántico", "en": "Romantic"},
    PoemStyle.MINIMALIST: {"es": "Minimalista", "en": "Minimalist"},
    PoemStyle.CLASSIC: {"es": "Clásico", "en": "Classic"},
}

MOOD_LABELS: Dict[PoemMood, Dict[str, str]] = {
    PoemMood.NOSTALGIA: {"es": "Nostalgia", "en": "Nostalgia"},
    PoemMood.CELEBRATION: {"es": "Celebración", "en": "Celebration"},
    PoemMood.REFLECTION: {"es": "Reflexión", "en": "Reflection"},
    PoemMood.LOVE: {"es": "Amor", "en": "Love"},
    PoemMood.ADVENTURE: {"es": "Aventura", "en": "Adventure"},
    PoemMood.SERENITY: {"es": "Serenidad", "en": "Serenity"},
}


# ══════════════════════════════════════════════════════════════════════════
# Domain Models
# ══════════════════════════════════════════════════════════════════════════


class Poem(BaseModel):
    """
    What:  A generated poem.
    Format:
        poem uses "\\n" between verse lines and "\\n\\n" between stanzas.
        The text is kept exactly as the provider wrote it; only emptiness
        is checked.
    """
    title: str = Field(description="Poem title")
    poem: str = Field(description="Poem body; \\n between lines, \\n\\n between stanzas")

    @field_validator("title", "poem")
    @classmethod
    def must_not_be_blank(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("must be a non-empty string")
        return v


class GenerationRequest(BaseModel):
    """
    What:  Everything a provider needs for one poem. Built per call, never stored.
    """
    image_base64: str = Field(description="Photo bytes, base64-encoded")
    mime_type: str = Field(description="Photo MIME type, e.g. image/jpeg")
    style: PoemStyle
    mood: PoemMood
    language: Language = "es"

    @field_validator("image_base64")
    @classmethod
    def must_be_base64(cls, v: str) -> str:
        try:
            decoded = base64.b64decode(v, validate=True)
        except (binascii.Error, ValueError) as e:
            raise ValueError("image_base64 is not valid base64") from e
        if not decoded:
            raise ValueError("image_base64 is empty")
        return v

    @property
    def image_bytes(self) -> bytes:
        return base64.b64decode(self.image_base64)


# ══════════════════════════════════════════════════════════════════════════
# Response Models
# ══════════════════════════════════════════════════════════════════════════


class PoemResponse(BaseModel):
    """
    What:  Response after a poem was generated.
    Who:   Returned by POST /api/poems with HTTP 201 Created.

    share_text and download_filename save the client from rebuilding them
    for the share sheet and the PDF export.
    """
    title: str
    poem: str
    share_text: str = Field(description="Title, poem and optional signature as plain text")
    download_filename: str = Field(description="Suggested filename for the PDF export")


class OptionLabel(BaseModel):
    es: str
    en: str


class SelectionOption(BaseModel):
    id: str = Field(description="Value to send back as style/mood")
    label: OptionLabel
    display: str = Field(description="Label in the requested language")


class OptionsResponse(BaseModel):
    styles: List[SelectionOption]
    moods: List[SelectionOption]


class ErrorResponse(BaseModel):
    """
    What:  Standardized error response format for all API errors.

    Fields:
        error: Machine-readable error code (e.g., "rate_limit_exceeded")
        message: Human-readable description for display to users
        details: Optional extra context (e.g., which field failed validation)
        request_id: Correlation ID for tracing this error in server logs
    """
    error: str = Field(description="Machine-readable error code")
    message: str = Field(description="Human-readable error description")
    details: Optional[dict] = Field(default=None, description="Additional error context")
    request_id: Optional[str] = Field(default=None, description="Request correlation ID")


class HealthResponse(BaseModel):
    status: str = Field(description="Overall service status: healthy, degraded, unhealthy")
    version: str = Field(description="Application version")
    providers: Dict[str, str] = Field(description="Per-provider status: configured, missing_key")
    uptime_seconds: float = Field(description="Seconds since service started")
