"""
PhotoVerse Backend — Poem Route Handler
=========================================

What:  POST /api/poems: upload a photo with a style and mood, get a poem.
How:   Reads the multipart upload, validates and encodes the photo, hands
       everything to PoemGenerationService, shapes the PoemResponse.

Request Flow:
    1. Client sends multipart/form-data: file, style, mood, language, author?
    2. ImageService checks name, declared type and reported size, then the
       bytes are read, the format is sniffed and the photo is base64-encoded
    3. PoemGenerationService: rate limit → Gemini → (Claude) → Poem
    4. 201 Created with title, poem, share text and PDF filename

Errors are formatted by the global exception handlers in main.py.
"""

import logging
from typing import Optional

from fastapi import APIRouter, File, Form, Request, UploadFile

from photoverse.config import settings
from photoverse.schemas.poem import ErrorResponse, PoemMood, PoemResponse, PoemStyle
from photoverse.services.image_service import image_service
from photoverse.services.poem_service import poem_service
from photoverse.services.rate_limiter import DEFAULT_CALLER
from photoverse.services.share_service import build_poem_response

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["Poems"])


def caller_id_for(request: Request) -> str:
    """Rate-limit key: one global key, or the client IP in "client" scope."""
    if settings.rate_limit_scope == "client" and request.client:
        return request.client.host
    return DEFAULT_CALLER


@router.post(
    "/poems",
    status_code=201,
    response_model=PoemResponse,
    responses={
        201: {"description": "Poem generated", "model": PoemResponse},
        400: {"description": "Invalid photo, style, mood or language", "model": ErrorResponse},
        429: {"description": "Generation requested too soon", "model": ErrorResponse},
        502: {"description": "Provider returned an unusable answer", "model": ErrorResponse},
        503: {"description": "No poem provider available", "model": ErrorResponse},
        504: {"description": "Provider timed out", "model": ErrorResponse},
    },
    summary="Generate a poem from a photo",
)
async def create_poem(
    request: Request,
    file: UploadFile = File(..., description="Photo (PNG, JPEG, WEBP or GIF, max 10MB)"),
    style: PoemStyle = Form(..., description="Poetic style"),
    mood: PoemMood = Form(..., description="Emotional tone"),
    language: str = Form("es", description="Poem and message language: es or en"),
    author: Optional[str] = Form(None, max_length=80, description="Optional signature"),
) -> PoemResponse:
    # Read back by the provider-error handler to localize its message
    request.state.language = language
    filename = file.filename or "upload.jpg"

    try:
        # Reject by name, declared type and reported size before loading the bytes
        image_service.check_upload_headers(filename, file.content_type, file.size)
        content = await file.read()

        logger.info(
            "Received poem request: filename=%s, size=%d bytes, style=%s, mood=%s, language=%s",
            file.filename or "unknown",
            len(content),
            style.value,
            mood.value,
            language,
        )

        image_base64, mime_type = image_service.prepare_upload(
            filename=filename,
            content=content,
            content_type=file.content_type,
            content_length=file.size,
        )
        poem = await poem_service.generate_poem_from_image(
            image_base64=image_base64,
            mime_type=mime_type,
            style=style,
            mood=mood,
            language=language,
            caller_id=caller_id_for(request),
        )
    finally:
        await file.close()

    return build_poem_response(poem, author)
