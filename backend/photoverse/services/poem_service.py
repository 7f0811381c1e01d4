"""
PhotoVerse Backend — Poem Generation Service (Orchestrator)
=============================================================

What:  The single entry point for "photo + style + mood → poem".
Why:   Keeps rate limiting, provider ordering and failure classification in
       one place, independent of HTTP concerns.
How:   Composes a RateLimiter and two PoemProviders, all injected.

Orchestration Flow:
    ┌──────────────┐  denied   ┌─────────────────────┐
    │ Rate limiter │──────────▶│ RateLimitExceeded   │
    └──────┬───────┘           └─────────────────────┘
           │ allowed
    ┌──────▼───────┐  ok       ┌─────────────────────┐
    │   Primary    │──────────▶│ Poem                │
    └──────┬───────┘           └─────────────────────┘
           │ ProviderError
    ┌──────▼───────┐  other    ┌─────────────────────┐
    │  Classify    │──────────▶│ original error      │
    └──────┬───────┘           └─────────────────────┘
           │ auth / quota
    ┌──────▼───────┐  ok       ┌─────────────────────┐
    │  Secondary   │──────────▶│ Poem                │
    └──────┬───────┘           └─────────────────────┘
           │ any failure
    ┌──────▼──────────────────┐
    │ BothProvidersFailed     │  (localized, no upstream detail)
    └─────────────────────────┘

Rules:
    - The limiter is consulted once per call, before any provider
    - Providers run strictly one after the other, never concurrently
    - Exactly one provider's Poem is returned, unmodified
    - Empty / malformed / generic / timeout failures do not fall back:
      they would most likely repeat on the second provider
"""

import asyncio
import logging
from typing import Optional, Union

from pydantic import ValidationError as PydanticValidationError

from photoverse.config import settings
from photoverse.exceptions import (
    BothProvidersFailedError,
    ProviderError,
    ProviderTimeoutError,
    RateLimitExceededError,
    ValidationError,
)
from photoverse.messages import localize
from photoverse.schemas.poem import SUPPORTED_LANGUAGES, GenerationRequest, Poem, PoemMood, PoemStyle
from photoverse.services.claude_service import claude_service
from photoverse.services.gemini_service import gemini_service
from photoverse.services.llm_base import PoemProvider
from photoverse.services.rate_limiter import DEFAULT_CALLER, RateLimiter

logger = logging.getLogger(__name__)


class PoemGenerationService:
    """
    Orchestrates one poem generation with a single fallback path.

    Args:
        primary: Provider tried first (Gemini)
        secondary: Provider tried after an auth/quota failure (Claude)
        rate_limiter: Shared limiter; owned by whoever builds this service
        timeout_seconds: Deadline per provider attempt (None = no deadline)
    """

    def __init__(
        self,
        primary: PoemProvider,
        secondary: PoemProvider,
        rate_limiter: RateLimiter,
        timeout_seconds: Optional[float] = None,
    ):
        self.primary = primary
        self.secondary = secondary
        self.rate_limiter = rate_limiter
        self.timeout_seconds = timeout_seconds

    async def generate_poem_from_image(
        self,
        image_base64: str,
        mime_type: str,
        style: Union[PoemStyle, str],
        mood: Union[PoemMood, str],
        language: str = "es",
        caller_id: str = DEFAULT_CALLER,
    ) -> Poem:
        """
        Generate a poem for a photo.

        Raises:
            ValidationError: bad image data, style, mood or language
            RateLimitExceededError: caller is inside the cooldown window
            ProviderError (subclass): primary failed with a non-fallback error
            BothProvidersFailedError: primary auth/quota failure, then
                secondary failure
        """
        request = self._build_request(image_base64, mime_type, style, mood, language)

        if not self.rate_limiter.check_and_record(caller_id):
            retry_after = self.rate_limiter.retry_after(caller_id)
            logger.info("Rate limited caller=%s (retry in %ds)", caller_id, retry_after)
            raise RateLimitExceededError(
                message=localize("rate_limited", request.language),
                retry_after=retry_after,
                context={"caller_id": caller_id},
            )

        try:
            poem = await self._attempt(self.primary, request)
        except ProviderError as primary_error:
            if not primary_error.qualifies_for_fallback:
                logger.warning(
                    "Primary provider %s failed (category=%s); not eligible for fallback",
                    self.primary.name,
                    primary_error.category.value,
                )
                raise
            logger.warning(
                "Primary provider %s failed (category=%s); switching to %s",
                self.primary.name,
                primary_error.category.value,
                self.secondary.name,
            )
        else:
            logger.info("Poem generated by primary provider %s", self.primary.name)
            return poem

        try:
            poem = await self._attempt(self.secondary, request)
        except ProviderError as secondary_error:
            logger.error(
                "Fallback provider %s also failed (category=%s): %s",
                self.secondary.name,
                secondary_error.category.value,
                secondary_error.message,
            )
            raise BothProvidersFailedError(
                message=localize("no_service_available", request.language),
            ) from None
        except Exception as secondary_error:
            # CancelledError is a BaseException and still propagates
            logger.error(
                "Fallback provider %s crashed: %s",
                self.secondary.name,
                str(secondary_error),
                exc_info=True,
            )
            raise BothProvidersFailedError(
                message=localize("no_service_available", request.language),
            ) from None

        logger.info("Poem generated by fallback provider %s", self.secondary.name)
        return poem

    async def _attempt(self, provider: PoemProvider, request: GenerationRequest) -> Poem:
        """Run one provider call under the per-attempt deadline."""
        if self.timeout_seconds is None:
            return await provider.generate(request)
        try:
            return await asyncio.wait_for(provider.generate(request), timeout=self.timeout_seconds)
        except asyncio.TimeoutError as e:
            raise ProviderTimeoutError(
                message=f"{provider.name} did not answer within {self.timeout_seconds:g}s.",
                provider=provider.name,
            ) from e

    @staticmethod
    def _build_request(
        image_base64: str,
        mime_type: str,
        style: Union[PoemStyle, str],
        mood: Union[PoemMood, str],
        language: str,
    ) -> GenerationRequest:
        if language not in SUPPORTED_LANGUAGES:
            raise ValidationError(
                message=f"Language '{language}' is not supported. Use one of: {', '.join(SUPPORTED_LANGUAGES)}",
                field="language",
            )
        try:
            return GenerationRequest(
                image_base64=image_base64,
                mime_type=mime_type,
                style=style,
                mood=mood,
                language=language,
            )
        except PydanticValidationError as e:
            first = e.errors()[0]
            field = str(first["loc"][0]) if first.get("loc") else None
            raise ValidationError(
                message=f"Invalid {field or 'request'}: {first['msg']}",
                field=field,
            ) from e


# ── Singleton Wiring ──────────────────────────────────────────────────────
# The limiter lives here, beside the service that uses it, so the HTTP layer
# and the test hook share one instance.
rate_limiter = RateLimiter(interval_ms=settings.rate_limit_interval_ms)

poem_service = PoemGenerationService(
    primary=gemini_service,
    secondary=claude_service,
    rate_limiter=rate_limiter,
    timeout_seconds=settings.provider_timeout_seconds,
)


def reset_rate_limit() -> None:
    """Clear the shared limiter. Test isolation only."""
    rate_limiter.reset()
