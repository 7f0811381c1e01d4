"""
PhotoVerse Backend — Abstract Poem Provider Interface
=======================================================

What:  Abstract base class defining the contract for poem-generating providers.
Why:   The orchestrator talks to Gemini and Claude through one capability,
       "generate a poem from an image", and never sees their payload shapes.
How:   Concrete adapters inherit from PoemProvider and implement generate().
Who:   Called by PoemGenerationService.

Contract:
    - generate() returns a validated Poem or raises a ProviderError subclass
    - Adapters translate their own error surface into ErrorCategory values
    - Adapters never retry; the only retry path is the orchestrator's fallback
"""

import json
from abc import ABC, abstractmethod
from typing import Any, Dict, Optional, Type

from pydantic import ValidationError as PydanticValidationError

from photoverse.exceptions import (
    EmptyResponseError,
    ErrorCategory,
    MalformedJSONError,
    ProviderAuthError,
    ProviderError,
    ProviderQuotaError,
    ProviderTimeoutError,
)
from photoverse.schemas.poem import GenerationRequest, Poem

ERROR_CLASSES: Dict[ErrorCategory, Type[ProviderError]] = {
    ErrorCategory.AUTH: ProviderAuthError,
    ErrorCategory.QUOTA: ProviderQuotaError,
    ErrorCategory.EMPTY_RESPONSE: EmptyResponseError,
    ErrorCategory.MALFORMED_JSON: MalformedJSONError,
    ErrorCategory.TIMEOUT: ProviderTimeoutError,
    ErrorCategory.UPSTREAM: ProviderError,
}


class PoemProvider(ABC):
    """
    Abstract interface for image-to-poem providers.

    Implementations:
        - GeminiPoemService: Google Gemini, schema-constrained JSON (primary)
        - ClaudePoemService: Anthropic Messages API, free-form text (fallback)
    """

    #: Short provider name used in logs and ProviderError.provider
    name: str = "provider"

    @property
    @abstractmethod
    def is_configured(self) -> bool:
        """True when the provider has a usable API key."""
        ...

    @abstractmethod
    async def generate(self, request: GenerationRequest) -> Poem:
        """
        Generate one poem for the photo in `request`.

        Raises:
            ProviderAuthError:   credential missing or rejected
            ProviderQuotaError:  upstream rate limit / quota exhausted
            EmptyResponseError:  no text came back
            MalformedJSONError:  text is not a valid Poem
            ProviderError:       any other upstream failure
        """
        ...


def make_provider_error(
    category: ErrorCategory,
    message: str,
    provider: str,
    status_code: Optional[int] = None,
    context: Optional[Dict[str, Any]] = None,
) -> ProviderError:
    """Build the most specific ProviderError subclass for `category`."""
    return ERROR_CLASSES[category](
        message=message,
        provider=provider,
        status_code=status_code,
        category=category,
        context=context,
    )


def parse_poem_json(text: str, provider: str) -> Poem:
    """
    Parse provider text into a Poem.

    What:    json.loads + Poem validation, with each failure mapped to the
             right error class.
    Why:     Both adapters end with this step; the only difference between
             them is how much cleanup the text needs first.
    """
    if not text or not text.strip():
        raise EmptyResponseError(
            message="The provider returned no content.",
            provider=provider,
        )

    try:
        payload = json.loads(text)
    except json.JSONDecodeError as e:
        raise MalformedJSONError(
            message="The provider response is not valid JSON.",
            provider=provider,
            context={"error": str(e), "preview": text[:120]},
        ) from e

    if not isinstance(payload, dict):
        raise MalformedJSONError(
            message="The provider response is not a JSON object.",
            provider=provider,
            context={"json_type": type(payload).__name__},
        )

    try:
        return Poem.model_validate(payload)
    except PydanticValidationError as e:
        raise MalformedJSONError(
            message="The provider response is missing a title or poem.",
            provider=provider,
            context={"fields": sorted(str(err["loc"][0]) for err in e.errors() if err["loc"])},
        ) from e
