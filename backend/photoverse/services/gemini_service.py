"""
PhotoVerse Backend — Google Gemini Poem Provider (Primary)
============================================================

What:  Primary poem provider using the Google Gemini multimodal API.
Why:   Gemini supports schema-constrained JSON output, so the response is
       already shaped like a Poem and needs no text cleanup.
How:   Sends inline image bytes + the shared instruction, declares a response
       schema with two required strings, parses the returned text.
Who:   Instantiated once at import; called by PoemGenerationService first on
       every request.

Error Translation:
    google.api_core raises GoogleAPICallError subclasses carrying an HTTP
    code. The code decides the category when it is conclusive; otherwise the
    message signatures Gemini uses are checked. Errors raised outside
    google.api_core have no code, so a 401/403/429 quoted in their text
    counts as that status.

        401 / 403 / "API key" / API_KEY_INVALID     → ProviderAuthError
        429 / RESOURCE_EXHAUSTED / "quota"          → ProviderQuotaError
        504 / DeadlineExceeded                      → ProviderTimeoutError
        no text in the response                     → EmptyResponseError
        text that is not a Poem                     → MalformedJSONError
        anything else                               → ProviderError

    No retries here: a second identical call would burn quota for the same
    outcome. Availability failures are handled by the orchestrator's fallback.
"""

import logging
import re
import time
import uuid
from typing import Optional, TypedDict

import google.generativeai as genai
from google.api_core import exceptions as google_exceptions

from photoverse.config import PLACEHOLDER_KEYS, settings
from photoverse.exceptions import ErrorCategory, ProviderAuthError, ProviderError
from photoverse.schemas.poem import GenerationRequest, Poem
from photoverse.services.llm_base import PoemProvider, make_provider_error, parse_poem_json
from photoverse.services.prompt import build_poem_prompt

logger = logging.getLogger(__name__)

PROVIDER_NAME = "gemini"

AUTH_SIGNATURES = ("api key", "api_key_invalid", "permission_denied", "unauthenticated")
QUOTA_SIGNATURES = ("resource_exhausted", "quota", "rate limit")

# HTTP codes quoted in the text of errors that carry no status (transport, auth library)
QUOTA_STATUS_RE = re.compile(r"\b429\b")
AUTH_STATUS_RE = re.compile(r"\b(?:401|403)\b")


class PoemPayload(TypedDict):
    """Response schema handed to Gemini: both keys required, both strings."""

    title: str
    poem: str


def classify_gemini_failure(status_code: Optional[int], message: str) -> ErrorCategory:
    """Map a Gemini failure to an ErrorCategory."""
    if status_code in (401, 403):
        return ErrorCategory.AUTH
    if status_code == 429:
        return ErrorCategory.QUOTA
    if status_code == 504:
        return ErrorCategory.TIMEOUT

    if status_code is None:
        if QUOTA_STATUS_RE.search(message):
            return ErrorCategory.QUOTA
        if AUTH_STATUS_RE.search(message):
            return ErrorCategory.AUTH

    lowered = message.lower()
    if any(sig in lowered for sig in QUOTA_SIGNATURES):
        return ErrorCategory.QUOTA
    if any(sig in lowered for sig in AUTH_SIGNATURES):
        return ErrorCategory.AUTH
    return ErrorCategory.UPSTREAM


class GeminiPoemService(PoemProvider):
    """
    Google Gemini implementation of PoemProvider.

    Architecture:
        - Singleton instance created at import time
        - Configures the Gemini SDK once with the API key
        - One GenerativeModel reused across requests
    """

    name = PROVIDER_NAME

    def __init__(self, api_key: Optional[str] = None, model_name: Optional[str] = None):
        self.api_key = (api_key if api_key is not None else settings.gemini_api_key).strip()
        self.model_name = model_name or settings.gemini_model

        # The SDK keeps auth in module-level state
        if self.is_configured:
            genai.configure(api_key=self.api_key)

        self.model = genai.GenerativeModel(self.model_name)
        self.generation_config = genai.GenerationConfig(
            response_mime_type="application/json",
            response_schema=PoemPayload,
        )

        logger.info(
            "GeminiPoemService initialized with model=%s, configured=%s",
            self.model_name,
            self.is_configured,
        )

    @property
    def is_configured(self) -> bool:
        return self.api_key not in PLACEHOLDER_KEYS

    async def generate(self, request: GenerationRequest) -> Poem:
        """
        Generate a poem with Gemini.

        Flow:
            1. Fail fast with ProviderAuthError when no key is configured
            2. Send image + instruction with the Poem response schema
            3. Translate SDK errors into ProviderError subclasses
            4. Parse and validate the JSON text
        """
        if not self.is_configured:
            raise ProviderAuthError(
                message="Gemini API key is not configured.",
                provider=PROVIDER_NAME,
            )

        request_id = str(uuid.uuid4())[:8]
        logger.info(
            "[%s] Starting Gemini poem generation (style=%s, mood=%s, language=%s)",
            request_id,
            request.style.value,
            request.mood.value,
            request.language,
        )

        start_time = time.time()
        text = await self._call_gemini(request, request_id)
        poem = parse_poem_json(text, provider=PROVIDER_NAME)

        logger.info(
            "[%s] Gemini poem generated in %.0fms (%d chars)",
            request_id,
            (time.time() - start_time) * 1000,
            len(poem.poem),
        )
        return poem

    async def _call_gemini(self, request: GenerationRequest, request_id: str) -> str:
        image_part = {"mime_type": request.mime_type, "data": request.image_bytes}
        prompt = build_poem_prompt(request)
        start_time = time.time()

        try:
            response = await self.model.generate_content_async(
                [image_part, prompt],
                generation_config=self.generation_config,
                request_options={"timeout": settings.provider_timeout_seconds},
            )
        except google_exceptions.GoogleAPICallError as e:
            raise self._translate_error(e, getattr(e, "code", None), request_id, start_time) from e
        except Exception as e:
            # Transport failures, auth-library errors and SDK-side validation
            raise self._translate_error(e, None, request_id, start_time) from e

        try:
            # .text raises ValueError when the candidate has no parts (e.g. safety block)
            text = response.text
        except ValueError as e:
            logger.warning("[%s] Gemini returned no usable text: %s", request_id, str(e))
            text = ""

        return (text or "").strip()

    def _translate_error(
        self,
        error: Exception,
        status_code: Optional[int],
        request_id: str,
        start_time: float,
    ) -> ProviderError:
        message = str(error) or type(error).__name__
        category = classify_gemini_failure(status_code, message)
        logger.warning(
            "[%s] Gemini API call failed after %.0fms (category=%s, status=%s): %s",
            request_id,
            (time.time() - start_time) * 1000,
            category.value,
            status_code,
            message,
        )
        return make_provider_error(
            category,
            message=f"Gemini API error: {message}",
            provider=PROVIDER_NAME,
            status_code=status_code,
            context={"request_id": request_id, "error_type": type(error).__name__},
        )


gemini_service = GeminiPoemService()
