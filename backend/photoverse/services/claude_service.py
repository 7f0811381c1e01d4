"""
PhotoVerse Backend — Anthropic Claude Poem Provider (Fallback)
================================================================

What:  Secondary poem provider calling the Anthropic Messages API over HTTP.
Why:   Used only when Gemini is unavailable (auth or quota failure). A
       different vendor has an independent quota and credential.
How:   POSTs one user message whose content holds an image block (base64
       source + media type) and a text block (the shared instruction).
Who:   Called by PoemGenerationService after a fallback-eligible primary failure.

Differences from the Gemini adapter:
    - Auth via `x-api-key` + `anthropic-version` headers, not an SDK
    - No schema-constrained output: the model often wraps its JSON in a
      Markdown fence (```json ... ``` or ``` ... ```), which is stripped
      before parsing
    - Errors arrive as HTTP status + {"type": "error", "error": {"type": ...}}

Error Translation:
    401 / 403 / authentication_error / permission_error  → ProviderAuthError
    429 / rate_limit_error                               → ProviderQuotaError
    httpx timeout                                        → ProviderTimeoutError
    no text block                                        → EmptyResponseError
    text that is not a Poem                              → MalformedJSONError
    other statuses, transport errors                     → ProviderError
"""

import logging
import re
import time
import uuid
from typing import Any, Dict, Optional

import httpx

from photoverse.config import PLACEHOLDER_KEYS, settings
from photoverse.exceptions import (
    EmptyResponseError,
    ErrorCategory,
    ProviderAuthError,
    ProviderError,
    ProviderTimeoutError,
)
from photoverse.schemas.poem import GenerationRequest, Poem
from photoverse.services.llm_base import PoemProvider, make_provider_error, parse_poem_json
from photoverse.services.prompt import build_poem_prompt

logger = logging.getLogger(__name__)

PROVIDER_NAME = "claude"

AUTH_ERROR_TYPES = {"authentication_error", "permission_error"}
QUOTA_ERROR_TYPES = {"rate_limit_error"}

# Opening fence with optional language tag, closing fence at the very end
_FENCE_RE = re.compile(r"^```[a-zA-Z]*\s*\n?(.*?)\n?\s*```$", re.DOTALL)


def strip_code_fences(text: str) -> str:
    """
    Remove a Markdown code fence wrapping the whole response.

    Examples:
        '```json\\n{"a": 1}\\n```'  → '{"a": 1}'
        '```\\n{"a": 1}\\n```'      → '{"a": 1}'
        '{"a": 1}'                  → '{"a": 1}'  (unchanged)
    """
    stripped = text.strip()
    match = _FENCE_RE.match(stripped)
    if match:
        return match.group(1).strip()
    return stripped


def classify_claude_failure(status_code: Optional[int], error_type: Optional[str]) -> ErrorCategory:
    """Map an Anthropic HTTP failure to an ErrorCategory."""
    if status_code in (401, 403) or error_type in AUTH_ERROR_TYPES:
        return ErrorCategory.AUTH
    if status_code == 429 or error_type in QUOTA_ERROR_TYPES:
        return ErrorCategory.QUOTA
    return ErrorCategory.UPSTREAM


class ClaudePoemService(PoemProvider):
    """
    Anthropic Messages API implementation of PoemProvider.

    HTTP client:
        When a client is injected (tests, shared connection pool) it is used
        as-is and never closed here. Otherwise a short-lived AsyncClient is
        opened per call; fallback calls are rare enough that pooling buys
        nothing.
    """

    name = PROVIDER_NAME

    def __init__(
        self,
        api_key: Optional[str] = None,
        model_name: Optional[str] = None,
        client: Optional[httpx.AsyncClient] = None,
    ):
        self.api_key = (api_key if api_key is not None else settings.anthropic_api_key).strip()
        self.model_name = model_name or settings.anthropic_model
        self.api_url = settings.anthropic_api_url
        self._client = client

        logger.info(
            "ClaudePoemService initialized with model=%s, configured=%s",
            self.model_name,
            self.is_configured,
        )

    @property
    def is_configured(self) -> bool:
        return self.api_key not in PLACEHOLDER_KEYS

    def build_payload(self, request: GenerationRequest) -> Dict[str, Any]:
        return {
            "model": self.model_name,
            "max_tokens": settings.anthropic_max_tokens,
            "messages": [
                {
                    "role": "user",
                    "content": [
                        {
                            "type": "image",
                            "source": {
                                "type": "base64",
                                "media_type": request.mime_type,
                                "data": request.image_base64,
                            },
                        },
                        {"type": "text", "text": build_poem_prompt(request)},
                    ],
                }
            ],
        }

    def _headers(self) -> Dict[str, str]:
        return {
            "content-type": "application/json",
            "x-api-key": self.api_key,
            "anthropic-version": settings.anthropic_version,
        }

    async def generate(self, request: GenerationRequest) -> Poem:
        if not self.is_configured:
            raise ProviderAuthError(
                message="Claude API key is not configured.",
                provider=PROVIDER_NAME,
            )

        request_id = str(uuid.uuid4())[:8]
        logger.info("[%s] Starting Claude poem generation", request_id)
        start_time = time.time()

        data = await self._post(self.build_payload(request), request_id)
        text = self._extract_text(data, request_id)
        poem = parse_poem_json(strip_code_fences(text), provider=PROVIDER_NAME)

        logger.info(
            "[%s] Claude poem generated in %.0fms (%d chars)",
            request_id,
            (time.time() - start_time) * 1000,
            len(poem.poem),
        )
        return poem

    async def _post(self, payload: Dict[str, Any], request_id: str) -> Dict[str, Any]:
        try:
            if self._client is not None:
                response = await self._client.post(self.api_url, json=payload, headers=self._headers())
            else:
                async with httpx.AsyncClient(timeout=settings.provider_timeout_seconds) as client:
                    response = await client.post(self.api_url, json=payload, headers=self._headers())
        except httpx.TimeoutException as e:
            logger.warning("[%s] Claude API call timed out: %s", request_id, str(e))
            raise ProviderTimeoutError(
                message="Claude API timed out.",
                provider=PROVIDER_NAME,
                context={"request_id": request_id},
            ) from e
        except httpx.HTTPError as e:
            logger.warning("[%s] Claude transport error: %s", request_id, str(e))
            raise ProviderError(
                message=f"Claude API error: {e}",
                provider=PROVIDER_NAME,
                context={"request_id": request_id, "error_type": type(e).__name__},
            ) from e

        if response.is_error:
            raise self._translate_http_error(response, request_id)

        try:
            return response.json()
        except ValueError as e:
            raise ProviderError(
                message="Claude API returned a non-JSON body.",
                provider=PROVIDER_NAME,
                status_code=response.status_code,
                context={"request_id": request_id},
            ) from e

    def _translate_http_error(self, response: httpx.Response, request_id: str) -> ProviderError:
        error_type = None
        detail = response.text[:200]
        try:
            body = response.json()
            error = body.get("error") or {}
            error_type = error.get("type")
            detail = error.get("message") or detail
        except (ValueError, AttributeError):
            pass

        category = classify_claude_failure(response.status_code, error_type)
        logger.warning(
            "[%s] Claude API error (status=%d, type=%s, category=%s): %s",
            request_id,
            response.status_code,
            error_type,
            category.value,
            detail,
        )
        return make_provider_error(
            category,
            message=f"Claude API error: {response.status_code} - {detail}",
            provider=PROVIDER_NAME,
            status_code=response.status_code,
            context={"request_id": request_id, "error_type": error_type},
        )

    def _extract_text(self, data: Dict[str, Any], request_id: str) -> str:
        """Join the text blocks of a Messages API response."""
        if not isinstance(data, dict):
            data = {}
        blocks = data.get("content")
        if not isinstance(blocks, list):
            blocks = []
        texts = [
            block["text"]
            for block in blocks
            if isinstance(block, dict)
            and block.get("type") == "text"
            and isinstance(block.get("text"), str)
        ]
        text = "".join(texts).strip()
        if not text:
            logger.warning("[%s] Claude returned no text block", request_id)
            raise EmptyResponseError(
                message="Claude returned no content.",
                provider=PROVIDER_NAME,
                context={"request_id": request_id, "stop_reason": data.get("stop_reason")},
            )
        return text


claude_service = ClaudePoemService()
