"""
PhotoVerse Backend — Provider Contract Tests
==============================================

What:  Tests for the shared pieces every provider relies on: parse_poem_json,
       make_provider_error, the Poem model and the instruction builder.

Test Categories:
    ✅ Valid JSON object → Poem, text untouched
    ❌ Empty text → EmptyResponseError
    ❌ Non-JSON, non-object, missing/blank fields → MalformedJSONError
    ✅ Only auth and quota qualify for fallback
"""

import pytest
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
from photoverse.schemas.poem import GenerationRequest, Poem, PoemMood, PoemStyle
from photoverse.services.llm_base import make_provider_error, parse_poem_json
from photoverse.services.prompt import RHYME_SCHEMES, build_poem_prompt


class TestParsePoemJson:

    def test_valid_object(self):
        poem = parse_poem_json('{"title": "Mar", "poem": "ola\\n\\nespuma"}', provider="test")
        assert poem == Poem(title="Mar", poem="ola\n\nespuma")

    def test_extra_keys_ignored(self):
        poem = parse_poem_json('{"title": "Mar", "poem": "ola", "notes": "x"}', provider="test")
        assert poem.title == "Mar"

    def test_whitespace_inside_poem_preserved(self):
        poem = parse_poem_json('{"title": " Mar ", "poem": "  ola\\n"}', provider="test")
        assert poem.title == " Mar "
        assert poem.poem == "  ola\n"

    @pytest.mark.parametrize("text", ["", "   ", "\n\t"])
    def test_empty(self, text):
        with pytest.raises(EmptyResponseError) as exc_info:
            parse_poem_json(text, provider="test")
        assert exc_info.value.provider == "test"

    @pytest.mark.parametrize("text", [
        "not json",
        '{"title": "Mar", "poem": ',
        '"just a string"',
        "[1, 2]",
        '{"title": "Mar"}',
        '{"poem": "ola"}',
        '{"title": "", "poem": "ola"}',
        '{"title": "Mar", "poem": "   "}',
        '{"title": 3, "poem": "ola"}',
    ])
    def test_malformed(self, text):
        with pytest.raises(MalformedJSONError):
            parse_poem_json(text, provider="test")


class TestProviderErrors:

    @pytest.mark.parametrize("category, cls", [
        (ErrorCategory.AUTH, ProviderAuthError),
        (ErrorCategory.QUOTA, ProviderQuotaError),
        (ErrorCategory.EMPTY_RESPONSE, EmptyResponseError),
        (ErrorCategory.MALFORMED_JSON, MalformedJSONError),
        (ErrorCategory.TIMEOUT, ProviderTimeoutError),
        (ErrorCategory.UPSTREAM, ProviderError),
    ])
    def test_make_provider_error(self, category, cls):
        error = make_provider_error(category, message="m", provider="p", status_code=418)
        assert type(error) is cls
        assert error.category is category
        assert error.context["status_code"] == 418

    @pytest.mark.parametrize("category, eligible", [
        (ErrorCategory.AUTH, True),
        (ErrorCategory.QUOTA, True),
        (ErrorCategory.EMPTY_RESPONSE, False),
        (ErrorCategory.MALFORMED_JSON, False),
        (ErrorCategory.TIMEOUT, False),
        (ErrorCategory.UPSTREAM, False),
    ])
    def test_qualifies_for_fallback(self, category, eligible):
        assert make_provider_error(category, "m", "p").qualifies_for_fallback is eligible


class TestGenerationRequest:

    def test_rejects_invalid_base64(self):
        with pytest.raises(PydanticValidationError):
            GenerationRequest(image_base64="@@@", mime_type="image/png", style="haiku", mood="love")

    def test_rejects_empty_image(self):
        with pytest.raises(PydanticValidationError):
            GenerationRequest(image_base64="", mime_type="image/png", style="haiku", mood="love")

    def test_rejects_unknown_language(self, sample_image_base64):
        with pytest.raises(PydanticValidationError):
            GenerationRequest(
                image_base64=sample_image_base64, mime_type="image/png",
                style="haiku", mood="love", language="fr",
            )

    def test_image_bytes(self, sample_image_base64, sample_image_bytes):
        request = GenerationRequest(
            image_base64=sample_image_base64, mime_type="image/jpeg",
            style=PoemStyle.CLASSIC, mood=PoemMood.REFLECTION,
        )
        assert request.image_bytes == sample_image_bytes
        assert request.language == "es"


class TestPoemPrompt:

    def test_english_prompt(self, sample_image_base64):
        request = GenerationRequest(
            image_base64=sample_image_base64, mime_type="image/jpeg",
            style=PoemStyle.FREE_VERSE, mood=PoemMood.CELEBRATION, language="en",
        )
        prompt = build_poem_prompt(request)
        assert "in English" in prompt
        assert "Free Verse" in prompt
        assert "Celebration" in prompt

    def test_spanish_prompt_uses_spanish_labels(self, generation_request):
        prompt = build_poem_prompt(generation_request)
        assert "in Spanish" in prompt
        assert "Soneto" in prompt
        assert "Nostalgia" in prompt

    def test_structure_rules(self, generation_request):
        prompt = build_poem_prompt(generation_request)
        for scheme in RHYME_SCHEMES:
            assert scheme in prompt
        assert "between 2 and 4 stanzas" in prompt
        assert "between 4 and 6 lines" in prompt
        assert "between 8 and 11 syllables" in prompt
        assert "'\\n\\n'" in prompt
