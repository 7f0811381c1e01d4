"""
PhotoVerse Backend — Test Configuration (conftest.py)
======================================================

What:  Shared pytest fixtures for the entire test suite.
How:   pytest auto-discovers conftest.py and makes fixtures available to all tests.

Fixture Hierarchy:
    Function-scoped (created fresh for each test):
    ├── sample_image_bytes / sample_png_bytes: Small real images for upload tests
    ├── generation_request: A valid GenerationRequest
    ├── sample_poem: A two-stanza Poem
    ├── fake_clock: Controllable millisecond clock for RateLimiter
    ├── make_provider: Factory for mock PoemProviders with call-count spies
    └── test_client: HTTPX AsyncClient for API endpoint testing
"""

import base64
import io
import os
from unittest.mock import AsyncMock

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from PIL import Image

# Override settings for testing BEFORE any application imports
# Why: settings and the provider singletons are built at import time
os.environ["GEMINI_API_KEY"] = "test-gemini-key-not-real"
os.environ["ANTHROPIC_API_KEY"] = "test-anthropic-key-not-real"
os.environ["LOG_LEVEL"] = "WARNING"

from photoverse.schemas.poem import GenerationRequest, Poem, PoemMood, PoemStyle  # noqa: E402
from photoverse.services.llm_base import PoemProvider  # noqa: E402
from photoverse.services.poem_service import reset_rate_limit  # noqa: E402


def _encode_image(image_format: str) -> bytes:
    buffer = io.BytesIO()
    Image.new("RGB", (8, 8), color=(240, 160, 60)).save(buffer, format=image_format)
    return buffer.getvalue()


@pytest.fixture(autouse=True)
def _isolate_rate_limiter():
    """Every test starts with an empty shared limiter."""
    reset_rate_limit()
    yield
    reset_rate_limit()


@pytest.fixture
def sample_image_bytes():
    """
    A real 8x8 JPEG, encoded in memory.
    Upload validation parses its header; providers are always mocked.
    """
    return _encode_image("JPEG")


@pytest.fixture
def sample_png_bytes():
    return _encode_image("PNG")


@pytest.fixture
def sample_image_base64(sample_image_bytes):
    return base64.b64encode(sample_image_bytes).decode("ascii")


@pytest.fixture
def generation_request(sample_image_base64):
    return GenerationRequest(
        image_base64=sample_image_base64,
        mime_type="image/jpeg",
        style=PoemStyle.SONNET,
        mood=PoemMood.NOSTALGIA,
        language="es",
    )


@pytest.fixture
def sample_poem():
    return Poem(
        title="Luz de tarde",
        poem="El sol se posa lento\nsobre el viejo portal\n\nY el viento trae un cuento\nde un tiempo sin final",
    )


class FakeClock:
    """Millisecond clock that only moves when told to."""

    def __init__(self, start: float = 1_000_000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, ms: float) -> None:
        self.now += ms


@pytest.fixture
def fake_clock():
    return FakeClock()


class FakeProvider(PoemProvider):
    """PoemProvider whose generate() is an AsyncMock (call counts, side effects)."""

    def __init__(self, name: str, configured: bool = True):
        self.name = name
        self._configured = configured
        self.generate = AsyncMock()

    @property
    def is_configured(self) -> bool:
        return self._configured

    async def generate(self, request):  # replaced per instance in __init__
        raise NotImplementedError


@pytest.fixture
def make_provider():
    """
    Usage:
        primary = make_provider("gemini", result=poem)
        secondary = make_provider("claude", error=ProviderQuotaError(...))
    """
    def _make(name: str, result=None, error=None, configured: bool = True) -> FakeProvider:
        provider = FakeProvider(name, configured=configured)
        if error is not None:
            provider.generate.side_effect = error
        else:
            provider.generate.return_value = result
        return provider

    return _make


@pytest_asyncio.fixture
async def test_client():
    """
    HTTPX AsyncClient talking to the FastAPI app through ASGITransport.

    Usage:
        async def test_health(test_client):
            response = await test_client.get("/health")
            assert response.status_code == 200
    """
    from photoverse.main import app
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client
