"""Shared test fixtures."""

from __future__ import annotations

import io
import os
from typing import Any, Callable, Generator

import httpx
import pytest
from fastapi.testclient import TestClient
from PIL import Image

# Override env before importing anything from scriptsync
os.environ["SCRIPTSYNC_ENV"] = "test"
os.environ["AI_API_KEY"] = ""
os.environ["AI_PROVIDER"] = "openai"

from scriptsync.ai_matching.base import MatcherConfig
from scriptsync.ai_matching.matcher import ScriptMatcher
from scriptsync.ai_matching.openai_chat import OpenAIChatAdapter
from scriptsync.api.app import create_app
from scriptsync.api.routes import get_matcher
from scriptsync.models import SlideSummary


@pytest.fixture()
def sample_script() -> str:
    return (
        "Welcome everyone to the quarterly review. Today we cover three topics.\n\n"
        "First, revenue grew by 12 percent this quarter. The key driver was the new platform.\n\n"
        "Second, our hiring plan is on track. We added forty engineers.\n\n"
        "Finally, remember that the roadmap review happens next week. Thanks for listening."
    )


# ---------------------------------------------------------------------------
# Provider plumbing
# ---------------------------------------------------------------------------

def openai_body(content: str) -> dict[str, Any]:
    return {
        "choices": [{"message": {"role": "assistant", "content": content}}],
        "usage": {"total_tokens": 42},
    }


def anthropic_body(content: str) -> dict[str, Any]:
    return {
        "content": [{"type": "text", "text": content}],
        "usage": {"input_tokens": 30, "output_tokens": 12},
    }


@pytest.fixture()
def matcher_config() -> MatcherConfig:
    return MatcherConfig(
        api_key="test-key",
        batch_delay_seconds=0,
        timeout_seconds=5,
    )


@pytest.fixture()
def make_openai_adapter(matcher_config) -> Callable[..., OpenAIChatAdapter]:
    """Build an OpenAI adapter whose HTTP calls hit a handler instead of the network."""

    def _make(handler: Callable[[httpx.Request], httpx.Response], **overrides) -> OpenAIChatAdapter:
        config = matcher_config.model_copy(update=overrides)
        return OpenAIChatAdapter(config, transport=httpx.MockTransport(handler))

    return _make


@pytest.fixture()
def reply_with(make_openai_adapter) -> Callable[[str], OpenAIChatAdapter]:
    """Adapter that answers every request with a fixed completion text."""

    def _make(content: str) -> OpenAIChatAdapter:
        return make_openai_adapter(lambda request: httpx.Response(200, json=openai_body(content)))

    return _make


@pytest.fixture()
def slide_summaries() -> list[SlideSummary]:
    return [
        SlideSummary(topic="Quarterly review agenda", key_points=["three topics"]),
        SlideSummary(topic="Revenue growth", key_points=["12 percent", "new platform"]),
        SlideSummary(topic="Hiring plan", key_points=["forty engineers"]),
    ]


# ---------------------------------------------------------------------------
# Images
# ---------------------------------------------------------------------------

@pytest.fixture()
def png_bytes() -> Callable[..., bytes]:
    def _make(width: int = 1600, height: int = 1200, color: str = "navy") -> bytes:
        buf = io.BytesIO()
        Image.new("RGBA", (width, height), color).save(buf, format="PNG")
        return buf.getvalue()

    return _make


# ---------------------------------------------------------------------------
# FastAPI test client
# ---------------------------------------------------------------------------

@pytest.fixture()
def client() -> Generator[TestClient, None, None]:
    app = create_app()
    with TestClient(app) as c:
        yield c


@pytest.fixture()
def client_with_reply(reply_with):
    """Test client whose matcher answers with a fixed completion text."""
    clients: list[TestClient] = []

    def _make(content: str) -> TestClient:
        app = create_app()
        adapter = reply_with(content)
        app.dependency_overrides[get_matcher] = lambda: ScriptMatcher(adapter=adapter)
        c = TestClient(app)
        c.__enter__()
        clients.append(c)
        return c

    yield _make

    for c in clients:
        c.__exit__(None, None, None)
