"""Abstract base for LLM provider adapters.

Each provider adapter knows three things about its API:
  - how to build the ``{model, messages, max_tokens, temperature}`` body,
  - which headers carry the key,
  - which response shape it returns (``ProviderResponse`` union member).

``complete()`` never raises for provider-side problems; failures come back
as a ``CompletionResult`` with ``success=False`` and an ``ErrorCategory``.
"""

from __future__ import annotations

import abc
import enum
import time
from dataclasses import dataclass
from typing import Annotated, Any, Literal, Optional, Union

import httpx
from pydantic import BaseModel, Field

from scriptsync.config import Settings, get_matching_config, get_settings
from scriptsync.log import get_logger
from scriptsync.metrics import PROVIDER_ERRORS_TOTAL, PROVIDER_LATENCY
from scriptsync.models import Provider

logger = get_logger(__name__)


# ---------------------------------------------------------------------------
# Configuration
# ---------------------------------------------------------------------------

class MatcherConfig(BaseModel):
    """Explicit adapter configuration, passed in at construction."""

    provider: Provider = Provider.OPENAI
    api_key: str = ""
    endpoint: str = ""
    text_model: str = "gpt-4.1-mini"
    vision_model: str = "gpt-4o-mini"
    token_cap: int = Field(default=2048, ge=1)
    temperature: float = Field(default=0.2, ge=0.0, le=2.0)
    timeout_seconds: float = Field(default=25.0, gt=0)
    max_concurrent: int = Field(default=3, ge=1)
    batch_delay_seconds: float = Field(default=1.0, ge=0)
    min_confidence: int = Field(default=50, ge=0, le=100)
    fallback_confidence: int = Field(default=30, ge=0, le=100)

    @classmethod
    def from_settings(cls, settings: Settings | None = None) -> "MatcherConfig":
        settings = settings or get_settings()
        matching = get_matching_config()
        return cls(
            provider=Provider(settings.ai_provider),
            api_key=settings.ai_api_key,
            endpoint=settings.ai_endpoint,
            text_model=settings.ai_text_model,
            vision_model=settings.ai_vision_model,
            token_cap=settings.ai_token_cap,
            temperature=settings.ai_temperature,
            timeout_seconds=settings.ai_timeout_seconds,
            max_concurrent=settings.ai_max_concurrent,
            batch_delay_seconds=settings.ai_batch_delay_seconds,
            min_confidence=matching.get("min_confidence", 50),
            fallback_confidence=matching.get("fallback_confidence", 30),
        )


# ---------------------------------------------------------------------------
# Response shapes
# ---------------------------------------------------------------------------

class OpenAIShape(BaseModel):
    """``{choices: [{message: {content}}]}``"""

    kind: Literal["openai"] = "openai"
    content: str
    total_tokens: int = 0

    @classmethod
    def from_payload(cls, data: dict[str, Any]) -> "OpenAIShape":
        try:
            content = data["choices"][0]["message"]["content"]
        except (KeyError, IndexError, TypeError) as exc:
            raise ValueError(f"not an OpenAI chat completion: {exc!r}") from exc
        usage = data.get("usage") or {}
        return cls(content=content or "", total_tokens=usage.get("total_tokens", 0))


class AnthropicShape(BaseModel):
    """``{content: [{type: "text", text}]}``"""

    kind: Literal["anthropic"] = "anthropic"
    content: str
    total_tokens: int = 0

    @classmethod
    def from_payload(cls, data: dict[str, Any]) -> "AnthropicShape":
        blocks = data.get("content") if isinstance(data, dict) else None
        if not isinstance(blocks, list) or not blocks:
            raise ValueError("not an Anthropic message: missing content blocks")
        texts = [b.get("text", "") for b in blocks if isinstance(b, dict)]
        usage = data.get("usage") or {}
        tokens = usage.get("input_tokens", 0) + usage.get("output_tokens", 0)
        return cls(content="".join(texts), total_tokens=tokens)


ProviderResponse = Annotated[
    Union[OpenAIShape, AnthropicShape],
    Field(discriminator="kind"),
]


# ---------------------------------------------------------------------------
# Results and error categories
# ---------------------------------------------------------------------------

class ErrorCategory(str, enum.Enum):
    AUTH = "auth"
    RATE_LIMIT = "rate_limit"
    PAYLOAD_TOO_LARGE = "payload_too_large"
    TIMEOUT = "timeout"
    NETWORK = "network"
    BAD_RESPONSE = "bad_response"
    GENERIC = "generic"


def categorize_status(status_code: int) -> ErrorCategory:
    if status_code in (401, 403):
        return ErrorCategory.AUTH
    if status_code == 429:
        return ErrorCategory.RATE_LIMIT
    if status_code == 413:
        return ErrorCategory.PAYLOAD_TOO_LARGE
    if status_code in (408, 504):
        return ErrorCategory.TIMEOUT
    return ErrorCategory.GENERIC


def _error_message(resp: httpx.Response) -> str:
    try:
        data = resp.json()
    except ValueError:
        return f"HTTP {resp.status_code}"
    if isinstance(data, dict):
        err = data.get("error")
        if isinstance(err, dict) and err.get("message"):
            return str(err["message"])
        if isinstance(err, str) and err:
            return err
    return f"HTTP {resp.status_code}"


@dataclass
class CompletionResult:
    """Outcome of one provider call."""

    success: bool
    text: str = ""
    provider: str = ""
    model: str = ""
    status_code: Optional[int] = None
    error: Optional[str] = None
    error_category: Optional[ErrorCategory] = None
    elapsed_ms: float = 0.0
    tokens_used: int = 0


# ---------------------------------------------------------------------------
# Adapter base
# ---------------------------------------------------------------------------

class ProviderAdapter(abc.ABC):
    """Every provider adapter must implement these methods."""

    default_endpoint: str = ""

    def __init__(
        self,
        config: MatcherConfig,
        *,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.config = config
        self.endpoint = config.endpoint or self.default_endpoint
        self._transport = transport

    @property
    @abc.abstractmethod
    def name(self) -> str:
        """Provider identifier (e.g. 'openai', 'anthropic')."""
        ...

    @abc.abstractmethod
    def headers(self) -> dict[str, str]:
        ...

    @abc.abstractmethod
    def text_message(self, prompt: str) -> dict[str, Any]:
        ...

    @abc.abstractmethod
    def vision_message(
        self, prompt: str, image_b64: str, media_type: str = "image/jpeg",
    ) -> dict[str, Any]:
        ...

    @abc.abstractmethod
    def parse_response(self, data: dict[str, Any]) -> OpenAIShape | AnthropicShape:
        """Resolve the provider's JSON body into its response shape."""
        ...

    def build_payload(
        self,
        messages: list[dict[str, Any]],
        *,
        model: str,
        max_tokens: int | None = None,
    ) -> dict[str, Any]:
        return {
            "model": model,
            "messages": messages,
            "max_tokens": min(max_tokens or self.config.token_cap, self.config.token_cap),
            "temperature": self.config.temperature,
        }

    async def complete(
        self,
        messages: list[dict[str, Any]],
        *,
        model: str,
        max_tokens: int | None = None,
        kind: str = "text",
    ) -> CompletionResult:
        """POST one completion request and return its text or a categorized error."""
        t0 = time.monotonic()
        payload = self.build_payload(messages, model=model, max_tokens=max_tokens)

        def _fail(error: str, category: ErrorCategory, status: int | None = None):
            elapsed = (time.monotonic() - t0) * 1000
            PROVIDER_ERRORS_TOTAL.labels(provider=self.name, category=category.value).inc()
            logger.warning(
                "provider_call_failed",
                provider=self.name,
                model=model,
                status_code=status,
                category=category.value,
                error=error,
                elapsed_ms=round(elapsed),
            )
            return CompletionResult(
                success=False,
                provider=self.name,
                model=model,
                status_code=status,
                error=error,
                error_category=category,
                elapsed_ms=elapsed,
            )

        if not self.config.api_key:
            return _fail("no API key configured", ErrorCategory.AUTH)

        try:
            async with httpx.AsyncClient(
                timeout=self.config.timeout_seconds,
                transport=self._transport,
            ) as client:
                resp = await client.post(self.endpoint, json=payload, headers=self.headers())
        except httpx.TimeoutException as exc:
            return _fail(f"upstream timeout: {exc}", ErrorCategory.TIMEOUT)
        except httpx.HTTPError as exc:
            return _fail(f"network error: {exc}", ErrorCategory.NETWORK)
        finally:
            PROVIDER_LATENCY.labels(provider=self.name, kind=kind).observe(
                time.monotonic() - t0,
            )

        if resp.status_code >= 400:
            return _fail(_error_message(resp), categorize_status(resp.status_code), resp.status_code)

        try:
            shape = self.parse_response(resp.json())
        except ValueError as exc:
            return _fail(str(exc), ErrorCategory.BAD_RESPONSE, resp.status_code)

        elapsed = (time.monotonic() - t0) * 1000
        logger.info(
            "provider_call_complete",
            provider=self.name,
            model=model,
            tokens_used=shape.total_tokens,
            elapsed_ms=round(elapsed),
        )
        return CompletionResult(
            success=True,
            text=shape.content,
            provider=self.name,
            model=model,
            status_code=resp.status_code,
            elapsed_ms=elapsed,
            tokens_used=shape.total_tokens,
        )
