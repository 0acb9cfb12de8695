"""Provider selection — picks the adapter class for a configured provider."""

from __future__ import annotations

import httpx

from scriptsync.ai_matching.anthropic_messages import AnthropicMessagesAdapter
from scriptsync.ai_matching.base import MatcherConfig, ProviderAdapter
from scriptsync.ai_matching.openai_chat import OpenAIChatAdapter
from scriptsync.models import Provider

# Registry of adapter classes by provider
_ADAPTER_REGISTRY: dict[Provider, type[ProviderAdapter]] = {
    Provider.OPENAI: OpenAIChatAdapter,
    Provider.ANTHROPIC: AnthropicMessagesAdapter,
}


def get_adapter(
    config: MatcherConfig,
    *,
    transport: httpx.AsyncBaseTransport | None = None,
) -> ProviderAdapter:
    cls = _ADAPTER_REGISTRY.get(config.provider)
    if cls is None:
        raise ValueError(f"Unknown provider: {config.provider}")
    return cls(config, transport=transport)
