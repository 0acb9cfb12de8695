"""Anthropic messages adapter."""

from __future__ import annotations

from typing import Any

from scriptsync.ai_matching.base import AnthropicShape, ProviderAdapter

_API_VERSION = "2023-06-01"


class AnthropicMessagesAdapter(ProviderAdapter):
    default_endpoint = "https://api.anthropic.com/v1/messages"

    @property
    def name(self) -> str:
        return "anthropic"

    def headers(self) -> dict[str, str]:
        return {
            "x-api-key": self.config.api_key,
            "anthropic-version": _API_VERSION,
            "Content-Type": "application/json",
        }

    def text_message(self, prompt: str) -> dict[str, Any]:
        return {"role": "user", "content": prompt}

    def vision_message(
        self, prompt: str, image_b64: str, media_type: str = "image/jpeg",
    ) -> dict[str, Any]:
        return {
            "role": "user",
            "content": [
                {
                    "type": "image",
                    "source": {"type": "base64", "media_type": media_type, "data": image_b64},
                },
                {"type": "text", "text": prompt},
            ],
        }

    def parse_response(self, data: dict[str, Any]) -> AnthropicShape:
        return AnthropicShape.from_payload(data)
