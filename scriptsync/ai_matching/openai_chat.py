"""OpenAI chat-completions adapter."""

from __future__ import annotations

from typing import Any

from scriptsync.ai_matching.base import OpenAIShape, ProviderAdapter


class OpenAIChatAdapter(ProviderAdapter):
    default_endpoint = "https://api.openai.com/v1/chat/completions"

    @property
    def name(self) -> str:
        return "openai"

    def headers(self) -> dict[str, str]:
        return {
            "Authorization": f"Bearer {self.config.api_key}",
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
                {"type": "text", "text": prompt},
                {
                    "type": "image_url",
                    "image_url": {"url": f"data:{media_type};base64,{image_b64}"},
                },
            ],
        }

    def parse_response(self, data: dict[str, Any]) -> OpenAIShape:
        return OpenAIShape.from_payload(data)
