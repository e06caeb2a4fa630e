from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

import httpx

from brain.config import AnthropicSettings
from brain.types import ToolCall

ANTHROPIC_VERSION = "2023-06-01"


class AnthropicError(RuntimeError):
    pass


@dataclass(frozen=True)
class ModelResponse:
    stop_reason: str | None
    content: list[dict[str, Any]] = field(default_factory=list)

    @property
    def tool_calls(self) -> list[ToolCall]:
        return [
            ToolCall(id=block["id"], name=block["name"], arguments=block.get("input") or {})
            for block in self.content
            if block.get("type") == "tool_use"
        ]

    @property
    def text(self) -> str:
        parts = [block.get("text", "") for block in self.content if block.get("type") == "text"]
        return "\n".join(parts).strip()


class AnthropicClient:
    def __init__(self, config: AnthropicSettings):
        self._config = config

    @property
    def model(self) -> str:
        return self._config.model

    async def create_message(
        self,
        *,
        system: str,
        messages: list[dict[str, Any]],
        tools: list[dict[str, Any]] | None = None,
    ) -> ModelResponse:
        if not messages:
            raise AnthropicError("messages cannot be empty")

        payload: dict[str, Any] = {
            "model": self._config.model,
            "max_tokens": self._config.max_tokens,
            "system": system,
            "messages": messages,
        }
        if tools:
            payload["tools"] = tools

        headers = {
            "x-api-key": self._config.api_key,
            "anthropic-version": ANTHROPIC_VERSION,
            "content-type": "application/json",
        }

        async with httpx.AsyncClient(timeout=self._config.timeout_seconds) as client:
            try:
                response = await client.post(
                    f"{self._config.base_url.rstrip('/')}/v1/messages",
                    headers=headers,
                    json=payload,
                )
                response.raise_for_status()
            except httpx.HTTPStatusError as exc:
                raise AnthropicError(
                    f"Anthropic API error {exc.response.status_code}: {exc.response.text}"
                ) from exc
            except httpx.HTTPError as exc:
                raise AnthropicError(f"Anthropic request failed: {exc}") from exc

        body = response.json()
        content = body.get("content")
        if not isinstance(content, list):
            raise AnthropicError("Anthropic response missing content")

        blocks = [block for block in content if isinstance(block, dict)]
        return ModelResponse(stop_reason=body.get("stop_reason"), content=blocks)
