"""Provider adapter for OpenAI-compatible chat completions endpoints."""

from __future__ import annotations

import json
from typing import Any

import httpx

from loco_assistant.ids import new_id
from loco_assistant.providers.base import ModelChoice, ModelRequest, ModelResponse, ToolCallRequest


class OpenAICompatProvider:
    def __init__(
        self,
        name: str,
        *,
        base_url: str,
        api_key: str,
        model: str,
        timeout_seconds: int = 120,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.name = name
        self.model = model
        self._base_url = base_url.rstrip("/")
        self._api_key = api_key
        self._timeout_seconds = max(10, int(timeout_seconds))
        self._transport = transport

    @staticmethod
    def _coerce_text(value: object) -> str:
        if isinstance(value, str):
            return value
        if isinstance(value, list):
            chunks: list[str] = []
            for item in value:
                if isinstance(item, str):
                    chunks.append(item)
                elif isinstance(item, dict):
                    text = item.get("text")
                    if isinstance(text, str):
                        chunks.append(text)
            return "".join(chunks)
        return ""

    @staticmethod
    def _raw_arguments(value: object) -> str:
        if isinstance(value, str):
            return value
        if isinstance(value, dict):
            return json.dumps(value)
        return ""

    @classmethod
    def _parse_choice(cls, item: object) -> ModelChoice | None:
        if not isinstance(item, dict):
            return None
        message = item.get("message")
        if not isinstance(message, dict):
            return None
        tool_calls: list[ToolCallRequest] = []
        raw_calls = message.get("tool_calls")
        if isinstance(raw_calls, list):
            for call in raw_calls:
                if not isinstance(call, dict):
                    continue
                fn = call.get("function")
                if not isinstance(fn, dict):
                    continue
                name = fn.get("name")
                if not isinstance(name, str) or not name:
                    continue
                call_id = call.get("id")
                tool_calls.append(
                    ToolCallRequest(
                        id=call_id if isinstance(call_id, str) and call_id else new_id("call"),
                        name=name,
                        arguments=cls._raw_arguments(fn.get("arguments")),
                    )
                )
        return ModelChoice(text=cls._coerce_text(message.get("content")), tool_calls=tool_calls)

    def _parse_response(self, payload: dict[str, Any]) -> ModelResponse:
        choices_raw = payload.get("choices")
        if not isinstance(choices_raw, list):
            raise RuntimeError(f"{self.name} response missing choices")
        choices = [
            choice for choice in (self._parse_choice(item) for item in choices_raw) if choice
        ]
        model = payload.get("model")
        return ModelResponse(
            provider=self.name,
            model=model if isinstance(model, str) and model else self.model,
            choices=choices,
        )

    def _headers(self) -> dict[str, str]:
        if not self._api_key:
            return {}
        return {"Authorization": f"Bearer {self._api_key}"}

    async def generate(self, request: ModelRequest) -> ModelResponse:
        body: dict[str, object] = {
            "model": self.model,
            "messages": request.messages,
            "max_tokens": request.max_tokens,
        }
        if request.tools:
            body["tools"] = request.tools
            body["tool_choice"] = request.tool_choice
        async with httpx.AsyncClient(
            timeout=self._timeout_seconds, transport=self._transport
        ) as client:
            response = await client.post(
                f"{self._base_url}/chat/completions", json=body, headers=self._headers()
            )
            response.raise_for_status()
        payload = response.json()
        if not isinstance(payload, dict):
            raise RuntimeError(f"{self.name} response is not an object")
        return self._parse_response(payload)

    async def health_check(self) -> bool:
        try:
            async with httpx.AsyncClient(timeout=10, transport=self._transport) as client:
                response = await client.get(f"{self._base_url}/models", headers=self._headers())
            return response.status_code < 400
        except httpx.HTTPError:
            return False
