"""Provider contracts."""

from dataclasses import dataclass, field
from typing import Any, Protocol

PROVIDER_NAMES = ("chatgpt", "claude", "gemini")
PROVIDER_HINTS = ("auto", *PROVIDER_NAMES)


@dataclass(slots=True)
class ToolCallRequest:
    id: str
    name: str
    arguments: str = ""

    def to_message(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "type": "function",
            "function": {"name": self.name, "arguments": self.arguments},
        }


@dataclass(slots=True)
class ModelChoice:
    text: str = ""
    tool_calls: list[ToolCallRequest] = field(default_factory=list)


@dataclass(slots=True)
class ModelResponse:
    provider: str
    model: str
    choices: list[ModelChoice] = field(default_factory=list)


@dataclass(slots=True)
class ModelRequest:
    messages: list[dict[str, Any]]
    tools: list[dict[str, Any]] = field(default_factory=list)
    tool_choice: str = "auto"
    max_tokens: int = 2000
    provider: str = "auto"


class ModelProvider(Protocol):
    async def generate(self, request: ModelRequest) -> ModelResponse: ...

    async def health_check(self) -> bool: ...
