"""Route model tool calls to handlers through an exhaustive dispatch table."""

from __future__ import annotations

import json
import logging
from collections.abc import Awaitable, Callable, Mapping
from dataclasses import dataclass
from typing import Any

from loco_assistant.delivery.email import InviteMailer
from loco_assistant.invitations import invite_clients_to_bundle
from loco_assistant.providers.base import ToolCallRequest
from loco_assistant.runtime import RuntimeContext
from loco_assistant.tools import handlers
from loco_assistant.tools.catalog import MUTATING_TOOLS, ToolDef, ToolName

logger = logging.getLogger(__name__)

ToolHandler = Callable[[RuntimeContext, Mapping[str, Any]], Awaitable[dict[str, Any]]]

READ_HANDLERS: dict[ToolName, ToolHandler] = {
    ToolName.GET_CONTEXT_SNAPSHOT: handlers.get_context_snapshot,
    ToolName.LIST_CLIENTS: handlers.list_clients,
    ToolName.LIST_BUNDLES: handlers.list_bundles,
    ToolName.LIST_CONVERSATIONS: handlers.list_conversations,
    ToolName.GET_CONVERSATION_MESSAGES: handlers.get_conversation_messages,
    ToolName.RECOMMEND_BUNDLES_FROM_CHATS: handlers.recommend_bundles,
    ToolName.BUILD_CLIENT_VALUE_REPORT: handlers.client_value_report,
    ToolName.LIST_ALL_TRAINERS: handlers.list_all_trainers,
    ToolName.LIST_ALL_USERS: handlers.list_all_users,
}

_unrouted = set(ToolName) - set(READ_HANDLERS) - MUTATING_TOOLS
if _unrouted:
    raise RuntimeError(f"tools without a handler: {sorted(_unrouted)}")


def parse_tool_args(raw: object) -> dict[str, Any]:
    """Decode model-supplied arguments; anything but a JSON object becomes ``{}``."""
    if isinstance(raw, dict):
        return dict(raw)
    if not isinstance(raw, str) or not raw.strip():
        return {}
    try:
        decoded = json.loads(raw)
    except (json.JSONDecodeError, RecursionError):
        return {}
    return decoded if isinstance(decoded, dict) else {}


@dataclass(slots=True)
class ToolOutcome:
    name: str
    tool: ToolName | None
    payload: dict[str, Any]
    error: str | None = None

    @property
    def failed(self) -> bool:
        return self.error is not None


class ToolDispatcher:
    def __init__(
        self,
        runtime: RuntimeContext,
        mailer: InviteMailer,
        catalog: tuple[ToolDef, ...],
    ) -> None:
        self.runtime = runtime
        self.mailer = mailer
        self.offered = frozenset(tool.name for tool in catalog)

    def resolve(self, name: str) -> ToolName | None:
        """The tool for ``name`` if this run's catalog offers it."""
        tool = ToolName.parse(name)
        if tool is None or tool not in self.offered:
            return None
        return tool

    async def _invoke(self, tool: ToolName, args: Mapping[str, Any]) -> dict[str, Any]:
        if tool is ToolName.INVITE_CLIENTS_TO_BUNDLE:
            return await invite_clients_to_bundle(self.runtime, self.mailer, args)
        return await READ_HANDLERS[tool](self.runtime, args)

    async def dispatch(self, call: ToolCallRequest) -> ToolOutcome:
        tool = self.resolve(call.name)
        if tool is None:
            message = f"Unknown tool: {call.name}"
            return ToolOutcome(call.name, None, {"error": message}, error=message)

        args = parse_tool_args(call.arguments)
        try:
            result = await self._invoke(tool, args)
        except Exception as exc:
            logger.exception(
                "assistant.tool_execution.failed tool=%s actor_id=%s", call.name, self.runtime.actor.id
            )
            message = str(exc) or "Tool execution failed"
            return ToolOutcome(call.name, tool, {"error": message}, error=message)
        return ToolOutcome(call.name, tool, result)
