"""Bounded tool-calling loop between the model and the assistant's tools."""

from __future__ import annotations

import json
import logging
from collections.abc import Sequence
from dataclasses import dataclass, field
from typing import Any

from loco_assistant.analytics import GraphPoint, graph_points_from_report
from loco_assistant.config import get_settings
from loco_assistant.delivery.email import InviteMailer, ResendInviteMailer
from loco_assistant.history import (
    HttpImageFetcher,
    ImageFetcher,
    build_history_messages,
    prompt_already_in_history,
)
from loco_assistant.ids import new_id
from loco_assistant.invitations import ACTION_STATUSES
from loco_assistant.logging import run_context
from loco_assistant.orchestrator.prompt import build_system_prompt
from loco_assistant.providers.base import PROVIDER_NAMES, ModelProvider, ModelRequest
from loco_assistant.runtime import RuntimeContext
from loco_assistant.storage.base import Storage
from loco_assistant.storage.models import MessageRecord, User
from loco_assistant.tools.catalog import ToolName, build_catalog, tool_schemas
from loco_assistant.tools.dispatcher import ToolDispatcher, ToolOutcome

logger = logging.getLogger(__name__)

FALLBACK_REPLY = "I'm ready. Ask me to analyze clients, recommend bundles, or prepare invites."
DEGRADED_REPLY = (
    "I hit an internal response issue while processing that request. Please try again."
)
UNSUPPORTED_ROLE_REPLY = (
    "I can automate trainer workflows right now. "
    "Switch to a trainer account to use invite and analytics tools."
)


@dataclass(slots=True)
class ActionSummary:
    tool: str
    status: str
    summary: str

    def to_dict(self) -> dict[str, str]:
        return {"tool": self.tool, "status": self.status, "summary": self.summary}


@dataclass(slots=True)
class AssistantResponse:
    reply: str
    provider: str
    model: str
    used_tools: list[str] = field(default_factory=list)
    actions: list[ActionSummary] = field(default_factory=list)
    graph_data: list[GraphPoint] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {
            "reply": self.reply,
            "provider": self.provider,
            "model": self.model,
            "usedTools": list(self.used_tools),
            "actions": [action.to_dict() for action in self.actions],
            "graphData": [point.to_dict() for point in self.graph_data],
        }


def _invite_action(payload: dict[str, Any]) -> ActionSummary:
    status = payload.get("status")
    summary = payload.get("summary")
    return ActionSummary(
        tool=ToolName.INVITE_CLIENTS_TO_BUNDLE.value,
        status=status if isinstance(status, str) and status in ACTION_STATUSES else "preview",
        summary=summary.strip()
        if isinstance(summary, str) and summary.strip()
        else "Invite tool completed.",
    )


def _tool_message(outcome: ToolOutcome, call_id: str) -> dict[str, Any]:
    return {
        "role": "tool",
        "tool_call_id": call_id,
        "name": outcome.name,
        "content": json.dumps(outcome.payload, default=str),
    }


async def run_assistant(
    *,
    actor: User,
    prompt: str,
    storage: Storage,
    provider: ModelProvider,
    mailer: InviteMailer | None = None,
    image_fetcher: ImageFetcher | None = None,
    provider_hint: str = "auto",
    allow_mutations: bool = True,
    conversation: Sequence[MessageRecord] | None = None,
    max_steps: int | None = None,
) -> AssistantResponse:
    """Run one assistant turn for ``actor`` and return the final reply.

    Tool calls inside one model turn run sequentially. Every failure below the
    model call is converted into a tool result, so the run always ends with a
    reply string.
    """
    settings = get_settings()
    hint = provider_hint.strip().lower() or "auto"
    final_provider = hint if hint in PROVIDER_NAMES else "unknown"

    if not actor.is_operator:
        return AssistantResponse(reply=UNSUPPORTED_ROLE_REPLY, provider=final_provider, model="unknown")

    runtime = RuntimeContext(actor=actor, storage=storage, allow_mutations=allow_mutations)
    catalog = build_catalog(runtime.is_elevated)
    dispatcher = ToolDispatcher(runtime, mailer or ResendInviteMailer(), catalog)
    schemas = tool_schemas(catalog)
    steps = max(1, max_steps if max_steps is not None else settings.assistant_max_steps)

    with run_context(run_id=new_id("run"), actor_id=actor.id):
        logger.info(
            "assistant.run.start elevated=%s allow_mutations=%s", runtime.is_elevated, allow_mutations
        )
        history = await build_history_messages(
            conversation, actor.id, image_fetcher or HttpImageFetcher()
        )
        trimmed_prompt = prompt.strip()
        messages: list[dict[str, Any]] = [
            {
                "role": "system",
                "content": build_system_prompt(
                    settings.assistant_name, [tool.name for tool in catalog], runtime.is_elevated
                ),
            },
            *history,
        ]
        if not prompt_already_in_history(history, trimmed_prompt):
            messages.append({"role": "user", "content": trimmed_prompt})

        used_tools: dict[str, None] = {}
        actions: list[ActionSummary] = []
        graph_data: list[GraphPoint] = []
        final_reply = ""
        final_model = ""

        for step_idx in range(steps):
            request = ModelRequest(
                messages=list(messages),
                tools=schemas,
                tool_choice="auto",
                max_tokens=settings.assistant_max_tokens,
                provider=hint,
            )
            try:
                response = await provider.generate(request)
            except Exception:
                logger.exception("assistant.model_call.failed step=%s", step_idx)
                final_reply = final_reply or DEGRADED_REPLY
                break

            final_provider = response.provider or final_provider
            final_model = response.model or final_model
            choice = response.choices[0] if response.choices else None
            if choice is None:
                continue

            text = choice.text.strip()
            if text:
                final_reply = text
            assistant_message: dict[str, Any] = {"role": "assistant", "content": text}
            if choice.tool_calls:
                assistant_message["tool_calls"] = [call.to_message() for call in choice.tool_calls]
            messages.append(assistant_message)

            if not choice.tool_calls:
                break

            for call in choice.tool_calls:
                used_tools.setdefault(call.name, None)
                outcome = await dispatcher.dispatch(call)
                messages.append(_tool_message(outcome, call.id))

                if outcome.failed:
                    actions.append(
                        ActionSummary(tool=call.name, status="error", summary=outcome.error or "")
                    )
                elif outcome.tool is ToolName.BUILD_CLIENT_VALUE_REPORT:
                    points = graph_points_from_report(outcome.payload)
                    if points is not None:
                        graph_data = points
                elif outcome.tool is ToolName.INVITE_CLIENTS_TO_BUNDLE:
                    actions.append(_invite_action(outcome.payload))

        logger.info(
            "assistant.run.end tools=%s actions=%s", list(used_tools), [a.status for a in actions]
        )

    return AssistantResponse(
        reply=final_reply.strip() or FALLBACK_REPLY,
        provider=final_provider,
        model=final_model or "unknown",
        used_tools=list(used_tools),
        actions=actions,
        graph_data=graph_data,
    )
