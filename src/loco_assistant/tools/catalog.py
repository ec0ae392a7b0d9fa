"""Tool catalog: a closed set of tool names split into two capability sets."""

from __future__ import annotations

import copy
from dataclasses import dataclass
from enum import StrEnum
from typing import Any


class ToolName(StrEnum):
    GET_CONTEXT_SNAPSHOT = "get_context_snapshot"
    LIST_CLIENTS = "list_clients"
    LIST_BUNDLES = "list_bundles"
    LIST_CONVERSATIONS = "list_conversations"
    GET_CONVERSATION_MESSAGES = "get_conversation_messages"
    RECOMMEND_BUNDLES_FROM_CHATS = "recommend_bundles_from_chats"
    INVITE_CLIENTS_TO_BUNDLE = "invite_clients_to_bundle"
    BUILD_CLIENT_VALUE_REPORT = "build_client_value_report"
    LIST_ALL_TRAINERS = "list_all_trainers"
    LIST_ALL_USERS = "list_all_users"

    @classmethod
    def parse(cls, value: str) -> ToolName | None:
        try:
            return cls(value)
        except ValueError:
            return None


MUTATING_TOOLS = frozenset({ToolName.INVITE_CLIENTS_TO_BUNDLE})

TRAINER_OVERRIDE_PROPERTY: dict[str, Any] = {
    "type": "string",
    "description": "Act on this trainer's data instead of your own (elevated operators only).",
}


def _object_schema(
    properties: dict[str, Any] | None = None, required: list[str] | None = None
) -> dict[str, Any]:
    schema: dict[str, Any] = {
        "type": "object",
        "properties": properties or {},
        "additionalProperties": False,
    }
    if required:
        schema["required"] = required
    return schema


@dataclass(slots=True, frozen=True)
class ToolDef:
    name: ToolName
    description: str
    parameters: dict[str, Any]

    def with_property(self, key: str, spec: dict[str, Any]) -> ToolDef:
        parameters = copy.deepcopy(self.parameters)
        parameters.setdefault("properties", {})[key] = dict(spec)
        return ToolDef(name=self.name, description=self.description, parameters=parameters)

    def to_openai(self) -> dict[str, Any]:
        return {
            "type": "function",
            "function": {
                "name": self.name.value,
                "description": self.description,
                "parameters": copy.deepcopy(self.parameters),
            },
        }


BASE_TOOLS: tuple[ToolDef, ...] = (
    ToolDef(
        ToolName.GET_CONTEXT_SNAPSHOT,
        "Get an overview of the trainer's profile and aggregate counts (clients, bundles, "
        "orders, conversations). Call this first when you need a quick summary of the "
        "trainer's account.",
        _object_schema(),
    ),
    ToolDef(
        ToolName.LIST_CLIENTS,
        "List the trainer's clients with optional search filtering, message counts, and "
        "revenue data.",
        _object_schema(
            {
                "search": {"type": "string", "description": "Filter clients by name, email, or notes."},
                "includeMessageCounts": {"type": "boolean", "default": True},
                "includeRevenue": {"type": "boolean", "default": True},
            }
        ),
    ),
    ToolDef(
        ToolName.LIST_BUNDLES,
        "List this trainer's bundles/offers with optional status filtering.",
        _object_schema(
            {
                "status": {
                    "type": "string",
                    "description": "Filter by status: published, draft, pending_review.",
                }
            }
        ),
    ),
    ToolDef(
        ToolName.LIST_CONVERSATIONS,
        "List the trainer's conversation summaries showing who they've been chatting with, "
        "unread counts, and last message preview. Use to find conversation IDs for "
        "get_conversation_messages.",
        _object_schema(
            {
                "includeAssistant": {
                    "type": "boolean",
                    "default": False,
                    "description": "Include the bot/assistant conversation in results.",
                }
            }
        ),
    ),
    ToolDef(
        ToolName.GET_CONVERSATION_MESSAGES,
        "Fetch the message history for a specific conversation. Provide either a "
        "conversationId (from list_conversations) or a clientId (from list_clients) to "
        "resolve it.",
        _object_schema(
            {
                "conversationId": {"type": "string"},
                "clientId": {
                    "type": "string",
                    "description": "Client ID; the conversation with this client's linked user "
                    "will be resolved.",
                },
                "limit": {"type": "integer", "minimum": 1, "maximum": 400, "default": 60},
            }
        ),
    ),
    ToolDef(
        ToolName.RECOMMEND_BUNDLES_FROM_CHATS,
        "Deterministically score and recommend best-fit bundles per client by matching "
        "bundle keywords against chat history and client notes. Returns ranked "
        "recommendations with match reasons.",
        _object_schema(
            {
                "clientIds": {
                    "type": "array",
                    "items": {"type": "string"},
                    "description": "Limit to specific client IDs.",
                },
                "bundleDraftIds": {
                    "type": "array",
                    "items": {"type": "string"},
                    "description": "Limit to specific bundle IDs.",
                },
            }
        ),
    ),
    ToolDef(
        ToolName.INVITE_CLIENTS_TO_BUNDLE,
        "Create and email invitations for clients to a bundle. ALWAYS preview first "
        "(confirm=false), then execute only after the trainer explicitly confirms. Set "
        "confirm=true only when the user says 'yes', 'send it', 'go ahead', etc.",
        _object_schema(
            {
                "bundleDraftId": {"type": "string"},
                "clientIds": {"type": "array", "items": {"type": "string"}},
                "emails": {
                    "type": "array",
                    "items": {"type": "string"},
                    "description": "Direct email addresses to invite.",
                },
                "message": {
                    "type": "string",
                    "description": "Optional personal message to include in the invite email.",
                },
                "confirm": {"type": "boolean", "default": False},
                "dryRun": {"type": "boolean", "default": False},
            },
            required=["bundleDraftId"],
        ),
    ),
    ToolDef(
        ToolName.BUILD_CLIENT_VALUE_REPORT,
        "Generate graph-ready data showing client engagement (message count) versus "
        "revenue. Returns per-client data points plus top-N rankings by messages and by "
        "revenue.",
        _object_schema(
            {"topN": {"type": "integer", "minimum": 1, "maximum": 100, "default": 12}}
        ),
    ),
)

ELEVATED_TOOLS: tuple[ToolDef, ...] = (
    ToolDef(
        ToolName.LIST_ALL_TRAINERS,
        "List every trainer on the platform with their IDs. Use the ID as trainerId on "
        "other tools to work with that trainer's data.",
        _object_schema(
            {"search": {"type": "string", "description": "Filter trainers by name or email."}}
        ),
    ),
    ToolDef(
        ToolName.LIST_ALL_USERS,
        "List platform users of any role with optional role and search filters.",
        _object_schema(
            {
                "role": {
                    "type": "string",
                    "description": "Filter by role: shopper, client, trainer, manager, coordinator.",
                },
                "search": {"type": "string", "description": "Filter users by name or email."},
                "limit": {"type": "integer", "minimum": 1, "maximum": 500, "default": 100},
            }
        ),
    ),
)


def build_catalog(elevated: bool) -> tuple[ToolDef, ...]:
    """Tools offered to one run.

    Elevated actors get the elevated-only tools and a ``trainerId`` override
    on every shared tool.
    """
    if not elevated:
        return BASE_TOOLS
    shared = tuple(tool.with_property("trainerId", TRAINER_OVERRIDE_PROPERTY) for tool in BASE_TOOLS)
    return shared + ELEVATED_TOOLS


def tool_schemas(catalog: tuple[ToolDef, ...]) -> list[dict[str, Any]]:
    return [tool.to_openai() for tool in catalog]
