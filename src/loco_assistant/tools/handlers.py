"""Read-only tool handlers over the owner's business data."""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

from loco_assistant.analytics import DEFAULT_TOP_N, build_client_value_report, build_revenue_by_client
from loco_assistant.recommend import recommend_bundles_from_chats
from loco_assistant.runtime import RuntimeContext
from loco_assistant.storage.models import OPERATOR_ROLES, User
from loco_assistant.text import (
    ASSISTANT_CONVERSATION_PREFIX,
    as_bool,
    as_positive_int,
    as_string,
    as_string_list,
    direct_conversation_id,
)

DEFAULT_MESSAGE_LIMIT = 60
MAX_MESSAGE_LIMIT = 400
DEFAULT_USER_LIMIT = 100
MAX_USER_LIMIT = 500


def _owner_id(runtime: RuntimeContext, args: Mapping[str, Any]) -> str:
    return runtime.resolve_identity(args.get("trainerId"))


def _user_row(user: User) -> dict[str, Any]:
    return {"id": user.id, "name": user.name, "email": user.email, "role": user.role}


def _matches(search: str | None, *values: str | None) -> bool:
    if not search:
        return True
    return any(search in (value or "").lower() for value in values)


async def get_context_snapshot(runtime: RuntimeContext, args: Mapping[str, Any]) -> dict[str, Any]:
    owner = await runtime.resolve_owner(args.get("trainerId"))
    clients = await runtime.clients(owner.id)
    bundles = await runtime.bundles(owner.id)
    orders = await runtime.orders(owner.id)
    conversations = await runtime.storage.get_conversation_summaries(owner.id)
    return {
        "trainerId": owner.id,
        "trainerName": owner.name,
        "trainerEmail": owner.email,
        "role": owner.role,
        "counts": {
            "clients": len(clients),
            "bundles": len(bundles),
            "publishedBundles": sum(
                1 for bundle in bundles if (bundle.status or "").lower() == "published"
            ),
            "orders": len(orders),
            "conversations": len(conversations),
        },
    }


async def list_clients(runtime: RuntimeContext, args: Mapping[str, Any]) -> dict[str, Any]:
    owner_id = _owner_id(runtime, args)
    search = (as_string(args.get("search")) or "").lower() or None
    include_counts = as_bool(args.get("includeMessageCounts"), True)
    include_revenue = as_bool(args.get("includeRevenue"), True)

    clients = [
        client
        for client in await runtime.clients(owner_id)
        if _matches(search, client.name, client.email, client.notes)
    ]
    counts = await runtime.message_counts_by_client(owner_id) if include_counts else {}
    revenue = (
        build_revenue_by_client(clients, await runtime.orders(owner_id)) if include_revenue else {}
    )

    rows: list[dict[str, Any]] = []
    for client in clients:
        row: dict[str, Any] = {
            "id": client.id,
            "userId": client.user_id,
            "name": client.name,
            "email": client.email,
            "status": client.status,
            "notes": client.notes,
        }
        if include_counts:
            row["messageCount"] = counts.get(client.user_id, 0) if client.user_id else None
        if include_revenue:
            row["revenueMinor"] = revenue.get(client.id, 0)
        rows.append(row)
    return {"total": len(rows), "clients": rows}


async def list_bundles(runtime: RuntimeContext, args: Mapping[str, Any]) -> dict[str, Any]:
    owner_id = _owner_id(runtime, args)
    status = (as_string(args.get("status")) or "").lower()
    bundles = [
        bundle
        for bundle in await runtime.bundles(owner_id)
        if not status or (bundle.status or "").lower() == status
    ]
    return {
        "total": len(bundles),
        "bundles": [
            {
                "id": bundle.id,
                "title": bundle.title,
                "description": bundle.description,
                "status": bundle.status,
                "price": bundle.price,
                "cadence": bundle.cadence,
            }
            for bundle in bundles
        ],
    }


async def list_conversations(runtime: RuntimeContext, args: Mapping[str, Any]) -> dict[str, Any]:
    owner_id = _owner_id(runtime, args)
    include_assistant = as_bool(args.get("includeAssistant"), False)
    summaries = [
        summary
        for summary in await runtime.storage.get_conversation_summaries(owner_id)
        if include_assistant or not summary.conversation_id.startswith(ASSISTANT_CONVERSATION_PREFIX)
    ]
    return {
        "total": len(summaries),
        "conversations": [
            {
                "conversationId": summary.conversation_id,
                "participants": [
                    {"id": user.id, "name": user.name, "role": user.role}
                    for user in summary.participants
                ],
                "unreadCount": summary.unread_count,
                "lastMessageContent": summary.last_message.content if summary.last_message else None,
                "lastMessageAt": summary.last_message.created_at if summary.last_message else None,
            }
            for summary in summaries
        ],
    }


async def get_conversation_messages(
    runtime: RuntimeContext, args: Mapping[str, Any]
) -> dict[str, Any]:
    owner_id = _owner_id(runtime, args)
    conversation_id = as_string(args.get("conversationId"))
    client_id = as_string(args.get("clientId"))
    limit = min(as_positive_int(args.get("limit"), DEFAULT_MESSAGE_LIMIT), MAX_MESSAGE_LIMIT)

    if not conversation_id and client_id:
        target = next(
            (client for client in await runtime.clients(owner_id) if client.id == client_id), None
        )
        if target is None:
            return {"error": f"Client not found: {client_id}"}
        if not target.user_id:
            return {"error": f"Client {client_id} has no linked userId for chat lookup."}
        conversation_id = direct_conversation_id(owner_id, target.user_id)

    if not conversation_id:
        return {"error": "conversationId or clientId is required."}

    if not runtime.is_elevated:
        allowed = {
            summary.conversation_id
            for summary in await runtime.storage.get_conversation_summaries(owner_id)
        }
        allowed.update(
            direct_conversation_id(owner_id, client.user_id)
            for client in await runtime.clients(owner_id)
            if client.user_id
        )
        if conversation_id not in allowed:
            return {"error": f"Conversation not found: {conversation_id}"}

    thread = await runtime.storage.get_messages_by_conversation(conversation_id)
    recent = thread[-limit:]
    return {
        "conversationId": conversation_id,
        "totalMessages": len(thread),
        "returned": len(recent),
        "messages": [
            {
                "id": message.id,
                "senderId": message.sender_id,
                "content": message.content,
                "createdAt": message.created_at,
                "messageType": message.message_type or "text",
            }
            for message in recent
        ],
    }


async def recommend_bundles(runtime: RuntimeContext, args: Mapping[str, Any]) -> dict[str, Any]:
    return await recommend_bundles_from_chats(
        runtime,
        _owner_id(runtime, args),
        client_ids=as_string_list(args.get("clientIds")),
        bundle_ids=as_string_list(args.get("bundleDraftIds")),
    )


async def client_value_report(runtime: RuntimeContext, args: Mapping[str, Any]) -> dict[str, Any]:
    top_n = as_positive_int(args.get("topN"), DEFAULT_TOP_N)
    return await build_client_value_report(runtime, _owner_id(runtime, args), top_n)


async def list_all_trainers(runtime: RuntimeContext, args: Mapping[str, Any]) -> dict[str, Any]:
    search = (as_string(args.get("search")) or "").lower() or None
    trainers = [
        user
        for user in await runtime.storage.list_users(sorted(OPERATOR_ROLES))
        if _matches(search, user.name, user.email)
    ]
    return {"total": len(trainers), "trainers": [_user_row(user) for user in trainers]}


async def list_all_users(runtime: RuntimeContext, args: Mapping[str, Any]) -> dict[str, Any]:
    role = (as_string(args.get("role")) or "").lower()
    search = (as_string(args.get("search")) or "").lower() or None
    limit = min(as_positive_int(args.get("limit"), DEFAULT_USER_LIMIT), MAX_USER_LIMIT)
    users = [
        user
        for user in await runtime.storage.list_users([role] if role else None)
        if _matches(search, user.name, user.email)
    ]
    return {
        "total": len(users),
        "returned": min(limit, len(users)),
        "users": [_user_row(user) for user in users[:limit]],
    }
