"""In-memory storage backend used by the CLI and tests."""

from __future__ import annotations

import json
from collections.abc import Iterable
from dataclasses import fields
from pathlib import Path
from typing import Any

from loco_assistant.errors import StorageError
from loco_assistant.storage.models import (
    BundleRecord,
    ClientRecord,
    ConversationSummary,
    InvitationRecord,
    MessageRecord,
    OrderRecord,
    User,
)


def _build(cls: type, row: dict[str, Any]) -> Any:
    allowed = {item.name for item in fields(cls)}
    values = {key: value for key, value in row.items() if key in allowed}
    for key in ("id", "trainer_id", "user_id", "client_id", "sender_id", "receiver_id"):
        if key in values and values[key] is not None:
            values[key] = str(values[key])
    try:
        return cls(**values)
    except TypeError as exc:
        raise StorageError(f"invalid {cls.__name__} record: {exc}") from exc


class MemoryStorage:
    def __init__(
        self,
        *,
        users: Iterable[User] = (),
        clients: Iterable[ClientRecord] = (),
        bundles: Iterable[BundleRecord] = (),
        orders: Iterable[OrderRecord] = (),
        messages: Iterable[MessageRecord] = (),
    ) -> None:
        self.users: dict[str, User] = {user.id: user for user in users}
        self.clients = list(clients)
        self.bundles = list(bundles)
        self.orders = list(orders)
        self.messages = list(messages)
        self.invitations: list[InvitationRecord] = []
        self.read_counts: dict[str, int] = {}

    @classmethod
    def from_dict(cls, payload: dict[str, Any]) -> MemoryStorage:
        return cls(
            users=[_build(User, row) for row in payload.get("users", [])],
            clients=[_build(ClientRecord, row) for row in payload.get("clients", [])],
            bundles=[_build(BundleRecord, row) for row in payload.get("bundles", [])],
            orders=[_build(OrderRecord, row) for row in payload.get("orders", [])],
            messages=[_build(MessageRecord, row) for row in payload.get("messages", [])],
        )

    @classmethod
    def from_json_file(cls, path: Path) -> MemoryStorage:
        try:
            payload = json.loads(path.read_text(encoding="utf-8"))
        except (OSError, json.JSONDecodeError) as exc:
            raise StorageError(f"cannot load fixture {path}: {exc}") from exc
        if not isinstance(payload, dict):
            raise StorageError(f"fixture {path} must contain a JSON object")
        return cls.from_dict(payload)

    def _count(self, name: str) -> None:
        self.read_counts[name] = self.read_counts.get(name, 0) + 1

    async def get_user(self, user_id: str) -> User | None:
        self._count("get_user")
        return self.users.get(user_id)

    async def list_users(self, roles: Iterable[str] | None = None) -> list[User]:
        self._count("list_users")
        wanted = set(roles) if roles is not None else None
        return [user for user in self.users.values() if wanted is None or user.role in wanted]

    async def get_clients_by_trainer(self, trainer_id: str) -> list[ClientRecord]:
        self._count("get_clients_by_trainer")
        return [client for client in self.clients if client.trainer_id == trainer_id]

    async def get_bundle_drafts_by_trainer(self, trainer_id: str) -> list[BundleRecord]:
        self._count("get_bundle_drafts_by_trainer")
        return [bundle for bundle in self.bundles if bundle.trainer_id == trainer_id]

    async def get_bundle_draft_by_id(self, bundle_id: str) -> BundleRecord | None:
        self._count("get_bundle_draft_by_id")
        for bundle in self.bundles:
            if bundle.id == bundle_id:
                return bundle
        return None

    async def get_orders_by_trainer(self, trainer_id: str) -> list[OrderRecord]:
        self._count("get_orders_by_trainer")
        return [order for order in self.orders if order.trainer_id == trainer_id]

    async def get_messages_by_conversation(self, conversation_id: str) -> list[MessageRecord]:
        self._count("get_messages_by_conversation")
        return [message for message in self.messages if message.conversation_id == conversation_id]

    async def get_conversation_summaries(self, user_id: str) -> list[ConversationSummary]:
        self._count("get_conversation_summaries")
        by_conversation: dict[str, ConversationSummary] = {}
        for message in self.messages:
            if user_id not in (message.sender_id, message.receiver_id):
                continue
            summary = by_conversation.setdefault(
                message.conversation_id,
                ConversationSummary(conversation_id=message.conversation_id),
            )
            for participant_id in (message.sender_id, message.receiver_id):
                if not participant_id or participant_id == user_id:
                    continue
                if any(item.id == participant_id for item in summary.participants):
                    continue
                summary.participants.append(
                    self.users.get(participant_id) or User(id=participant_id)
                )
            summary.last_message = message
            if message.receiver_id == user_id and message.read_at is None:
                summary.unread_count += 1
        return list(by_conversation.values())

    async def create_invitation(self, invitation: InvitationRecord) -> str:
        self.invitations.append(invitation)
        return invitation.token
