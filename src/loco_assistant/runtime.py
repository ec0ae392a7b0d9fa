"""Per-run context: acting identity, elevation, mutation gate and data cache."""

from __future__ import annotations

from dataclasses import dataclass, field

from loco_assistant.errors import ToolError
from loco_assistant.storage.base import Storage
from loco_assistant.storage.models import BundleRecord, ClientRecord, OrderRecord, User
from loco_assistant.text import as_string, direct_conversation_id


@dataclass(slots=True)
class RunCache:
    """Storage reads memoized for the lifetime of one run, keyed by owner id."""

    clients: dict[str, list[ClientRecord]] = field(default_factory=dict)
    bundles: dict[str, list[BundleRecord]] = field(default_factory=dict)
    orders: dict[str, list[OrderRecord]] = field(default_factory=dict)
    message_counts: dict[str, dict[str, int]] = field(default_factory=dict)
    owners: dict[str, User] = field(default_factory=dict)


@dataclass(slots=True)
class RuntimeContext:
    actor: User
    storage: Storage
    allow_mutations: bool = True
    cache: RunCache = field(default_factory=RunCache)

    @property
    def is_elevated(self) -> bool:
        return self.actor.is_elevated

    def resolve_identity(self, override_id: object = None) -> str:
        """Return the owner id tools act on.

        An override is honoured only for elevated actors; everyone else always
        acts on their own data regardless of what the tool arguments say.
        """
        if self.is_elevated:
            candidate = as_string(override_id)
            if candidate:
                return candidate
        return self.actor.id

    async def resolve_owner(self, override_id: object = None) -> User:
        owner_id = self.resolve_identity(override_id)
        if owner_id == self.actor.id:
            return self.actor
        cached = self.cache.owners.get(owner_id)
        if cached is not None:
            return cached
        owner = await self.storage.get_user(owner_id)
        if owner is None:
            raise ToolError(f"Trainer not found: {owner_id}")
        self.cache.owners[owner_id] = owner
        return owner

    async def clients(self, owner_id: str) -> list[ClientRecord]:
        if owner_id not in self.cache.clients:
            self.cache.clients[owner_id] = await self.storage.get_clients_by_trainer(owner_id)
        return self.cache.clients[owner_id]

    async def bundles(self, owner_id: str) -> list[BundleRecord]:
        if owner_id not in self.cache.bundles:
            self.cache.bundles[owner_id] = await self.storage.get_bundle_drafts_by_trainer(
                owner_id
            )
        return self.cache.bundles[owner_id]

    async def orders(self, owner_id: str) -> list[OrderRecord]:
        if owner_id not in self.cache.orders:
            self.cache.orders[owner_id] = await self.storage.get_orders_by_trainer(owner_id)
        return self.cache.orders[owner_id]

    async def message_counts_by_client(self, owner_id: str) -> dict[str, int]:
        """Message count of each linked client user's direct thread with the owner."""
        cached = self.cache.message_counts.get(owner_id)
        if cached is not None:
            return cached
        counts: dict[str, int] = {}
        for client in await self.clients(owner_id):
            if not client.user_id:
                continue
            thread = await self.storage.get_messages_by_conversation(
                direct_conversation_id(owner_id, client.user_id)
            )
            counts[client.user_id] = len(thread)
        self.cache.message_counts[owner_id] = counts
        return counts
