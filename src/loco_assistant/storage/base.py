"""Storage contract."""

from collections.abc import Iterable
from typing import Protocol

from loco_assistant.storage.models import (
    BundleRecord,
    ClientRecord,
    ConversationSummary,
    InvitationRecord,
    MessageRecord,
    OrderRecord,
    User,
)


class Storage(Protocol):
    async def get_user(self, user_id: str) -> User | None: ...

    async def list_users(self, roles: Iterable[str] | None = None) -> list[User]: ...

    async def get_clients_by_trainer(self, trainer_id: str) -> list[ClientRecord]: ...

    async def get_bundle_drafts_by_trainer(self, trainer_id: str) -> list[BundleRecord]: ...

    async def get_bundle_draft_by_id(self, bundle_id: str) -> BundleRecord | None: ...

    async def get_orders_by_trainer(self, trainer_id: str) -> list[OrderRecord]: ...

    async def get_messages_by_conversation(self, conversation_id: str) -> list[MessageRecord]: ...

    async def get_conversation_summaries(self, user_id: str) -> list[ConversationSummary]: ...

    async def create_invitation(self, invitation: InvitationRecord) -> str: ...
