"""Records exchanged with the storage collaborator."""

from dataclasses import dataclass, field
from typing import Any

ELEVATED_ROLES = frozenset({"manager", "coordinator"})
OPERATOR_ROLES = frozenset({"trainer", "manager", "coordinator"})


@dataclass(slots=True)
class User:
    id: str
    name: str | None = None
    email: str | None = None
    role: str = "shopper"

    @property
    def is_elevated(self) -> bool:
        return self.role in ELEVATED_ROLES

    @property
    def is_operator(self) -> bool:
        return self.role in OPERATOR_ROLES


@dataclass(slots=True)
class ClientRecord:
    id: str
    trainer_id: str
    name: str | None = None
    user_id: str | None = None
    email: str | None = None
    phone: str | None = None
    notes: str | None = None
    status: str = "pending"


@dataclass(slots=True)
class BundleRecord:
    id: str
    trainer_id: str
    title: str
    description: str | None = None
    status: str = "draft"
    price: str | None = None
    cadence: str = "one_time"
    goals: Any = None


@dataclass(slots=True)
class OrderRecord:
    id: str
    trainer_id: str | None
    total_amount: str | float | int | None
    client_id: str | None = None
    customer_email: str | None = None
    customer_name: str | None = None
    status: str = "pending"


@dataclass(slots=True)
class MessageRecord:
    id: str
    sender_id: str
    conversation_id: str
    content: str = ""
    receiver_id: str | None = None
    message_type: str = "text"
    attachment_url: str | None = None
    created_at: str | None = None
    read_at: str | None = None


@dataclass(slots=True)
class ConversationSummary:
    conversation_id: str
    participants: list[User] = field(default_factory=list)
    unread_count: int = 0
    last_message: MessageRecord | None = None


@dataclass(slots=True)
class InvitationRecord:
    trainer_id: str
    email: str
    token: str
    expires_at: str
    name: str | None = None
    bundle_draft_id: str | None = None
    status: str = "pending"
