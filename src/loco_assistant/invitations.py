"""Bundle invitation action: validate, preview, and only on confirmation send."""

from __future__ import annotations

import logging
from collections.abc import Iterable, Mapping
from dataclasses import dataclass
from datetime import UTC, datetime, timedelta
from typing import Any, Literal

from loco_assistant.config import get_settings
from loco_assistant.delivery.email import InviteEmail, InviteMailer, invite_failure_user_message
from loco_assistant.ids import new_invite_token
from loco_assistant.runtime import RuntimeContext
from loco_assistant.storage.models import ClientRecord, InvitationRecord, User
from loco_assistant.text import as_bool, as_string, as_string_list

logger = logging.getLogger(__name__)

ActionStatus = Literal["success", "partial", "preview", "blocked", "error"]
ACTION_STATUSES: frozenset[str] = frozenset({"success", "partial", "preview", "blocked", "error"})


@dataclass(slots=True)
class InvitationRecipient:
    email: str
    source: str
    name: str | None = None


@dataclass(slots=True)
class RecipientResolution:
    recipients: list[InvitationRecipient]
    invalid_client_ids: list[str]
    missing_email_client_ids: list[str]


def resolve_recipients(
    clients: Iterable[ClientRecord],
    client_ids: Iterable[str],
    emails: Iterable[str],
) -> RecipientResolution:
    """Merge roster clients and direct emails, deduplicated by normalized email.

    The first occurrence of an address keeps its name and provenance.
    """
    clients_by_id = {client.id: client for client in clients}
    invalid: list[str] = []
    missing_email: list[str] = []
    candidates: list[InvitationRecipient] = []

    for client_id in client_ids:
        client = clients_by_id.get(client_id)
        if client is None:
            invalid.append(client_id)
            continue
        if not (client.email or "").strip():
            missing_email.append(client_id)
            continue
        candidates.append(
            InvitationRecipient(
                email=(client.email or "").strip(),
                name=client.name,
                source=f"client:{client.id}",
            )
        )
    for email in emails:
        if email.strip():
            candidates.append(InvitationRecipient(email=email.strip(), source="email"))

    deduped: dict[str, InvitationRecipient] = {}
    for recipient in candidates:
        deduped.setdefault(recipient.email.lower(), recipient)
    return RecipientResolution(
        recipients=list(deduped.values()),
        invalid_client_ids=invalid,
        missing_email_client_ids=missing_email,
    )


def _aggregate_status(sent: int, failed: int) -> ActionStatus:
    if failed == 0:
        return "success"
    return "partial" if sent > 0 else "error"


async def invite_clients_to_bundle(
    runtime: RuntimeContext,
    mailer: InviteMailer,
    args: Mapping[str, Any],
    *,
    now: datetime | None = None,
) -> dict[str, Any]:
    owner_id = runtime.resolve_identity(args.get("trainerId"))
    bundle_id = as_string(args.get("bundleDraftId"))
    if not bundle_id:
        return {"status": "error", "summary": "bundleDraftId is required."}

    bundle = await runtime.storage.get_bundle_draft_by_id(bundle_id)
    if bundle is None or bundle.trainer_id != owner_id:
        return {
            "status": "error",
            "summary": "Bundle was not found or does not belong to this trainer.",
        }

    resolution = resolve_recipients(
        await runtime.clients(owner_id),
        as_string_list(args.get("clientIds")),
        as_string_list(args.get("emails")),
    )
    recipients = resolution.recipients
    diagnostics = {
        "invalidClientIds": resolution.invalid_client_ids,
        "missingEmailClientIds": resolution.missing_email_client_ids,
    }

    if not recipients:
        return {
            "status": "blocked",
            "summary": "No valid recipients with an email address were provided.",
            **diagnostics,
        }

    if not runtime.allow_mutations:
        return {
            "status": "blocked",
            "summary": "Mutating tools are disabled for this request.",
            "invitationCount": len(recipients),
        }

    if not as_bool(args.get("confirm"), False) or as_bool(args.get("dryRun"), False):
        return {
            "status": "preview",
            "summary": "Preview only. Re-run with confirm=true to execute invitation sends.",
            "invitationCount": len(recipients),
            "recipients": [
                {"email": recipient.email, "name": recipient.name, "source": recipient.source}
                for recipient in recipients
            ],
            **diagnostics,
        }

    owner: User = await runtime.resolve_owner(owner_id)
    sender_name = owner.name or owner.email or "Your trainer"
    personal_message = as_string(args.get("message"))
    ttl = timedelta(days=max(1, get_settings().invite_ttl_days))
    started = now or datetime.now(UTC)

    successes: list[dict[str, str]] = []
    failures: list[dict[str, str]] = []
    for recipient in recipients:
        token = new_invite_token()
        expires_at = started + ttl
        try:
            await runtime.storage.create_invitation(
                InvitationRecord(
                    trainer_id=owner_id,
                    email=recipient.email,
                    name=recipient.name,
                    token=token,
                    bundle_draft_id=bundle_id,
                    expires_at=expires_at.isoformat(),
                )
            )
            await mailer.send_invite_email(
                InviteEmail(
                    to=recipient.email,
                    token=token,
                    expires_at=expires_at,
                    recipient_name=recipient.name,
                    sender_name=sender_name,
                    personal_message=personal_message,
                )
            )
        except Exception as exc:
            logger.warning(
                "assistant.invite_clients_to_bundle.failed trainer_id=%s email=%s: %s",
                owner_id,
                recipient.email,
                exc,
            )
            failures.append({"email": recipient.email, "error": invite_failure_user_message(exc)})
            continue
        successes.append({"email": recipient.email, "invitationToken": token})

    sent, failed = len(successes), len(failures)
    if failed == 0:
        summary = f"Sent {sent} invitation{'' if sent == 1 else 's'}."
    else:
        summary = f"Sent {sent}, failed {failed}."
    return {
        "status": _aggregate_status(sent, failed),
        "summary": summary,
        "sent": sent,
        "failed": failed,
        "successes": successes,
        "failures": failures,
        **diagnostics,
    }
