"""Invite email delivery through the Resend HTTP API."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from html import escape
from typing import Protocol
from urllib.parse import quote

import httpx

from loco_assistant.config import get_settings
from loco_assistant.errors import InviteEmailError

CONFIG_MISSING = "INVITE_EMAIL_CONFIG_MISSING"
DOMAIN_NOT_VERIFIED = "INVITE_EMAIL_DOMAIN_NOT_VERIFIED"
TEST_MODE_RESTRICTED = "INVITE_EMAIL_TEST_MODE_RESTRICTED"
RATE_LIMITED = "INVITE_EMAIL_RATE_LIMITED"
PROVIDER_ERROR = "INVITE_EMAIL_PROVIDER_ERROR"

INVITE_SUBJECT = "You are invited to Bright Coach"


@dataclass(slots=True)
class InviteEmail:
    to: str
    token: str
    expires_at: datetime
    recipient_name: str | None = None
    sender_name: str | None = None
    personal_message: str | None = None


class InviteMailer(Protocol):
    async def send_invite_email(self, email: InviteEmail) -> str: ...


def invite_link(token: str, base_url: str) -> str:
    path = f"/register?inviteToken={quote(token, safe='')}"
    base = base_url.rstrip("/")
    if base:
        return f"{base}{path}"
    return f"locomotivate://register?inviteToken={quote(token, safe='')}"


def build_invite_text(email: InviteEmail, link: str) -> str:
    sender = (email.sender_name or "").strip() or "Your trainer"
    message = (email.personal_message or "").strip()
    lines = [
        f"{sender} invited you to join Bright Coach.",
        "",
        f"Accept invitation: {link}",
        f"Invitation expires: {email.expires_at.isoformat()}",
    ]
    if message:
        lines += ["", f"Message from {sender}:", message]
    return "\n".join(lines)


def build_invite_html(email: InviteEmail, link: str) -> str:
    recipient = escape((email.recipient_name or "").strip() or "there")
    sender = escape((email.sender_name or "").strip() or "your trainer")
    expires_on = escape(email.expires_at.strftime("%d %b %Y"))
    message = (email.personal_message or "").strip()
    message_block = (
        f'<div style="margin:0 0 16px;padding:12px;border:1px solid #e2e8f0;">'
        f"<p><strong>Message from {sender}:</strong></p>"
        f'<p style="white-space:pre-wrap;">{escape(message)}</p></div>'
        if message
        else ""
    )
    href = escape(link, quote=True)
    return (
        '<div style="font-family:Arial,sans-serif;line-height:1.5;color:#0f172a;">'
        "<h2>You are invited to Bright Coach</h2>"
        f"<p>Hi {recipient},</p>"
        f"<p>{sender} has invited you to join them on Bright Coach.</p>"
        f"{message_block}"
        f'<p><a href="{href}">Accept invitation</a></p>'
        f"<p>This invitation expires on {expires_on}.</p>"
        f'<p>If the button doesn\'t work, copy and paste this URL: <a href="{href}">{href}</a></p>'
        "</div>"
    )


def _classify_provider_message(message: str) -> str:
    normalized = message.lower()
    if "domain is not verified" in normalized:
        return DOMAIN_NOT_VERIFIED
    if "only send testing emails to your own email address" in normalized:
        return TEST_MODE_RESTRICTED
    if "rate limit" in normalized:
        return RATE_LIMITED
    return PROVIDER_ERROR


def invite_failure_user_message(error: BaseException) -> str:
    """Translate a delivery failure into text safe to show the trainer."""
    code = error.code if isinstance(error, InviteEmailError) else ""
    normalized = str(error).lower()
    if code == DOMAIN_NOT_VERIFIED or "domain is not verified" in normalized:
        return (
            "Invite email could not be sent because the sender domain is not verified yet. "
            "Verify your domain in Resend and try again."
        )
    if code == TEST_MODE_RESTRICTED or "only send testing emails" in normalized:
        return (
            "Invite email could not be sent because this Resend account is in test mode. "
            "Verify a sender domain to email clients."
        )
    if code == RATE_LIMITED or "rate limit" in normalized:
        return "Invite email is temporarily rate limited. Please try again in a minute."
    if code == CONFIG_MISSING or "resend_api_key" in normalized or "resend_from_email" in normalized:
        return "Invite email is not configured on the server yet. Please contact support."
    return (
        "Invite email could not be sent due to a mail provider issue. "
        "You can still share the invite link manually."
    )


class ResendInviteMailer:
    def __init__(self, *, transport: httpx.AsyncBaseTransport | None = None) -> None:
        self._transport = transport

    async def send_invite_email(self, email: InviteEmail) -> str:
        settings = get_settings()
        if not settings.resend_api_key.strip():
            raise InviteEmailError(CONFIG_MISSING, "RESEND_API_KEY is not configured", retryable=False)
        if not settings.resend_from_email.strip():
            raise InviteEmailError(
                CONFIG_MISSING, "RESEND_FROM_EMAIL is not configured", retryable=False
            )

        link = invite_link(email.token, settings.app_base_url)
        body = {
            "from": settings.resend_from_email,
            "to": email.to,
            "subject": INVITE_SUBJECT,
            "html": build_invite_html(email, link),
            "text": build_invite_text(email, link),
        }
        endpoint = f"{settings.resend_base_url.rstrip('/')}/emails"
        headers = {"Authorization": f"Bearer {settings.resend_api_key}"}
        try:
            async with httpx.AsyncClient(
                timeout=max(1, int(settings.resend_timeout_seconds)),
                transport=self._transport,
            ) as client:
                response = await client.post(endpoint, json=body, headers=headers)
        except httpx.HTTPError as exc:
            raise InviteEmailError(PROVIDER_ERROR, f"Resend failed: {exc}") from exc

        try:
            payload = response.json()
        except ValueError:
            payload = {}
        if not isinstance(payload, dict):
            payload = {}
        if response.status_code >= 400:
            message = str(payload.get("message") or response.text or response.status_code)
            raise InviteEmailError(
                _classify_provider_message(message), f"Resend failed: {message}"
            )
        message_id = payload.get("id")
        if not isinstance(message_id, str) or not message_id:
            raise InviteEmailError(
                PROVIDER_ERROR, "Resend failed: provider did not return a message id"
            )
        return message_id
