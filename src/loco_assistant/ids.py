"""Identifier helpers."""

from uuid import uuid4


def new_id(prefix: str) -> str:
    return f"{prefix}_{uuid4().hex}"


def new_invite_token() -> str:
    return str(uuid4())
