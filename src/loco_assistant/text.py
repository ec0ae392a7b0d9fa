"""Argument coercion, tokenization and money helpers shared by the tools."""

import math
import re
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from typing import Any

STOP_WORDS = frozenset(
    {
        "about",
        "again",
        "along",
        "also",
        "been",
        "being",
        "between",
        "could",
        "from",
        "have",
        "into",
        "just",
        "more",
        "most",
        "only",
        "over",
        "same",
        "some",
        "than",
        "that",
        "their",
        "there",
        "these",
        "they",
        "this",
        "those",
        "very",
        "with",
        "your",
    }
)
MIN_TOKEN_LENGTH = 3
ASSISTANT_CONVERSATION_PREFIX = "bot-"
_NON_ALNUM = re.compile(r"[^a-z0-9]", re.IGNORECASE)


def as_string(value: object) -> str | None:
    if not isinstance(value, str):
        return None
    trimmed = value.strip()
    return trimmed or None


def as_string_list(value: object) -> list[str]:
    if not isinstance(value, list):
        return []
    return [item for item in (as_string(entry) for entry in value) if item]


def as_bool(value: object, fallback: bool = False) -> bool:
    if isinstance(value, bool):
        return value
    if isinstance(value, str):
        normalized = value.strip().lower()
        if normalized == "true":
            return True
        if normalized == "false":
            return False
    return fallback


def as_positive_int(value: object, fallback: int) -> int:
    if isinstance(value, bool):
        return fallback
    if isinstance(value, (int, float)) and math.isfinite(value) and value > 0:
        floored = int(math.floor(value))
        return floored if floored > 0 else fallback
    if isinstance(value, str):
        match = re.match(r"\s*([+-]?\d+)", value)
        if match:
            parsed = int(match.group(1))
            if parsed > 0:
                return parsed
    return fallback


def to_minor(value: object) -> int:
    """Convert a money amount in major units to integer minor units."""
    if isinstance(value, bool) or value is None:
        return 0
    try:
        amount = Decimal(str(value).strip())
    except InvalidOperation:
        return 0
    if not amount.is_finite():
        return 0
    try:
        return int((amount * 100).quantize(Decimal("1"), rounding=ROUND_HALF_UP))
    except InvalidOperation:
        return 0


def extract_strings(value: Any, depth: int = 0) -> list[str]:
    if depth > 3 or value is None:
        return []
    if isinstance(value, str):
        return [value]
    if isinstance(value, (list, tuple)):
        return [text for entry in value for text in extract_strings(entry, depth + 1)]
    if isinstance(value, dict):
        return [text for entry in value.values() for text in extract_strings(entry, depth + 1)]
    return []


def normalize_word(word: str) -> str:
    return _NON_ALNUM.sub("", word).lower()


def tokenize(value: str) -> list[str]:
    words = (normalize_word(word) for word in value.split())
    return [word for word in words if len(word) >= MIN_TOKEN_LENGTH and word not in STOP_WORDS]


def direct_conversation_id(user_a: str, user_b: str) -> str:
    return "-".join(sorted([user_a, user_b]))


def assistant_conversation_id(user_id: str) -> str:
    """The thread between a user and the assistant itself."""
    return f"{ASSISTANT_CONVERSATION_PREFIX}{user_id}"


def display_name(name: str | None, email: str | None, default: str = "Client") -> str:
    return name or email or default
