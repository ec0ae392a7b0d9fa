"""Prior conversation turns to model-ready chat messages."""

from __future__ import annotations

import base64
import io
import logging
from collections.abc import Sequence
from dataclasses import dataclass
from typing import Any, Protocol

import httpx
from PIL import Image, UnidentifiedImageError

from loco_assistant.config import get_settings
from loco_assistant.storage.models import MessageRecord

logger = logging.getLogger(__name__)

ALLOWED_IMAGE_MIME_TYPES = frozenset({"image/png", "image/jpeg", "image/webp", "image/gif"})
MIME_ALIASES = {"image/jpg": "image/jpeg", "image/pjpeg": "image/jpeg", "image/x-png": "image/png"}
DEFAULT_IMAGE_MIME = "image/jpeg"


class ImageFetchError(RuntimeError):
    """Raised when an attachment cannot be retrieved."""


@dataclass(slots=True)
class FetchedImage:
    data: bytes
    mime_type: str


class ImageFetcher(Protocol):
    async def fetch(self, url: str) -> FetchedImage: ...


class HttpImageFetcher:
    def __init__(self, *, transport: httpx.AsyncBaseTransport | None = None) -> None:
        self._transport = transport

    async def fetch(self, url: str) -> FetchedImage:
        settings = get_settings()
        max_bytes = max(1, int(settings.image_fetch_max_bytes))
        chunks: list[bytes] = []
        total = 0
        try:
            async with httpx.AsyncClient(
                timeout=max(1, int(settings.image_fetch_timeout_seconds)),
                transport=self._transport,
            ) as client:
                async with client.stream("GET", url, follow_redirects=True) as response:
                    if response.status_code >= 400:
                        raise ImageFetchError(f"image download failed: HTTP {response.status_code}")
                    mime_type = response.headers.get("Content-Type", "")
                    async for chunk in response.aiter_bytes():
                        total += len(chunk)
                        if total > max_bytes:
                            raise ImageFetchError("image exceeds size limit")
                        chunks.append(chunk)
        except httpx.HTTPError as exc:
            raise ImageFetchError(f"image download failed: {exc}") from exc
        return FetchedImage(data=b"".join(chunks), mime_type=mime_type)


def normalize_mime(mime_type: str) -> str:
    value = mime_type.split(";", 1)[0].strip().lower()
    return MIME_ALIASES.get(value, value)


def reencode_image(data: bytes) -> tuple[bytes, str]:
    """Re-encode an unsupported raster to PNG.

    Falls back to the original bytes under the default MIME type when the
    bytes cannot be decoded.
    """
    try:
        with Image.open(io.BytesIO(data)) as image:
            if image.mode not in ("RGB", "RGBA", "L", "LA", "P"):
                image = image.convert("RGBA")
            buffer = io.BytesIO()
            image.save(buffer, format="PNG")
            return buffer.getvalue(), "image/png"
    except (UnidentifiedImageError, OSError, ValueError) as exc:
        logger.info("Image re-encode unavailable, forwarding original bytes: %s", exc)
        return data, DEFAULT_IMAGE_MIME


def image_data_url(image: FetchedImage) -> str:
    mime_type = normalize_mime(image.mime_type)
    data = image.data
    if mime_type not in ALLOWED_IMAGE_MIME_TYPES:
        data, mime_type = reencode_image(data)
    encoded = base64.b64encode(data).decode("ascii")
    return f"data:{mime_type};base64,{encoded}"


def _is_image_turn(message: MessageRecord) -> bool:
    return message.message_type == "image" and bool((message.attachment_url or "").strip())


def text_of(content: Any) -> str:
    """Plain text of a message's content, whether a string or a list of parts."""
    if isinstance(content, str):
        return content
    if not isinstance(content, list):
        return ""
    return "\n".join(
        str(part.get("text", ""))
        for part in content
        if isinstance(part, dict) and part.get("type") == "text" and isinstance(part.get("text"), str)
    ).strip()


async def build_history_messages(
    turns: Sequence[MessageRecord] | None,
    owner_id: str,
    fetcher: ImageFetcher,
    limit: int | None = None,
) -> list[dict[str, Any]]:
    if not turns:
        return []
    window = max(1, limit if limit is not None else get_settings().assistant_history_limit)
    messages: list[dict[str, Any]] = []
    for turn in list(turns)[-window:]:
        role = "user" if turn.sender_id == owner_id else "assistant"
        text = (turn.content or "").strip()
        if _is_image_turn(turn):
            try:
                image = await fetcher.fetch(turn.attachment_url or "")
            except ImageFetchError as exc:
                logger.warning("Dropping image turn %s: %s", turn.id, exc)
                image = None
            if image is not None:
                parts: list[dict[str, Any]] = []
                if text:
                    parts.append({"type": "text", "text": text})
                parts.append({"type": "image_url", "image_url": {"url": image_data_url(image)}})
                messages.append({"role": role, "content": parts})
                continue
        if text:
            messages.append({"role": role, "content": turn.content})
    return messages


def prompt_already_in_history(history: Sequence[dict[str, Any]], prompt: str) -> bool:
    if not history:
        return False
    last = history[-1]
    return last.get("role") == "user" and text_of(last.get("content")).strip() == prompt.strip()
