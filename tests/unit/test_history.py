import base64
import io

import httpx
import pytest
from PIL import Image

from loco_assistant.config import get_settings
from loco_assistant.history import (
    FetchedImage,
    HttpImageFetcher,
    ImageFetchError,
    build_history_messages,
    image_data_url,
    normalize_mime,
    prompt_already_in_history,
)
from loco_assistant.storage.models import MessageRecord


def _raster(fmt: str) -> bytes:
    buffer = io.BytesIO()
    Image.new("RGB", (2, 2), (200, 10, 10)).save(buffer, format=fmt)
    return buffer.getvalue()


def _turn(idx: int, sender: str, content: str = "", **kwargs) -> MessageRecord:
    return MessageRecord(id=f"h{idx}", sender_id=sender, conversation_id="bot-t1", content=content, **kwargs)


class StaticFetcher:
    def __init__(self, image: FetchedImage | None = None) -> None:
        self.image = image
        self.urls: list[str] = []

    async def fetch(self, url: str) -> FetchedImage:
        self.urls.append(url)
        if self.image is None:
            raise ImageFetchError("image download failed: HTTP 404")
        return self.image


@pytest.mark.asyncio
async def test_roles_window_and_empty_turns() -> None:
    turns = [_turn(idx, "t1" if idx % 2 else "bot", f"msg {idx}") for idx in range(30)]
    turns.append(_turn(99, "t1", "   "))
    messages = await build_history_messages(turns, "t1", StaticFetcher())

    assert len(messages) == 23
    assert messages[0] == {"role": "user", "content": "msg 7"}
    assert messages[1] == {"role": "assistant", "content": "msg 8"}
    assert messages[-1] == {"role": "user", "content": "msg 29"}


@pytest.mark.asyncio
async def test_image_turn_is_inlined_as_data_url() -> None:
    png = _raster("PNG")
    fetcher = StaticFetcher(FetchedImage(png, "image/png"))
    turns = [_turn(1, "t1", "form check", message_type="image", attachment_url="https://cdn.test/a.png")]
    messages = await build_history_messages(turns, "t1", fetcher)

    assert fetcher.urls == ["https://cdn.test/a.png"]
    parts = messages[0]["content"]
    assert parts[0] == {"type": "text", "text": "form check"}
    url = parts[1]["image_url"]["url"]
    assert url == "data:image/png;base64," + base64.b64encode(png).decode("ascii")


@pytest.mark.asyncio
async def test_failed_image_falls_back_to_text_or_is_dropped() -> None:
    turns = [
        _turn(1, "t1", "caption", message_type="image", attachment_url="https://cdn.test/gone.png"),
        _turn(2, "t1", "", message_type="image", attachment_url="https://cdn.test/gone2.png"),
    ]
    messages = await build_history_messages(turns, "t1", StaticFetcher())
    assert messages == [{"role": "user", "content": "caption"}]


def test_unsupported_raster_is_reencoded_to_png() -> None:
    url = image_data_url(FetchedImage(_raster("BMP"), "image/bmp"))
    assert url.startswith("data:image/png;base64,")
    decoded = base64.b64decode(url.split(",", 1)[1])
    assert Image.open(io.BytesIO(decoded)).format == "PNG"


def test_undecodable_bytes_forwarded_as_jpeg() -> None:
    url = image_data_url(FetchedImage(b"not an image", "application/octet-stream"))
    assert url == "data:image/jpeg;base64," + base64.b64encode(b"not an image").decode("ascii")


def test_mime_normalization() -> None:
    assert normalize_mime("IMAGE/JPG; charset=binary") == "image/jpeg"
    assert normalize_mime("image/webp") == "image/webp"


def test_prompt_already_in_history() -> None:
    history = [{"role": "user", "content": [{"type": "text", "text": "hello"}]}]
    assert prompt_already_in_history(history, " hello ")
    assert not prompt_already_in_history([{"role": "assistant", "content": "hello"}], "hello")
    assert not prompt_already_in_history([], "hello")


@pytest.mark.asyncio
async def test_http_fetcher_reads_body_and_content_type() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        assert request.url.path == "/a.webp"
        return httpx.Response(200, content=b"webp-bytes", headers={"Content-Type": "image/webp"})

    image = await HttpImageFetcher(transport=httpx.MockTransport(handler)).fetch("https://cdn.test/a.webp")
    assert image == FetchedImage(b"webp-bytes", "image/webp")


@pytest.mark.asyncio
async def test_http_fetcher_rejects_errors_and_oversize(monkeypatch: pytest.MonkeyPatch) -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        if request.url.path == "/missing":
            return httpx.Response(404)
        return httpx.Response(200, content=b"x" * 64)

    fetcher = HttpImageFetcher(transport=httpx.MockTransport(handler))
    with pytest.raises(ImageFetchError, match="HTTP 404"):
        await fetcher.fetch("https://cdn.test/missing")

    monkeypatch.setenv("IMAGE_FETCH_MAX_BYTES", "16")
    get_settings.cache_clear()
    with pytest.raises(ImageFetchError, match="size limit"):
        await fetcher.fetch("https://cdn.test/big")
