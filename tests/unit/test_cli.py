import json
from pathlib import Path

import pytest
from click.testing import CliRunner

from loco_assistant import cli as cli_module
from loco_assistant.config import get_settings
from loco_assistant.providers.base import ModelChoice, ModelResponse


@pytest.fixture(autouse=True)
def quiet_logs(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("LOG_LEVEL", "ERROR")
    get_settings.cache_clear()


class EchoRouter:
    def __init__(self) -> None:
        self.requests = []

    async def generate(self, request):
        self.requests.append(request)
        return ModelResponse(provider="gemini", model="echo", choices=[ModelChoice(text="All good.")])

    async def health_check(self) -> bool:
        return True

    async def health(self) -> dict[str, bool]:
        return {"gemini": True}


def _fixture(tmp_path: Path) -> Path:
    path = tmp_path / "fixture.json"
    path.write_text(
        json.dumps(
            {
                "users": [
                    {"id": "t1", "name": "Tess", "role": "trainer"},
                    {"id": "a1", "name": "Abe", "role": "trainer"},
                ],
                "messages": [
                    {"id": "h1", "sender_id": "t1", "conversation_id": "bot-t1", "content": "status?"},
                    {"id": "h2", "sender_id": "a1", "conversation_id": "bot-a1", "content": "earlier"},
                    {"id": "h3", "sender_id": "bot", "conversation_id": "bot-a1", "content": "noted"},
                ],
            }
        ),
        encoding="utf-8",
    )
    return path


def test_run_prints_response_json(tmp_path: Path, monkeypatch) -> None:
    router = EchoRouter()
    monkeypatch.setattr(cli_module, "build_router", lambda settings: router)

    result = CliRunner().invoke(
        cli_module.cli,
        ["run", "--data", str(_fixture(tmp_path)), "--actor", "t1", "--provider", "gemini", "status?"],
    )

    assert result.exit_code == 0, result.output
    payload = json.loads(result.output)
    assert payload["reply"] == "All good."
    assert payload["usedTools"] == []
    assert router.requests[0].provider == "gemini"
    assert [message["role"] for message in router.requests[0].messages] == ["system", "user"]


def test_run_unknown_actor_fails(tmp_path: Path, monkeypatch) -> None:
    monkeypatch.setattr(cli_module, "build_router", lambda settings: EchoRouter())
    result = CliRunner().invoke(
        cli_module.cli, ["run", "--data", str(_fixture(tmp_path)), "--actor", "ghost", "hi"]
    )
    assert result.exit_code != 0
    assert "unknown actor: ghost" in result.output


def test_health_prints_provider_status(monkeypatch) -> None:
    monkeypatch.setattr(cli_module, "build_router", lambda settings: EchoRouter())
    result = CliRunner().invoke(cli_module.cli, ["health"])
    assert result.exit_code == 0
    assert json.loads(result.output) == {"gemini": True}


def test_run_replays_assistant_thread_for_actor_sorting_before_prefix(
    tmp_path: Path, monkeypatch
) -> None:
    router = EchoRouter()
    monkeypatch.setattr(cli_module, "build_router", lambda settings: router)

    result = CliRunner().invoke(
        cli_module.cli, ["run", "--data", str(_fixture(tmp_path)), "--actor", "a1", "next step?"]
    )

    assert result.exit_code == 0, result.output
    messages = router.requests[0].messages
    assert [message["role"] for message in messages] == ["system", "user", "assistant", "user"]
    assert messages[1]["content"] == "earlier"
    assert messages[-1]["content"] == "next step?"
