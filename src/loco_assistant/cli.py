"""Click CLI group: run the assistant against a JSON fixture and probe providers."""

from __future__ import annotations

import asyncio
import json
from pathlib import Path

import click

from loco_assistant.config import get_settings, validate_settings_for_env
from loco_assistant.errors import AssistantError
from loco_assistant.logging import configure_logging
from loco_assistant.orchestrator.loop import run_assistant
from loco_assistant.providers.base import PROVIDER_HINTS
from loco_assistant.providers.factory import build_router
from loco_assistant.storage.memory import MemoryStorage
from loco_assistant.text import assistant_conversation_id


@click.group()
@click.option("--json-logs", is_flag=True, help="Force JSON log output.")
def cli(json_logs: bool) -> None:
    """Loco trainer assistant CLI."""
    settings = get_settings()
    configure_logging(settings.log_level, json_output=json_logs or None)


@cli.command()
@click.argument("prompt")
@click.option(
    "--data",
    "data_path",
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    required=True,
    help="JSON fixture with users, clients, bundles, orders and messages.",
)
@click.option("--actor", "actor_id", type=str, required=True, help="User ID the assistant acts for.")
@click.option(
    "--provider",
    type=click.Choice(PROVIDER_HINTS),
    default="auto",
    show_default=True,
)
@click.option(
    "--conversation",
    "conversation_id",
    type=str,
    default=None,
    help="Conversation to replay as history (default: the actor's assistant thread).",
)
@click.option("--no-mutations", is_flag=True, help="Block invite sends for this run.")
def run(
    prompt: str,
    data_path: Path,
    actor_id: str,
    provider: str,
    conversation_id: str | None,
    no_mutations: bool,
) -> None:
    """Run one assistant turn and print the JSON response."""
    settings = get_settings()
    try:
        validate_settings_for_env(settings)
        storage = MemoryStorage.from_json_file(data_path)
    except (ValueError, AssistantError) as exc:
        raise click.ClickException(str(exc)) from exc

    async def _run() -> dict:
        actor = await storage.get_user(actor_id)
        if actor is None:
            raise click.ClickException(f"unknown actor: {actor_id}")
        thread = await storage.get_messages_by_conversation(
            conversation_id or assistant_conversation_id(actor.id)
        )
        response = await run_assistant(
            actor=actor,
            prompt=prompt,
            storage=storage,
            provider=build_router(settings),
            provider_hint=provider,
            allow_mutations=not no_mutations,
            conversation=thread,
        )
        return response.to_dict()

    click.echo(json.dumps(asyncio.run(_run()), indent=2))


@cli.command()
def health() -> None:
    """Check each configured provider and print the results."""
    router = build_router(get_settings())
    results = asyncio.run(router.health())
    click.echo(json.dumps(results, indent=2))
    if not any(results.values()):
        raise SystemExit(1)


if __name__ == "__main__":
    cli()
