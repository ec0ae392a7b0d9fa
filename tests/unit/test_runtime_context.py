import pytest

from loco_assistant.errors import ToolError
from loco_assistant.runtime import RuntimeContext


@pytest.mark.asyncio
async def test_reads_are_memoized_per_owner(storage) -> None:
    runtime = RuntimeContext(actor=storage.users["t1"], storage=storage)
    first = await runtime.clients("t1")
    second = await runtime.clients("t1")
    await runtime.bundles("t1")
    await runtime.bundles("t1")
    await runtime.orders("t1")
    await runtime.orders("t1")

    assert first is second
    assert storage.read_counts["get_clients_by_trainer"] == 1
    assert storage.read_counts["get_bundle_drafts_by_trainer"] == 1
    assert storage.read_counts["get_orders_by_trainer"] == 1


@pytest.mark.asyncio
async def test_message_counts_use_direct_threads_and_cache(storage) -> None:
    runtime = RuntimeContext(actor=storage.users["t1"], storage=storage)
    counts = await runtime.message_counts_by_client("t1")
    reads = storage.read_counts["get_messages_by_conversation"]
    again = await runtime.message_counts_by_client("t1")

    assert counts == {"u1": 2, "u2": 1}
    assert again is counts
    assert storage.read_counts["get_messages_by_conversation"] == reads


def test_override_ignored_for_non_elevated_actor(storage) -> None:
    runtime = RuntimeContext(actor=storage.users["t1"], storage=storage)
    assert runtime.resolve_identity("t2") == "t1"


def test_override_honoured_for_elevated_actor(storage) -> None:
    runtime = RuntimeContext(actor=storage.users["mgr"], storage=storage)
    assert runtime.resolve_identity("t2") == "t2"
    assert runtime.resolve_identity("  ") == "mgr"
    assert runtime.resolve_identity(None) == "mgr"


@pytest.mark.asyncio
async def test_resolve_owner_looks_up_and_caches(storage) -> None:
    runtime = RuntimeContext(actor=storage.users["mgr"], storage=storage)
    owner = await runtime.resolve_owner("t2")
    await runtime.resolve_owner("t2")

    assert owner.id == "t2"
    assert storage.read_counts["get_user"] == 1


@pytest.mark.asyncio
async def test_resolve_owner_unknown_raises_tool_error(storage) -> None:
    runtime = RuntimeContext(actor=storage.users["mgr"], storage=storage)
    with pytest.raises(ToolError, match="Trainer not found: ghost"):
        await runtime.resolve_owner("ghost")
