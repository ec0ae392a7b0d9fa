import pytest

from loco_assistant.recommend import (
    MAX_MATCHED_KEYWORDS,
    bundle_tokens,
    recommend_bundles_from_chats,
    score_clients,
)
from loco_assistant.runtime import RuntimeContext
from loco_assistant.storage.models import BundleRecord, ClientRecord


def _client(client_id: str, notes: str = "") -> ClientRecord:
    return ClientRecord(id=client_id, trainer_id="t1", name=client_id.upper(), notes=notes)


def test_bundle_tokens_are_distinct_and_include_goals() -> None:
    bundle = BundleRecord(
        id="b", trainer_id="t1", title="Strength Strength", description=None, goals={"a": ["mobility"]}
    )
    assert bundle_tokens(bundle) == ["strength", "mobility"]


def test_equal_overlap_prefers_earlier_bundle() -> None:
    bundles = [
        BundleRecord(id="first", trainer_id="t1", title="yoga mobility"),
        BundleRecord(id="second", trainer_id="t1", title="mobility yoga"),
    ]
    matches = score_clients([(_client("c1"), "yoga and mobility please")], bundles)

    assert [match.bundle_draft_id for match in matches] == ["first"]
    assert matches[0].score == 2


def test_clients_without_tokens_or_overlap_are_omitted() -> None:
    bundles = [BundleRecord(id="b", trainer_id="t1", title="swimming")]
    matches = score_clients(
        [(_client("empty"), "a an the"), (_client("other"), "cycling lessons")], bundles
    )
    assert matches == []


def test_ordering_is_by_score_then_input_order() -> None:
    bundles = [BundleRecord(id="b", trainer_id="t1", title="swim bike run plan")]
    pairs = [
        (_client("low"), "swim"),
        (_client("high"), "swim bike run"),
        (_client("tie"), "swim"),
    ]
    first = score_clients(pairs, bundles)
    second = score_clients(pairs, bundles)

    assert [match.client_id for match in first] == ["high", "low", "tie"]
    assert [match.to_dict() for match in first] == [match.to_dict() for match in second]


def test_matched_keywords_are_capped() -> None:
    words = " ".join(f"word{idx}" for idx in range(12))
    bundles = [BundleRecord(id="b", trainer_id="t1", title=words)]
    matches = score_clients([(_client("c1", notes=words), "")], bundles)

    assert matches[0].score == 12
    assert len(matches[0].matched_keywords) == MAX_MATCHED_KEYWORDS


@pytest.mark.asyncio
async def test_recommend_from_chats_uses_published_bundles_and_linked_clients(storage) -> None:
    runtime = RuntimeContext(actor=storage.users["t1"], storage=storage)
    result = await recommend_bundles_from_chats(runtime, "t1")

    assert result["totalClientsEvaluated"] == 2
    assert result["totalRecommendations"] == 2
    first, second = result["recommendations"]
    assert first == {
        "clientId": "c1",
        "clientName": "Ana",
        "bundleDraftId": "b1",
        "bundleTitle": "Strength Builder",
        "score": 4,
        "matchedKeywords": ["strength", "training", "barbell", "lifts"],
    }
    assert second["clientId"] == "c2"
    assert second["bundleDraftId"] == "b2"
    assert second["matchedKeywords"] == ["marathon", "running"]


@pytest.mark.asyncio
async def test_requested_bundle_ids_include_drafts(storage) -> None:
    runtime = RuntimeContext(actor=storage.users["t1"], storage=storage)
    result = await recommend_bundles_from_chats(runtime, "t1", client_ids=["c1"], bundle_ids=["b3"])

    assert result["totalClientsEvaluated"] == 1
    assert result["recommendations"] == []


@pytest.mark.asyncio
async def test_recommend_from_chats_is_deterministic(storage) -> None:
    actor = storage.users["t1"]
    first = await recommend_bundles_from_chats(RuntimeContext(actor=actor, storage=storage), "t1")
    second = await recommend_bundles_from_chats(RuntimeContext(actor=actor, storage=storage), "t1")

    assert first == second
