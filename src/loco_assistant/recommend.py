"""Keyword-overlap matching of clients to bundles."""

from __future__ import annotations

from collections.abc import Iterable, Sequence
from dataclasses import dataclass

from loco_assistant.config import get_settings
from loco_assistant.runtime import RuntimeContext
from loco_assistant.storage.models import BundleRecord, ClientRecord
from loco_assistant.text import direct_conversation_id, display_name, extract_strings, tokenize

MAX_MATCHED_KEYWORDS = 8


@dataclass(slots=True)
class BundleMatch:
    client_id: str
    client_name: str
    bundle_draft_id: str
    bundle_title: str
    score: int
    matched_keywords: list[str]

    def to_dict(self) -> dict[str, object]:
        return {
            "clientId": self.client_id,
            "clientName": self.client_name,
            "bundleDraftId": self.bundle_draft_id,
            "bundleTitle": self.bundle_title,
            "score": self.score,
            "matchedKeywords": list(self.matched_keywords),
        }


def bundle_tokens(bundle: BundleRecord) -> list[str]:
    """Distinct tokens of a bundle, in first-seen order."""
    context = " ".join([bundle.title, bundle.description or "", *extract_strings(bundle.goals)])
    return list(dict.fromkeys(tokenize(context)))


def best_match(
    client_tokens: set[str],
    candidates: Sequence[tuple[BundleRecord, list[str]]],
) -> tuple[BundleRecord, list[str]] | None:
    """Highest-overlap candidate; the earliest candidate wins a tie."""
    best: tuple[BundleRecord, list[str]] | None = None
    for bundle, tokens in candidates:
        overlap = [token for token in tokens if token in client_tokens]
        if not overlap:
            continue
        if best is None or len(overlap) > len(best[1]):
            best = (bundle, overlap)
    return best


def score_clients(
    clients: Iterable[tuple[ClientRecord, str]],
    bundles: Iterable[BundleRecord],
) -> list[BundleMatch]:
    """Score each ``(client, transcript)`` pair against ``bundles``.

    Clients with no tokens or no positive match are omitted. The result is
    ordered by score descending; equal scores keep input order.
    """
    candidates = [(bundle, bundle_tokens(bundle)) for bundle in bundles]
    matches: list[BundleMatch] = []
    for client, transcript in clients:
        client_tokens = set(tokenize(f"{client.notes or ''} {transcript}".strip()))
        if not client_tokens:
            continue
        found = best_match(client_tokens, candidates)
        if found is None:
            continue
        bundle, overlap = found
        matches.append(
            BundleMatch(
                client_id=client.id,
                client_name=display_name(client.name, client.email),
                bundle_draft_id=bundle.id,
                bundle_title=bundle.title,
                score=len(overlap),
                matched_keywords=overlap[:MAX_MATCHED_KEYWORDS],
            )
        )
    matches.sort(key=lambda match: match.score, reverse=True)
    return matches


async def recommend_bundles_from_chats(
    runtime: RuntimeContext,
    owner_id: str,
    client_ids: Iterable[str] = (),
    bundle_ids: Iterable[str] = (),
) -> dict[str, object]:
    requested_clients = set(client_ids)
    requested_bundles = set(bundle_ids)
    transcript_limit = max(1, get_settings().assistant_transcript_limit)

    bundles = [
        bundle
        for bundle in await runtime.bundles(owner_id)
        if (
            bundle.id in requested_bundles
            if requested_bundles
            else (bundle.status or "").lower() == "published"
        )
    ]
    targets = [
        client
        for client in await runtime.clients(owner_id)
        if client.user_id and (not requested_clients or client.id in requested_clients)
    ]

    pairs: list[tuple[ClientRecord, str]] = []
    for client in targets:
        thread = await runtime.storage.get_messages_by_conversation(
            direct_conversation_id(owner_id, client.user_id or "")
        )
        transcript = " ".join(message.content or "" for message in thread[-transcript_limit:])
        pairs.append((client, transcript))

    matches = score_clients(pairs, bundles)
    return {
        "totalClientsEvaluated": len(targets),
        "totalRecommendations": len(matches),
        "recommendations": [match.to_dict() for match in matches],
    }
