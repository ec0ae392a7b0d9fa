"""Client engagement versus revenue aggregation."""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from dataclasses import dataclass

from loco_assistant.runtime import RuntimeContext
from loco_assistant.storage.models import ClientRecord, OrderRecord
from loco_assistant.text import display_name, to_minor

DEFAULT_TOP_N = 12
TOP_RANKING_SIZE = 3


@dataclass(slots=True, frozen=True)
class GraphPoint:
    client_id: str
    client_name: str
    message_count: int
    revenue_minor: int

    @property
    def revenue(self) -> float:
        return self.revenue_minor / 100

    def to_dict(self) -> dict[str, object]:
        return {
            "clientId": self.client_id,
            "clientName": self.client_name,
            "messageCount": self.message_count,
            "revenueMinor": self.revenue_minor,
            "revenue": self.revenue,
        }


def _email_key(value: str | None) -> str:
    return (value or "").strip().lower()


def build_revenue_by_client(
    clients: Iterable[ClientRecord],
    orders: Iterable[OrderRecord],
) -> dict[str, int]:
    """Sum positive order totals (minor units) per client id.

    Orders link by client id when it belongs to ``clients``; otherwise by the
    order's customer email against the first client registered with it.
    """
    roster = list(clients)
    client_ids = {client.id for client in roster}
    client_id_by_email: dict[str, str] = {}
    for client in roster:
        key = _email_key(client.email)
        if key:
            client_id_by_email.setdefault(key, client.id)

    revenue: dict[str, int] = {}
    for order in orders:
        amount_minor = to_minor(order.total_amount)
        if amount_minor <= 0:
            continue
        if order.client_id and order.client_id in client_ids:
            target = order.client_id
        else:
            target = client_id_by_email.get(_email_key(order.customer_email))
        if target:
            revenue[target] = revenue.get(target, 0) + amount_minor
    return revenue


def build_graph_points(
    clients: Iterable[ClientRecord],
    revenue_by_client: Mapping[str, int],
    message_counts: Mapping[str, int],
) -> list[GraphPoint]:
    return [
        GraphPoint(
            client_id=client.id,
            client_name=display_name(client.name, client.email),
            message_count=(message_counts.get(client.user_id, 0) if client.user_id else 0),
            revenue_minor=revenue_by_client.get(client.id, 0),
        )
        for client in clients
    ]


def rank_points(points: list[GraphPoint], top_n: int) -> dict[str, object]:
    by_revenue = sorted(points, key=lambda point: point.revenue_minor, reverse=True)
    by_messages = sorted(points, key=lambda point: point.message_count, reverse=True)
    limit = max(1, min(top_n, len(points) or 1))
    return {
        "points": by_revenue[:limit],
        "topByMessages": by_messages[:TOP_RANKING_SIZE],
        "topByRevenue": by_revenue[:TOP_RANKING_SIZE],
        "totalClients": len(points),
    }


async def build_client_value_report(
    runtime: RuntimeContext, owner_id: str, top_n: int = DEFAULT_TOP_N
) -> dict[str, object]:
    clients = await runtime.clients(owner_id)
    orders = await runtime.orders(owner_id)
    message_counts = await runtime.message_counts_by_client(owner_id)
    points = build_graph_points(clients, build_revenue_by_client(clients, orders), message_counts)
    ranked = rank_points(points, top_n)
    return {
        key: [point.to_dict() for point in value] if isinstance(value, list) else value
        for key, value in ranked.items()
    }


def graph_points_from_report(report: Mapping[str, object]) -> list[GraphPoint] | None:
    """Rebuild chart data from a serialized report; None when it carries no points."""
    raw_points = report.get("points")
    if not isinstance(raw_points, list):
        return None
    points: list[GraphPoint] = []
    for item in raw_points:
        if not isinstance(item, Mapping):
            continue
        points.append(
            GraphPoint(
                client_id=str(item.get("clientId", "")),
                client_name=str(item.get("clientName", "")),
                message_count=int(item.get("messageCount") or 0),
                revenue_minor=int(item.get("revenueMinor") or 0),
            )
        )
    return points
