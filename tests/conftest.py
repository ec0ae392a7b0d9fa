import os

import pytest

from loco_assistant.config import get_settings
from loco_assistant.storage.memory import MemoryStorage
from loco_assistant.storage.models import (
    BundleRecord,
    ClientRecord,
    MessageRecord,
    OrderRecord,
    User,
)

TRAINER_ID = "t1"


@pytest.fixture(autouse=True)
def test_env():
    os.environ["APP_ENV"] = "dev"
    os.environ["APP_BASE_URL"] = "https://app.example.test"
    os.environ["RESEND_API_KEY"] = "re_test"
    os.environ["RESEND_FROM_EMAIL"] = "invites@example.test"
    os.environ["RESEND_BASE_URL"] = "https://resend.test"
    os.environ["ASSISTANT_MAX_STEPS"] = "10"
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


def _message(idx: int, sender: str, receiver: str, content: str) -> MessageRecord:
    return MessageRecord(
        id=f"m{idx}",
        sender_id=sender,
        receiver_id=receiver,
        conversation_id="-".join(sorted([sender, receiver])),
        content=content,
        created_at=f"2026-01-01T00:00:{idx:02d}Z",
    )


@pytest.fixture
def storage() -> MemoryStorage:
    """One trainer with three clients, two bundles and a few chats and orders."""
    return MemoryStorage(
        users=[
            User(id=TRAINER_ID, name="Tess Trainer", email="tess@example.test", role="trainer"),
            User(id="t2", name="Other Trainer", email="other@example.test", role="trainer"),
            User(id="mgr", name="Mia Manager", email="mia@example.test", role="manager"),
            User(id="shop", name="Sam Shopper", email="sam@example.test", role="shopper"),
            User(id="u1", name="Ana", email="ana@example.test", role="client"),
            User(id="u2", name="Ben", email="ben@example.test", role="client"),
        ],
        clients=[
            ClientRecord(
                id="c1",
                trainer_id=TRAINER_ID,
                name="Ana",
                user_id="u1",
                email="ana@example.test",
                notes="wants strength training",
                status="active",
            ),
            ClientRecord(
                id="c2",
                trainer_id=TRAINER_ID,
                name="Ben",
                user_id="u2",
                email="ben@example.test",
                status="active",
            ),
            ClientRecord(id="c3", trainer_id=TRAINER_ID, name="Cara", email=None),
            ClientRecord(id="c9", trainer_id="t2", name="Zed", email="zed@example.test"),
        ],
        bundles=[
            BundleRecord(
                id="b1",
                trainer_id=TRAINER_ID,
                title="Strength Builder",
                description="Progressive strength training with barbell lifts",
                status="published",
                price="120.00",
                goals=["strength", {"focus": "barbell"}],
            ),
            BundleRecord(
                id="b2",
                trainer_id=TRAINER_ID,
                title="Marathon Prep",
                description="Running endurance plan",
                status="published",
                price="90.00",
            ),
            BundleRecord(id="b3", trainer_id=TRAINER_ID, title="Yoga Draft", status="draft"),
            BundleRecord(id="b9", trainer_id="t2", title="Other Bundle", status="published"),
        ],
        orders=[
            OrderRecord(id="o1", trainer_id=TRAINER_ID, total_amount="49.99", client_id="c1"),
            OrderRecord(
                id="o2",
                trainer_id=TRAINER_ID,
                total_amount="10.005",
                customer_email=" BEN@example.test ",
            ),
            OrderRecord(id="o3", trainer_id=TRAINER_ID, total_amount="0", client_id="c1"),
            OrderRecord(id="o4", trainer_id=TRAINER_ID, total_amount="-5", client_id="c2"),
        ],
        messages=[
            _message(1, "u1", TRAINER_ID, "I want barbell strength work"),
            _message(2, TRAINER_ID, "u1", "Great, let's plan lifts"),
            _message(3, "u2", TRAINER_ID, "Training for a marathon, running every day"),
        ],
    )
