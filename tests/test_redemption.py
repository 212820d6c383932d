"""
Tests for RedemptionHandler

Tests cover:
- joined member with a known link fires the joined event once
- unknown links are orphans with no store mutation
- unrelated updates and statuses are ignored
- redelivered signals are not re-notified
"""

import pytest

from app.models.schemas import TelegramUpdate
from app.services.redemption import RedemptionHandler, RedemptionOutcome

from tests.fakes import FakeNotifier


def chat_member_update(invite_link="X", status="member", user_id=99, key="chat_member"):
    body = {
        "update_id": 1000,
        key: {
            "chat": {"id": -1001234567890, "type": "channel"},
            "from": {"id": user_id},
            "date": 1700000000,
            "old_chat_member": {"status": "left", "user": {"id": user_id}},
            "new_chat_member": {"status": status, "user": {"id": user_id, "is_bot": False}},
        },
    }
    if invite_link is not None:
        body[key]["invite_link"] = {"invite_link": invite_link, "creator": {"id": 1}, "member_limit": 1}
    return TelegramUpdate.model_validate(body)


@pytest.fixture
def issued(store, index):
    """A DONE request whose link "X" is indexed."""
    row = store.create("u1", "txn1")
    index.put("X", row.request_id, "u1", "txn1")
    store.mark_done(row.request_id, "X")
    return row.request_id


class TestRedemption:

    def test_member_join_fires_event_once(self, store, index, settings, issued):
        """Link X, status member, redeemer u99 -> one dispatch, latch set, redeemer stored."""
        notifier = FakeNotifier()
        handler = RedemptionHandler(store, index, notifier, settings)

        outcome = handler.redeem("X", "member", "u99")

        row = store.get(issued)
        assert outcome is RedemptionOutcome.OK
        assert row.join_event_sent is True
        assert row.redeemer_id == "u99"
        assert row.joined_at is not None
        assert notifier.calls == [
            ("u1", settings.joined_event, {"transactionId": "txn1", "inviteLink": "X", "telegramUserId": "u99"})
        ]

    def test_duplicate_signal_is_not_renotified(self, store, index, settings, issued):
        notifier = FakeNotifier()
        handler = RedemptionHandler(store, index, notifier, settings)

        assert handler.redeem("X", "member", "u99") is RedemptionOutcome.OK
        assert handler.redeem("X", "member", "u99") is RedemptionOutcome.DUPLICATE

        assert len(notifier.calls) == 1
        assert store.get(issued).join_event_sent is True

    def test_unknown_link_is_orphan(self, store, index, settings, issued):
        notifier = FakeNotifier()
        handler = RedemptionHandler(store, index, notifier, settings)
        before = store.get(issued)

        outcome = handler.redeem("https://t.me/+somebody-else", "member", "u99")

        after = store.get(issued)
        assert outcome is RedemptionOutcome.ORPHAN
        assert notifier.calls == []
        assert after.updated_at == before.updated_at
        assert after.redeemer_id is None

    def test_missing_request_is_noop(self, store, index, settings):
        index.put("Y", "gone", "u1", "txn1")
        notifier = FakeNotifier()
        handler = RedemptionHandler(store, index, notifier, settings)

        assert handler.redeem("Y", "member", "u99") is RedemptionOutcome.MISSING
        assert notifier.calls == []

    @pytest.mark.parametrize("link,status,redeemer", [
        (None, "member", "u99"),
        ("X", "left", "u99"),
        ("X", "kicked", "u99"),
        ("X", None, "u99"),
        ("X", "member", None),
    ])
    def test_unrecognized_signals_are_ignored(self, store, index, settings, issued, link, status, redeemer):
        notifier = FakeNotifier()
        handler = RedemptionHandler(store, index, notifier, settings)

        assert handler.redeem(link, status, redeemer) is RedemptionOutcome.IGNORED
        assert notifier.calls == []
        assert store.get(issued).join_event_sent is False

    def test_failed_notification_allows_redelivery(self, store, index, settings, issued):
        notifier = FakeNotifier(result=False)
        handler = RedemptionHandler(store, index, notifier, settings)

        assert handler.redeem("X", "member", "u99") is RedemptionOutcome.OK
        assert store.get(issued).join_event_sent is False

        notifier.result = True
        assert handler.redeem("X", "administrator", "u99") is RedemptionOutcome.OK

        row = store.get(issued)
        assert row.join_event_sent is True
        assert row.redeemer_id == "u99"
        assert len(notifier.calls) == 2


class TestHandleUpdate:

    def test_chat_member_update(self, store, index, settings, issued):
        notifier = FakeNotifier()
        handler = RedemptionHandler(store, index, notifier, settings)

        outcome = handler.handle_update(chat_member_update())

        assert outcome is RedemptionOutcome.OK
        assert store.get(issued).redeemer_id == "99"

    def test_my_chat_member_update(self, store, index, settings, issued):
        handler = RedemptionHandler(store, index, FakeNotifier(), settings)

        outcome = handler.handle_update(chat_member_update(status="administrator", key="my_chat_member"))

        assert outcome is RedemptionOutcome.OK

    def test_message_update_is_ignored(self, store, index, settings):
        handler = RedemptionHandler(store, index, FakeNotifier(), settings)
        update = TelegramUpdate.model_validate({"update_id": 1, "message": {"text": "hi"}})

        assert handler.handle_update(update) is RedemptionOutcome.IGNORED

    def test_join_without_invite_link_is_ignored(self, store, index, settings, issued):
        handler = RedemptionHandler(store, index, FakeNotifier(), settings)

        assert handler.handle_update(chat_member_update(invite_link=None)) is RedemptionOutcome.IGNORED
