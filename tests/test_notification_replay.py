"""
Tests for NotificationReplayService
"""

from app.services.notification_replay import NotificationReplayService

from tests.fakes import FakeNotifier


def done_request(store, owner, link, latched=False):
    row = store.create(owner, f"txn-{owner}")
    store.mark_done(row.request_id, link)
    if latched:
        store.latch_link_event(row.request_id)
    return row.request_id


class TestNotificationReplay:

    def test_replays_only_unconfirmed_done_requests(self, store, settings):
        pending = done_request(store, "u1", "link-1")
        done_request(store, "u2", "link-2", latched=True)
        store.create("u3")
        notifier = FakeNotifier()

        result = NotificationReplayService(store, notifier, settings).run()

        assert result == {"checked": 1, "sent": 1, "failed": 0}
        assert notifier.calls == [
            ("u1", settings.link_created_event, {"transactionId": "txn-u1", "inviteLink": "link-1"})
        ]
        assert store.get(pending).link_event_sent is True

    def test_failed_replay_keeps_request_eligible(self, store, settings):
        pending = done_request(store, "u1", "link-1")
        notifier = FakeNotifier(result=False)
        service = NotificationReplayService(store, notifier, settings)

        assert service.run() == {"checked": 1, "sent": 0, "failed": 1}
        assert store.get(pending).link_event_sent is False

        notifier.result = True
        assert service.run() == {"checked": 1, "sent": 1, "failed": 0}
        assert service.run() == {"checked": 0, "sent": 0, "failed": 0}

    def test_batch_is_bounded(self, store, settings):
        for n in range(5):
            done_request(store, f"u{n}", f"link-{n}")
        notifier = FakeNotifier()

        result = NotificationReplayService(store, notifier, settings).run(limit=2)

        assert result["checked"] == 2
        assert len(notifier.calls) == 2
        assert len(store.pending_link_events()) == 3
