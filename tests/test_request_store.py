"""
Tests for RequestStore conditional writes
"""

from app.models.invite_request import InviteStatus


class TestRequestStore:

    def test_create_defaults(self, store):
        row = store.create("u1", "txn1")

        assert row.request_id
        assert row.status == InviteStatus.QUEUED.value
        assert row.attempts == 0
        assert row.created_at is not None
        assert row.updated_at is not None

    def test_claim_requires_matching_snapshot(self, store):
        row = store.create("u1")

        assert store.claim(row.request_id, InviteStatus.DONE.value, 0, 1) is False
        assert store.claim(row.request_id, InviteStatus.QUEUED.value, 3, 4) is False
        assert store.claim(row.request_id, InviteStatus.QUEUED.value, 0, 1) is True

        claimed = store.get(row.request_id)
        assert claimed.status == InviteStatus.PROCESSING.value
        assert claimed.attempts == 1

    def test_claim_refreshes_updated_at(self, store):
        row = store.create("u1")
        store.claim(row.request_id, InviteStatus.QUEUED.value, 0, 1)
        assert store.get(row.request_id).updated_at >= row.updated_at

    def test_requeue_only_for_owning_claim(self, store):
        row = store.create("u1")
        store.claim(row.request_id, InviteStatus.QUEUED.value, 0, 1)

        assert store.requeue(row.request_id, 2, 10, "stale") is False
        assert store.requeue(row.request_id, 1, 10, "rate limited") is True

        requeued = store.get(row.request_id)
        assert requeued.status == InviteStatus.QUEUED.value
        assert requeued.attempts == 1
        assert requeued.last_error == "rate limited"

    def test_mark_done_never_overwrites_link(self, store):
        row = store.create("u1")

        assert store.mark_done(row.request_id, "first") is True
        assert store.mark_done(row.request_id, "second") is False
        assert store.get(row.request_id).invite_link == "first"

    def test_terminal_states_are_final(self, store):
        done = store.create("u1")
        store.mark_done(done.request_id, "link")
        assert store.mark_failed(done.request_id, "late failure") is False
        assert store.get(done.request_id).status == InviteStatus.DONE.value

        failed = store.create("u2")
        store.mark_failed(failed.request_id, "fatal")
        assert store.mark_done(failed.request_id, "link") is False
        assert store.claim(failed.request_id, InviteStatus.QUEUED.value, 0, 1) is False
        assert store.get(failed.request_id).status == InviteStatus.FAILED.value

    def test_link_event_latch_is_one_way(self, store):
        row = store.create("u1")

        assert store.latch_link_event(row.request_id) is True
        assert store.latch_link_event(row.request_id) is False
        assert store.get(row.request_id).link_event_sent is True

    def test_record_join_sets_redeemer_once(self, store):
        row = store.create("u1")

        # Undelivered event: redeemer recorded, latch stays open
        assert store.record_join(row.request_id, "u99", sent=False) is True
        first = store.get(row.request_id)
        assert first.redeemer_id == "u99"
        assert first.joined_at is not None
        assert first.join_event_sent is False

        assert store.record_join(row.request_id, "u100", sent=True) is True
        second = store.get(row.request_id)
        assert second.redeemer_id == "u99"
        assert second.joined_at == first.joined_at
        assert second.join_event_sent is True

        assert store.record_join(row.request_id, "u101", sent=True) is False

    def test_count_and_list(self, store):
        a = store.create("u1")
        store.create("u2")
        store.mark_done(a.request_id, "link")

        counts = store.count_by_status()
        assert counts == {"QUEUED": 1, "PROCESSING": 0, "DONE": 1, "FAILED": 0}

        done = store.list(status=InviteStatus.DONE.value)
        assert [r.request_id for r in done] == [a.request_id]
        assert len(store.list()) == 2

    def test_pending_link_events(self, store):
        a = store.create("u1")
        b = store.create("u2")
        store.create("u3")
        store.mark_done(a.request_id, "link-a")
        store.mark_done(b.request_id, "link-b")
        store.latch_link_event(b.request_id)

        pending = store.pending_link_events()
        assert [r.request_id for r in pending] == [a.request_id]
