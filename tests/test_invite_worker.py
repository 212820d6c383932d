"""
Tests for the Dramatiq scheduler and worker actor
"""

import pytest
from dramatiq.brokers.stub import StubBroker
from sqlalchemy.exc import OperationalError

from app.actors import broker
from app.actors.invite_worker import process_invite_request, should_retry
from app.models.invite_request import InviteStatus
from app.services.task_scheduler import DramatiqTaskScheduler, SchedulingError


@pytest.fixture(autouse=True)
def flush_broker():
    broker.flush_all()
    yield
    broker.flush_all()


class TestDramatiqTaskScheduler:

    def test_uses_stub_broker_without_redis(self):
        assert isinstance(broker, StubBroker)

    def test_immediate_step(self):
        DramatiqTaskScheduler().schedule("req-1")

        queue = broker.queues["telegram_invites"]
        assert queue.qsize() == 1

    def test_delayed_step_goes_to_delay_queue(self):
        DramatiqTaskScheduler().schedule("req-1", 30)

        assert broker.queues["telegram_invites"].qsize() == 0
        assert broker.queues["telegram_invites.DQ"].qsize() == 1

    def test_enqueue_failure_is_wrapped(self, monkeypatch):
        def boom(*args, **kwargs):
            raise ConnectionError("redis down")

        monkeypatch.setattr(process_invite_request, "send_with_options", boom)

        with pytest.raises(SchedulingError):
            DramatiqTaskScheduler().schedule("req-1")


class TestProcessInviteRequestActor:

    def test_actor_runs_controller_step(self, container):
        request_id = container.controller.create("u1", "txn1")

        process_invite_request(request_id)

        assert container.store.get(request_id).status == InviteStatus.DONE.value

    @pytest.mark.parametrize("exception,expected", [
        (SchedulingError("broker down"), True),
        (OperationalError("select 1", {}, Exception("db down")), True),
        (ConnectionError("reset"), True),
        (ValueError("bad input"), False),
        (KeyError("x"), False),
    ])
    def test_should_retry(self, exception, expected):
        assert should_retry(0, exception) is expected

    def test_should_retry_is_bounded(self):
        assert should_retry(5, SchedulingError("broker down")) is False
