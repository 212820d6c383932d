"""
Notification Replay
Bounded re-delivery of link-created events that were never confirmed
"""

import structlog

from app.services.request_store import RequestStore

logger = structlog.get_logger(__name__)


class NotificationReplayService:
    """
    Re-sends the link-created event for DONE requests whose latch is
    still false. The latch flips only on a confirmed send, so a request
    stays eligible until WebEngage accepts the event.
    """

    def __init__(self, store: RequestStore, notifier, settings):
        self.store = store
        self.notifier = notifier
        self.settings = settings
        self.logger = logger.bind(service="notification_replay")

    def run(self, limit: int = None) -> dict:
        """
        Replay one batch.

        Returns:
            dict with checked / sent / failed counts
        """
        limit = limit or self.settings.notification_replay_batch_size
        pending = self.store.pending_link_events(limit)

        sent = 0
        failed = 0
        for request in pending:
            ok = self.notifier.send(
                request.owner_id,
                self.settings.link_created_event,
                {
                    "transactionId": request.correlation_id,
                    "inviteLink": request.invite_link,
                }
            )
            if ok and self.store.latch_link_event(request.request_id):
                sent += 1
            elif not ok:
                failed += 1

        result = {"checked": len(pending), "sent": sent, "failed": failed}
        self.logger.info("notification_replay_completed", **result)
        return result
