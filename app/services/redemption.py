"""
Invite Redemption Handler
Turns Telegram chat_member updates into the "joined" business event
"""

import enum
from typing import Optional

import structlog

from app.models.schemas import TelegramUpdate
from app.services.invite_index import InviteIndex
from app.services.request_store import RequestStore

logger = structlog.get_logger(__name__)

# New member statuses that count as a redemption
JOINED_STATUSES = frozenset({"member", "administrator", "creator"})


class RedemptionOutcome(str, enum.Enum):
    IGNORED = "ignored"
    ORPHAN = "orphan"
    MISSING = "missing"
    DUPLICATE = "duplicate"
    OK = "ok"


class RedemptionHandler:
    """
    Resolves a joined member's invite link to its request and fires the
    joined event at most once per request.

    Nothing here raises for unrecognized input: unrelated updates,
    unknown links and missing requests all pass through as outcomes.
    """

    def __init__(self, store: RequestStore, index: InviteIndex, notifier, settings):
        self.store = store
        self.index = index
        self.notifier = notifier
        self.settings = settings
        self.logger = logger.bind(service="redemption")

    def handle_update(self, update: TelegramUpdate) -> RedemptionOutcome:
        """Extract the redemption fields from a Telegram update."""
        member_update = update.member_update
        if member_update is None:
            return RedemptionOutcome.IGNORED

        invite_link = member_update.invite_link.invite_link if member_update.invite_link else None
        new_member = member_update.new_chat_member
        status = new_member.status if new_member else None
        redeemer_id = new_member.user.id if new_member and new_member.user else None

        return self.redeem(invite_link, status, redeemer_id)

    def redeem(
        self,
        invite_link: Optional[str],
        status: Optional[str],
        redeemer_id: Optional[object]
    ) -> RedemptionOutcome:
        """
        Handle one redemption signal.

        Args:
            invite_link: Link the member joined through
            status: New chat member status
            redeemer_id: Telegram user id of the joining member
        """
        if not invite_link or redeemer_id is None or status not in JOINED_STATUSES:
            self.logger.debug("redemption_ignored", status=status, has_link=bool(invite_link))
            return RedemptionOutcome.IGNORED

        redeemer_id = str(redeemer_id)

        entry = self.index.lookup(invite_link)
        if entry is None:
            self.logger.info("redemption_orphan", redeemer_id=redeemer_id)
            return RedemptionOutcome.ORPHAN

        log = self.logger.bind(request_id=entry.request_id, redeemer_id=redeemer_id)

        request = self.store.get(entry.request_id)
        if request is None:
            log.warning("redemption_request_missing")
            return RedemptionOutcome.MISSING

        if request.join_event_sent:
            log.info("redemption_duplicate")
            return RedemptionOutcome.DUPLICATE

        sent = self.notifier.send(
            request.owner_id,
            self.settings.joined_event,
            {
                "transactionId": request.correlation_id,
                "inviteLink": invite_link,
                "telegramUserId": redeemer_id,
            }
        )

        self.store.record_join(request.request_id, redeemer_id, sent)

        if sent:
            log.info("redemption_recorded")
        else:
            log.warning("join_event_not_delivered")
        return RedemptionOutcome.OK
