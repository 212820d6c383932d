"""
InviteRequest Model
One row per client ask for a single-use Telegram invite link
"""

import enum

from sqlalchemy import Column, Integer, String, DateTime, Text, Boolean, Index
from sqlalchemy.sql import func
from app.database import Base


class InviteStatus(str, enum.Enum):
    """
    Lifecycle states of an invite request.

    QUEUED -> PROCESSING -> DONE
                         -> QUEUED (rate limited / transient issuer failure)
                         -> FAILED (attempt ceiling or fatal issuer error)
    """
    QUEUED = "QUEUED"
    PROCESSING = "PROCESSING"
    DONE = "DONE"
    FAILED = "FAILED"

    @property
    def is_terminal(self) -> bool:
        return self in (InviteStatus.DONE, InviteStatus.FAILED)


class InviteRequest(Base):
    """
    Durable record of an invite request.

    Status transitions are owned by InviteLifecycleController; the
    webhook path only touches the redemption columns.
    """
    __tablename__ = "invite_requests"

    # Primary Key (uuid4, generated at creation)
    request_id = Column(String(64), primary_key=True)

    # Immutable inputs
    owner_id = Column(String(255), nullable=False, index=True)
    correlation_id = Column(String(255), nullable=False, default="")  # payment / transaction reference

    # State machine
    status = Column(String(20), nullable=False, default=InviteStatus.QUEUED.value)
    attempts = Column(Integer, nullable=False, default=0)
    last_error = Column(Text, nullable=True)
    next_attempt_at = Column(DateTime, nullable=True)

    # Issued artifact (set once, on DONE)
    invite_link = Column(Text, nullable=True)

    # One-way notification latches
    link_event_sent = Column(Boolean, nullable=False, default=False)
    join_event_sent = Column(Boolean, nullable=False, default=False)

    # Redemption
    redeemer_id = Column(String(64), nullable=True)
    joined_at = Column(DateTime, nullable=True)

    # Timestamps
    created_at = Column(DateTime, server_default=func.now(), nullable=False)
    updated_at = Column(DateTime, server_default=func.now(), nullable=False)

    __table_args__ = (
        Index('ix_invite_requests_status', 'status'),
        Index('ix_invite_requests_pending_link_event', 'status', 'link_event_sent'),
    )

    def to_dict(self) -> dict:
        return {
            "requestId": self.request_id,
            "userId": self.owner_id,
            "transactionId": self.correlation_id,
            "status": self.status,
            "attempts": self.attempts,
            "inviteLink": self.invite_link,
            "linkEventSent": self.link_event_sent,
            "joinEventSent": self.join_event_sent,
            "telegramUserId": self.redeemer_id,
            "joinedAt": self.joined_at.isoformat() if self.joined_at else None,
            "lastError": self.last_error,
            "nextAttemptAt": self.next_attempt_at.isoformat() if self.next_attempt_at else None,
            "createdAt": self.created_at.isoformat() if self.created_at else None,
            "updatedAt": self.updated_at.isoformat() if self.updated_at else None,
        }

    def __repr__(self):
        return f"<InviteRequest(request_id='{self.request_id}', status='{self.status}', attempts={self.attempts})>"
