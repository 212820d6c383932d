"""
Invite Request Store
Single-row reads and conditional writes on invite_requests
"""

from datetime import datetime, timedelta
from typing import Dict, List, Optional
import uuid

import structlog
from sqlalchemy import func
from sqlalchemy.orm import Session, sessionmaker

from app.models.invite_request import InviteRequest, InviteStatus

logger = structlog.get_logger(__name__)

TERMINAL_STATUSES = (InviteStatus.DONE.value, InviteStatus.FAILED.value)


class RequestStore:
    """
    Persistence for InviteRequest rows.

    Every method opens its own session and commits before returning, so
    each call is one independent single-row operation. State-changing
    writes are conditional UPDATEs; the boolean they return says whether
    the expected row state still held (compare-and-swap).

    Rows handed back to callers are detached snapshots.
    """

    def __init__(self, session_factory: sessionmaker):
        """
        Args:
            session_factory: SQLAlchemy sessionmaker (not session - creates independent transactions)
        """
        self.session_factory = session_factory
        self.logger = logger.bind(service="request_store")

    def _conditional_update(self, request_id: str, criteria: list, values: dict) -> bool:
        session: Session = self.session_factory()
        try:
            values = dict(values, updated_at=datetime.utcnow())
            matched = session.query(InviteRequest).filter(
                InviteRequest.request_id == request_id,
                *criteria
            ).update(values, synchronize_session=False)
            session.commit()
            return matched > 0
        except Exception:
            session.rollback()
            raise
        finally:
            session.close()

    # --- Reads ---

    def get(self, request_id: str) -> Optional[InviteRequest]:
        session: Session = self.session_factory()
        try:
            row = session.get(InviteRequest, request_id)
            if row is not None:
                session.expunge(row)
            return row
        finally:
            session.close()

    def list(self, status: Optional[str] = None, limit: int = 50) -> List[InviteRequest]:
        """Newest first, optionally filtered by status."""
        session: Session = self.session_factory()
        try:
            query = session.query(InviteRequest)
            if status:
                query = query.filter(InviteRequest.status == status)
            rows = query.order_by(InviteRequest.created_at.desc()).limit(limit).all()
            session.expunge_all()
            return rows
        finally:
            session.close()

    def count_by_status(self) -> Dict[str, int]:
        session: Session = self.session_factory()
        try:
            counts = {status.value: 0 for status in InviteStatus}
            rows = session.query(
                InviteRequest.status, func.count(InviteRequest.request_id)
            ).group_by(InviteRequest.status).all()
            for status, count in rows:
                counts[status] = count
            return counts
        finally:
            session.close()

    def pending_link_events(self, limit: int = 100) -> List[InviteRequest]:
        """DONE requests whose link-created event was never confirmed, oldest first."""
        session: Session = self.session_factory()
        try:
            rows = session.query(InviteRequest).filter(
                InviteRequest.status == InviteStatus.DONE.value,
                InviteRequest.link_event_sent.is_(False)
            ).order_by(InviteRequest.updated_at.asc()).limit(limit).all()
            session.expunge_all()
            return rows
        finally:
            session.close()

    # --- Writes ---

    def create(self, owner_id: str, correlation_id: str = "") -> InviteRequest:
        """Insert a new QUEUED request with a fresh request_id."""
        session: Session = self.session_factory()
        try:
            now = datetime.utcnow()
            row = InviteRequest(
                request_id=str(uuid.uuid4()),
                owner_id=owner_id,
                correlation_id=correlation_id or "",
                status=InviteStatus.QUEUED.value,
                attempts=0,
                link_event_sent=False,
                join_event_sent=False,
                created_at=now,
                updated_at=now
            )
            session.add(row)
            session.commit()
            session.refresh(row)
            session.expunge(row)
            self.logger.info("invite_request_created", request_id=row.request_id, owner_id=owner_id)
            return row
        except Exception:
            session.rollback()
            raise
        finally:
            session.close()

    def claim(
        self,
        request_id: str,
        expected_status: str,
        expected_attempts: int,
        next_attempts: int
    ) -> bool:
        """
        Move a request to PROCESSING and bump attempts, only if the row
        still has the status/attempts the caller read.
        """
        return self._conditional_update(
            request_id,
            [InviteRequest.status == expected_status, InviteRequest.attempts == expected_attempts],
            {
                "status": InviteStatus.PROCESSING.value,
                "attempts": next_attempts,
                "next_attempt_at": None,
            }
        )

    def requeue(self, request_id: str, attempts: int, retry_after: int, error: Optional[str] = None) -> bool:
        """PROCESSING -> QUEUED for the claim that owns `attempts`."""
        return self._conditional_update(
            request_id,
            [InviteRequest.status == InviteStatus.PROCESSING.value, InviteRequest.attempts == attempts],
            {
                "status": InviteStatus.QUEUED.value,
                "last_error": error,
                "next_attempt_at": datetime.utcnow() + timedelta(seconds=retry_after),
            }
        )

    def mark_done(self, request_id: str, invite_link: str) -> bool:
        """Store the artifact and move to DONE. Never overwrites an existing link."""
        return self._conditional_update(
            request_id,
            [InviteRequest.status.notin_(TERMINAL_STATUSES), InviteRequest.invite_link.is_(None)],
            {
                "status": InviteStatus.DONE.value,
                "invite_link": invite_link,
                "last_error": None,
                "next_attempt_at": None,
            }
        )

    def mark_failed(self, request_id: str, reason: str) -> bool:
        return self._conditional_update(
            request_id,
            [InviteRequest.status.notin_(TERMINAL_STATUSES)],
            {
                "status": InviteStatus.FAILED.value,
                "last_error": reason,
                "next_attempt_at": None,
            }
        )

    def latch_link_event(self, request_id: str) -> bool:
        """link_event_sent false -> true. Never flips back."""
        return self._conditional_update(
            request_id,
            [InviteRequest.link_event_sent.is_(False)],
            {"link_event_sent": True}
        )

    def record_join(self, request_id: str, redeemer_id: str, sent: bool) -> bool:
        """
        Record a redemption: redeemer and joined_at are set once, the
        join latch flips only when the event was delivered.
        """
        values = {
            "redeemer_id": func.coalesce(InviteRequest.redeemer_id, redeemer_id),
            "joined_at": func.coalesce(InviteRequest.joined_at, datetime.utcnow()),
        }
        if sent:
            values["join_event_sent"] = True
        return self._conditional_update(
            request_id,
            [InviteRequest.join_event_sent.is_(False)],
            values
        )
