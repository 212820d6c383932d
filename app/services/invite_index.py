"""
Invite Fingerprint Index
SHA-256 keyed lookup from an issued invite link back to its request
"""

import hashlib
from datetime import datetime
from typing import Optional

import structlog
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session, sessionmaker

from app.models.invite_lookup import InviteLookup

logger = structlog.get_logger(__name__)


def fingerprint(invite_link: str) -> str:
    """
    One-way fingerprint of an invite link.

    Args:
        invite_link: Raw link as returned by Telegram

    Returns:
        64-char lowercase SHA-256 hex digest
    """
    return hashlib.sha256(str(invite_link).encode("utf-8")).hexdigest()


class InviteIndex:
    """
    Write-once, read-many index of issued invite links.

    There is no update operation: put() never overwrites an existing
    fingerprint, so the first request to claim a link keeps it.
    """

    def __init__(self, session_factory: sessionmaker):
        self.session_factory = session_factory
        self.logger = logger.bind(service="invite_index")

    def put(
        self,
        invite_link: str,
        request_id: str,
        owner_id: str,
        correlation_id: str = ""
    ) -> bool:
        """
        Insert an index entry for a freshly issued link.

        Returns:
            True if a row was created, False if the fingerprint already existed
        """
        key = fingerprint(invite_link)
        session: Session = self.session_factory()
        try:
            if session.get(InviteLookup, key) is not None:
                self.logger.warning("invite_index_entry_exists", fingerprint=key, request_id=request_id)
                return False

            session.add(InviteLookup(
                fingerprint=key,
                invite_link=invite_link,
                request_id=request_id,
                owner_id=owner_id,
                correlation_id=correlation_id or "",
                created_at=datetime.utcnow()
            ))
            session.commit()
            self.logger.info("invite_index_entry_created", fingerprint=key, request_id=request_id)
            return True

        except IntegrityError:
            # Concurrent insert of the same fingerprint won the race
            session.rollback()
            self.logger.warning("invite_index_entry_race", fingerprint=key, request_id=request_id)
            return False
        finally:
            session.close()

    def lookup(self, invite_link: str) -> Optional[InviteLookup]:
        """Resolve an invite link to its index entry, or None for unknown links."""
        session: Session = self.session_factory()
        try:
            entry = session.get(InviteLookup, fingerprint(invite_link))
            if entry is not None:
                session.expunge(entry)
            return entry
        finally:
            session.close()
