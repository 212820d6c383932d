"""
InviteLookup Model
Fingerprint index from an issued invite link back to its request
"""

from sqlalchemy import Column, String, DateTime, Text
from sqlalchemy.sql import func
from app.database import Base


class InviteLookup(Base):
    """
    Write-once index entry, one per issued invite link.

    Keyed by SHA-256 of the link so the raw link is never used as a key.
    Owner and correlation ids are denormalized so the webhook path needs
    a single read to resolve a redemption.
    """
    __tablename__ = "invite_lookup"

    fingerprint = Column(String(64), primary_key=True)

    invite_link = Column(Text, nullable=False)
    request_id = Column(String(64), nullable=False, index=True)
    owner_id = Column(String(255), nullable=False)
    correlation_id = Column(String(255), nullable=False, default="")

    created_at = Column(DateTime, server_default=func.now(), nullable=False)

    def __repr__(self):
        return f"<InviteLookup(fingerprint='{self.fingerprint[:12]}...', request_id='{self.request_id}')>"
