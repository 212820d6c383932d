"""
Database Models
"""

from app.models.invite_request import InviteRequest, InviteStatus
from app.models.invite_lookup import InviteLookup

__all__ = [
    "InviteRequest",
    "InviteStatus",
    "InviteLookup",
]
