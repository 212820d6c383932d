"""
Pydantic schemas for the invite API and Telegram webhook payloads
"""

from pydantic import BaseModel, ConfigDict, Field
from typing import Optional, Union


class InviteCreateRequest(BaseModel):
    """
    Body of POST /v1/invite/request

    userId is optional at the schema level so a missing value can be
    answered with the service's own 400 message instead of a 422.
    """
    model_config = ConfigDict(populate_by_name=True, extra="allow")

    user_id: Optional[Union[str, int]] = Field(None, alias="userId")
    transaction_id: Optional[Union[str, int]] = Field("", alias="transactionId")


class InviteCreateResponse(BaseModel):
    """Fast acknowledgement returned before any worker step runs"""
    model_config = ConfigDict(populate_by_name=True)

    ok: bool = True
    accepted: bool = True
    status: str = "queued"
    request_id: str = Field(..., serialization_alias="requestId")


class WorkerStepRequest(BaseModel):
    """Body delivered by the task queue to POST /v1/invite/worker"""
    model_config = ConfigDict(populate_by_name=True, extra="allow")

    request_id: Optional[str] = Field(None, alias="requestId")


# --- Telegram update subset ---

class TelegramUser(BaseModel):
    model_config = ConfigDict(extra="allow")

    id: int


class TelegramChatMember(BaseModel):
    model_config = ConfigDict(extra="allow")

    status: Optional[str] = None
    user: Optional[TelegramUser] = None


class TelegramInviteLink(BaseModel):
    model_config = ConfigDict(extra="allow")

    invite_link: Optional[str] = None


class TelegramChatMemberUpdated(BaseModel):
    """
    chat_member / my_chat_member update body

    Only the fields the redemption path reads are modelled.
    """
    model_config = ConfigDict(extra="allow")

    invite_link: Optional[TelegramInviteLink] = None
    new_chat_member: Optional[TelegramChatMember] = None


class TelegramUpdate(BaseModel):
    """Full Telegram webhook update; every other update type passes through"""
    model_config = ConfigDict(extra="allow")

    update_id: Optional[int] = None
    chat_member: Optional[TelegramChatMemberUpdated] = None
    my_chat_member: Optional[TelegramChatMemberUpdated] = None

    @property
    def member_update(self) -> Optional[TelegramChatMemberUpdated]:
        return self.chat_member or self.my_chat_member
