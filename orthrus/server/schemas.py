"""
Pydantic schemas for WebSocket messages and HTTP responses.
"""

from typing import Any, Optional
from pydantic import BaseModel, ConfigDict, Field, field_validator

from orthrus.core.betting import sanitize_amount


# ============= Inbound WebSocket Messages =============

class InboundMessage(BaseModel):
    """Envelope of every client message; payload fields ride alongside ``type``."""
    model_config = ConfigDict(extra="allow")

    type: str = Field(..., min_length=1)


class PlayerJoinMessage(BaseModel):
    """player:join"""
    name: Optional[str] = None

    @field_validator("name", mode="before")
    @classmethod
    def _stringify(cls, value: Any) -> Optional[str]:
        return None if value is None else str(value)


class PlayerRejoinMessage(BaseModel):
    """player:rejoin - reattach a socket to an existing seat."""
    seat_id: str = Field(..., min_length=1)


class PlayerActionMessage(BaseModel):
    """player:action"""
    action: str = Field(..., description="fold, check, call, bet or raise")
    amount: int = Field(default=0, description="Chips above the call for bet/raise")

    @field_validator("amount", mode="before")
    @classmethod
    def _clamp_amount(cls, value: Any) -> int:
        return sanitize_amount(value)


class RemoveSeatMessage(BaseModel):
    """host:removePlayer"""
    seat_id: str = Field(..., min_length=1)


# ============= Outbound Messages =============

class HostWelcomeMessage(BaseModel):
    type: str = "host:welcome"
    ok: bool = True


class PlayerAcceptedMessage(BaseModel):
    type: str = "player:accepted"
    id: str


class PlayerRejectMessage(BaseModel):
    type: str = "player:reject"
    reason: str


class PlayerRemovedMessage(BaseModel):
    type: str = "player:removed"


class ErrorMessage(BaseModel):
    """Reply to a malformed or unknown message."""
    type: str = "error"
    message: str


# ============= HTTP Responses =============

class HostCommandResponse(BaseModel):
    """Result of a host control issued over HTTP."""
    success: bool
    message: str
    hand_id: int
    stage: str
