"""RiskEvent schema - immutable record of one scored request."""

from datetime import datetime
from typing import Optional, Tuple
from uuid import uuid4
from pydantic import BaseModel, Field

from riskgate.core.types import Action, EventType, ReasonCode
from riskgate.data.schemas.typing_sample import TypingSample


def new_event_id() -> str:
    """Generate a RiskEvent identifier."""
    return f"rev_{uuid4().hex}"


class RiskEvent(BaseModel):
    """Risk event entity schema.

    Written once after scoring, never mutated. It is both the output of
    an evaluation and the input to later velocity counts for the user.
    """
    event_id: str = Field(default_factory=new_event_id, description="Unique event identifier")
    user_id: str = Field(..., description="Acting user")
    device_token: str = Field(..., description="First-party device token")
    event_type: EventType = Field(..., description="Scored action")
    ip_prefix: Optional[str] = Field(default=None, description="Masked client network")
    ua_family: str = Field(default="unknown")
    os_family: str = Field(default="unknown")
    browser_family: str = Field(default="unknown")
    risk_score: int = Field(..., ge=0, le=100)
    action: Action = Field(...)
    reasons: Tuple[ReasonCode, ...] = Field(..., min_length=1)
    typing_features: Optional[TypingSample] = Field(default=None)
    created_at: datetime = Field(..., description="Scoring time (UTC)")

    model_config = {
        "frozen": True,
        "json_schema_extra": {
            "example": {
                "event_id": "rev_5f0c8d7e9a1b4c2d8e3f6a7b0c1d2e3f",
                "user_id": "user_abc123",
                "device_token": "k3Jx0d5w2m6Qv8nH1cR4tY7uB9eA0fZ_",
                "event_type": "login",
                "ip_prefix": "203.0.113.0/24",
                "ua_family": "desktop",
                "os_family": "macos",
                "browser_family": "safari",
                "risk_score": 30,
                "action": "allow",
                "reasons": ["new_account"],
                "typing_features": None,
                "created_at": "2026-01-28T14:30:05Z",
            }
        },
    }
