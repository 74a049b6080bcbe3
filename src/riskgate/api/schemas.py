"""API Schemas - Request/Response models for the API Gateway.
"""

from datetime import datetime
from typing import Any, List, Literal, Optional
from pydantic import BaseModel, Field

from riskgate.core.types import EventType
from riskgate.data.schemas import TypingSample


# =============================================================================
# REQUEST SCHEMAS
# =============================================================================

class ScoreRequest(BaseModel):
    """Request body for POST /risk/score.

    The acting user comes from the verified session, never from the body.
    """
    event_type: EventType = Field(..., description="Action being scored")
    typing_features: Optional[TypingSample] = Field(
        default=None, description="Optional keystroke timing summary"
    )

    model_config = {
        "json_schema_extra": {
            "example": {
                "event_type": "login",
                "typing_features": {
                    "mean_dwell": 96.4,
                    "std_dwell": 21.7,
                    "mean_flight": 142.0,
                    "std_flight": 60.3,
                    "backspace_ratio": 0.05,
                    "paste_count": 0,
                    "sample_size": 18,
                },
            }
        }
    }


# =============================================================================
# RESPONSE SCHEMAS
# =============================================================================

class ScoreResponse(BaseModel):
    """Response for POST /risk/score."""
    risk_score: int = Field(..., ge=0, le=100, description="Capped risk score")
    action: Literal["allow", "step_up", "hold", "block"] = Field(
        ..., description="Disposition for the triggering action"
    )
    reasons: List[str] = Field(
        ..., min_length=1, description="Reason codes in evaluation order"
    )
    device_token: str = Field(..., description="First-party device token")

    model_config = {
        "json_schema_extra": {
            "example": {
                "risk_score": 45,
                "action": "step_up",
                "reasons": ["young_account", "device_shared"],
                "device_token": "k3Jx0d5w2m6Qv8nH1cR4tY7uB9eA0fZ_",
            }
        }
    }


class RecomputeResponse(BaseModel):
    """Response for POST /risk/recompute-features."""
    success: bool
    users_processed: int = Field(..., ge=0)
    users_updated: int = Field(..., ge=0)
    timestamp: datetime


class ErrorResponse(BaseModel):
    """Standard error response."""
    error: str = Field(..., description="Error type")
    message: str = Field(..., description="Human-readable error message")
    request_id: Optional[str] = Field(
        default=None, description="Request ID for debugging"
    )
    details: Optional[Any] = Field(
        default=None, description="Extra detail, never set in production"
    )
