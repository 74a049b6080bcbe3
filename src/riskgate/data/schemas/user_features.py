"""UserRiskFeatures schema - slowly-changing per-user aggregates."""

from datetime import datetime
from typing import Optional
from pydantic import BaseModel, Field


class UserRiskFeatures(BaseModel):
    """Per-user aggregates maintained by the offline recomputation job.

    The scoring engine only reads these. A user without a row is normal
    (new account) and simply skips the dependent signals.
    """
    user_id: str = Field(..., description="User identifier")
    account_age_days: Optional[float] = Field(
        default=None, ge=0, description="Days since the account was first seen"
    )
    device_degree: Optional[int] = Field(
        default=None, ge=0, description="Distinct devices ever used by this user"
    )
    ip_degree: Optional[int] = Field(
        default=None, ge=0, description="Distinct coarse IP prefixes ever used"
    )
    avg_typing_dwell: Optional[float] = Field(default=None, ge=0)
    std_typing_dwell: Optional[float] = Field(default=None, ge=0)
    avg_typing_flight: Optional[float] = Field(default=None, ge=0)
    std_typing_flight: Optional[float] = Field(default=None, ge=0)
    typing_baseline_count: int = Field(
        default=0, ge=0, description="Samples behind the typing baseline"
    )
    last_computed_at: Optional[datetime] = Field(default=None)

    model_config = {
        "json_schema_extra": {
            "example": {
                "user_id": "user_abc123",
                "account_age_days": 412,
                "device_degree": 2,
                "ip_degree": 3,
                "avg_typing_dwell": 98.2,
                "std_typing_dwell": 14.5,
                "avg_typing_flight": 150.1,
                "std_typing_flight": 41.0,
                "typing_baseline_count": 37,
                "last_computed_at": "2026-01-28T03:00:00Z",
            }
        }
    }
