"""Decision schema - transient result of one evaluation."""

from typing import Tuple
from pydantic import BaseModel, Field

from riskgate.core.types import Action, ReasonCode


class Decision(BaseModel):
    """Capped score, action tier and ordered reasons.

    Not persisted directly; embedded into the RiskEvent.
    """
    risk_score: int = Field(..., ge=0, le=100, description="Capped risk score")
    action: Action = Field(..., description="Action tier for the score")
    reasons: Tuple[ReasonCode, ...] = Field(
        ..., min_length=1, description="Reason codes in evaluation order"
    )

    model_config = {"frozen": True}

    @property
    def reason_values(self) -> list[str]:
        return [reason.value for reason in self.reasons]
