"""TypingSample schema - keystroke timing summary supplied by the client."""

from pydantic import BaseModel, Field


class TypingSample(BaseModel):
    """Keystroke timing features for one form interaction.

    Timing only, never key content. Request-scoped; the engine does not
    persist it on its own, only embedded in the RiskEvent it produces.
    """
    mean_dwell: float = Field(..., ge=0, description="Mean key-down to key-up time (ms)")
    std_dwell: float = Field(..., ge=0, description="Std dev of dwell time (ms)")
    mean_flight: float = Field(..., ge=0, description="Mean key-up to next key-down time (ms)")
    std_flight: float = Field(..., ge=0, description="Std dev of flight time (ms)")
    backspace_ratio: float = Field(..., ge=0.0, le=1.0, description="Backspaces / total keys")
    paste_count: int = Field(..., ge=0, description="Paste events during the interaction")
    sample_size: int = Field(..., ge=0, description="Number of dwell samples collected")

    model_config = {
        "frozen": True,
        "json_schema_extra": {
            "example": {
                "mean_dwell": 96.4,
                "std_dwell": 21.7,
                "mean_flight": 142.0,
                "std_flight": 60.3,
                "backspace_ratio": 0.05,
                "paste_count": 0,
                "sample_size": 18,
            }
        },
    }
