"""RiskGate - behavioral risk scoring for security-sensitive user actions."""

__version__ = "0.1.0"
__author__ = "RiskGate Team"

from riskgate.core.types import Action, EventType, ReasonCode

__all__ = [
    "Action",
    "EventType",
    "ReasonCode",
]
