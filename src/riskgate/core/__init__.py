"""Core types."""

from riskgate.core.types import Action, EventType, ReasonCode

__all__ = [
    "Action",
    "EventType",
    "ReasonCode",
]
