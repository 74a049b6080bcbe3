"""Signals - rule table and scatter-gather aggregation."""

from riskgate.signals.rules import (
    DEFAULT_SIGNAL_GROUPS,
    SignalGroup,
    SignalHit,
    SignalInputs,
    Tier,
    evaluate_rules,
    max_total_weight,
)
from riskgate.signals.aggregator import (
    DegradedRead,
    SignalAggregator,
    SignalSnapshot,
    typing_z_score,
)

__all__ = [
    "DEFAULT_SIGNAL_GROUPS",
    "SignalGroup",
    "SignalHit",
    "SignalInputs",
    "Tier",
    "evaluate_rules",
    "max_total_weight",
    "DegradedRead",
    "SignalAggregator",
    "SignalSnapshot",
    "typing_z_score",
]
