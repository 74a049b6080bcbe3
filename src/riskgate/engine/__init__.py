"""Decision engine."""

from riskgate.engine.decision import DecisionEngine, action_for_score

__all__ = ["DecisionEngine", "action_for_score"]
