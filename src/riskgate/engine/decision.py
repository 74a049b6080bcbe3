"""Decision Engine - sums signal weights, caps the score, picks a tier."""

from typing import Sequence

from riskgate.common.constants import ScoreConstants
from riskgate.core.types import Action, ReasonCode
from riskgate.data.schemas import Decision
from riskgate.signals.rules import SignalHit


ACTION_TIERS = (
    (ScoreConstants.BLOCK_THRESHOLD, Action.BLOCK),
    (ScoreConstants.HOLD_THRESHOLD, Action.HOLD),
    (ScoreConstants.STEP_UP_THRESHOLD, Action.STEP_UP),
)


def action_for_score(score: int) -> Action:
    """Map a capped score to its action tier (high to low, first match)."""
    for threshold, action in ACTION_TIERS:
        if score >= threshold:
            return action
    return Action.ALLOW


class DecisionEngine:
    """Turns fired signals into a Decision.

    The reason list keeps signal evaluation order and is never empty.
    """

    def __init__(self, max_score: int = ScoreConstants.SCORE_MAX):
        self.max_score = max_score

    def decide(self, hits: Sequence[SignalHit]) -> Decision:
        total = sum(hit.weight for hit in hits)
        score = max(ScoreConstants.SCORE_MIN, min(self.max_score, total))

        reasons = tuple(hit.reason for hit in hits) or (ReasonCode.NORMAL_BEHAVIOR,)

        return Decision(
            risk_score=score,
            action=action_for_score(score),
            reasons=reasons,
        )
