"""Signal rules - ordered (threshold, weight, reason) tiers per signal group.

Each group reads one input value. Its tiers are checked in order and only
the first matching tier fires, so tiers inside a group are mutually
exclusive. Groups are independent of each other and are evaluated in the
order of DEFAULT_SIGNAL_GROUPS, which is also the order of reason codes
on the resulting decision.
"""

from dataclasses import dataclass, fields
from typing import List, Optional, Sequence, Tuple

from riskgate.core.types import ReasonCode


@dataclass(frozen=True)
class SignalInputs:
    """Raw values the rules read. None means the data was unavailable."""
    account_age_days: Optional[float] = None
    device_user_count: Optional[int] = None
    short_velocity: Optional[int] = None
    daily_velocity: Optional[int] = None
    device_degree: Optional[int] = None
    ip_degree: Optional[int] = None
    typing_z_score: Optional[float] = None


_INPUT_NAMES = frozenset(f.name for f in fields(SignalInputs))


@dataclass(frozen=True)
class Tier:
    """Fires when value > above and/or value < below."""
    reason: ReasonCode
    weight: int
    above: Optional[float] = None
    below: Optional[float] = None

    def __post_init__(self):
        if self.weight < 0:
            raise ValueError(f"Tier {self.reason.value} has a negative weight")
        if self.above is None and self.below is None:
            raise ValueError(f"Tier {self.reason.value} needs a threshold")

    def matches(self, value: float) -> bool:
        if self.above is not None and not value > self.above:
            return False
        if self.below is not None and not value < self.below:
            return False
        return True


@dataclass(frozen=True)
class SignalGroup:
    """A named signal and its else-if tiers."""
    name: str
    input_name: str
    tiers: Tuple[Tier, ...]

    def __post_init__(self):
        if self.input_name not in _INPUT_NAMES:
            raise ValueError(f"Unknown signal input: {self.input_name}")
        if not self.tiers:
            raise ValueError(f"Signal group {self.name} has no tiers")

    def evaluate(self, value: Optional[float]) -> Optional[Tier]:
        """Return the first matching tier, or None (also when value is None)."""
        if value is None:
            return None
        for tier in self.tiers:
            if tier.matches(value):
                return tier
        return None


@dataclass(frozen=True)
class SignalHit:
    """One fired tier."""
    group: str
    reason: ReasonCode
    weight: int


DEFAULT_SIGNAL_GROUPS: Tuple[SignalGroup, ...] = (
    SignalGroup(
        name="account_age",
        input_name="account_age_days",
        tiers=(
            Tier(ReasonCode.NEW_ACCOUNT, 30, below=1),
            Tier(ReasonCode.YOUNG_ACCOUNT, 15, below=7),
        ),
    ),
    SignalGroup(
        name="device_sharing",
        input_name="device_user_count",
        tiers=(
            Tier(ReasonCode.DEVICE_SHARED, 25, above=3),
            Tier(ReasonCode.DEVICE_MULTI_USER, 10, above=1),
        ),
    ),
    SignalGroup(
        name="short_velocity",
        input_name="short_velocity",
        tiers=(
            Tier(ReasonCode.HIGH_VELOCITY, 40, above=5),
            Tier(ReasonCode.ELEVATED_VELOCITY, 20, above=2),
        ),
    ),
    SignalGroup(
        name="daily_velocity",
        input_name="daily_velocity",
        tiers=(
            Tier(ReasonCode.DAILY_LIMIT_EXCEEDED, 30, above=20),
            Tier(ReasonCode.HIGH_DAILY_ACTIVITY, 15, above=10),
        ),
    ),
    SignalGroup(
        name="device_degree",
        input_name="device_degree",
        tiers=(Tier(ReasonCode.MANY_DEVICES, 20, above=5),),
    ),
    SignalGroup(
        name="ip_degree",
        input_name="ip_degree",
        tiers=(Tier(ReasonCode.MANY_IPS, 15, above=10),),
    ),
    SignalGroup(
        name="typing",
        input_name="typing_z_score",
        tiers=(
            Tier(ReasonCode.TYPING_ANOMALY, 25, above=3),
            Tier(ReasonCode.TYPING_VARIATION, 10, above=2),
        ),
    ),
)


def evaluate_rules(
    inputs: SignalInputs,
    groups: Sequence[SignalGroup] = DEFAULT_SIGNAL_GROUPS,
) -> List[SignalHit]:
    """Evaluate every group in order and collect the fired tiers."""
    hits: List[SignalHit] = []
    for group in groups:
        tier = group.evaluate(getattr(inputs, group.input_name))
        if tier is not None:
            hits.append(SignalHit(group=group.name, reason=tier.reason, weight=tier.weight))
    return hits


def max_total_weight(groups: Sequence[SignalGroup] = DEFAULT_SIGNAL_GROUPS) -> int:
    """Largest possible uncapped sum (heaviest tier of every group)."""
    return sum(max(tier.weight for tier in group.tiers) for group in groups)
