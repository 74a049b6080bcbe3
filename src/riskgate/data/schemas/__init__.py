"""Data schemas - canonical Pydantic definitions."""

from riskgate.data.schemas.typing_sample import TypingSample
from riskgate.data.schemas.device import DeviceRegistration
from riskgate.data.schemas.user_features import UserRiskFeatures
from riskgate.data.schemas.risk_event import RiskEvent, new_event_id
from riskgate.data.schemas.decision import Decision

__all__ = [
    "TypingSample",
    "DeviceRegistration",
    "UserRiskFeatures",
    "RiskEvent",
    "new_event_id",
    "Decision",
]
