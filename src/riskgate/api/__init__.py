"""API - scoring service and endpoints.

Endpoints:
    POST /risk/score
    POST /risk/recompute-features (cron; GET is a status check)
    GET /health, GET /ready

/risk/score returns ONLY:
    - risk_score
    - action
    - reasons
    - device_token
"""

from riskgate.api.gateway import app, create_app
from riskgate.api.schemas import (
    ErrorResponse,
    RecomputeResponse,
    ScoreRequest,
    ScoreResponse,
)
from riskgate.api.service import RiskScoringService, ScoreOutcome

__all__ = [
    "app",
    "create_app",
    "ScoreRequest",
    "ScoreResponse",
    "RecomputeResponse",
    "ErrorResponse",
    "RiskScoringService",
    "ScoreOutcome",
]
