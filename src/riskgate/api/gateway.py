"""API Gateway - FastAPI application with the /risk/score endpoint."""

import hmac
import logging
from contextlib import asynccontextmanager
from typing import AsyncGenerator, List, Optional
from uuid import uuid4

from fastapi import APIRouter, Depends, FastAPI, HTTPException, Request, Response
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from riskgate.api.schemas import (
    ErrorResponse,
    RecomputeResponse,
    ScoreRequest,
    ScoreResponse,
)
from riskgate.api.service import RiskScoringService
from riskgate.common.config import Config, get_config
from riskgate.common.exceptions import AuthenticationError, ValidationError
from riskgate.identity import DeviceTokenIssuer, SessionResolver, extract_request_signals

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s")
logger = logging.getLogger("riskgate_api")


# =============================================================================
# DEPENDENCIES
# =============================================================================

def get_service(request: Request) -> RiskScoringService:
    """Get the scoring service owned by this application."""
    service = getattr(request.app.state, "service", None)
    if service is None:
        raise HTTPException(status_code=503, detail="not_ready")
    return service


def get_current_user(request: Request) -> str:
    """Resolve the acting user from the verified session token."""
    sessions: SessionResolver = request.app.state.sessions
    return sessions.resolve(request.headers, request.cookies)


def verify_cron_secret(request: Request) -> None:
    """Require `Authorization: Bearer <cron secret>`."""
    config: Config = request.app.state.config
    authorization = request.headers.get("authorization", "")
    scheme, _, credentials = authorization.partition(" ")
    if scheme.lower() != "bearer" or not hmac.compare_digest(
        credentials.strip().encode(), config.cron_secret.encode()
    ):
        raise AuthenticationError("Invalid cron credentials")


# =============================================================================
# CORS CONFIGURATION
# =============================================================================

def get_cors_origins(config: Config) -> List[str]:
    """Get allowed CORS origins.

    In production, set RISKGATE_CORS_ORIGINS to a comma-separated list of
    allowed origins.
    """
    if config.cors_origins:
        return config.cors_origins

    if config.is_production:
        logger.warning(
            "RISKGATE_CORS_ORIGINS not set in production. "
            "CORS will be disabled. Set RISKGATE_CORS_ORIGINS for cross-origin access."
        )
        return []

    logger.warning("Running in development mode with permissive CORS (allow_origins=['*'])")
    return ["*"]


# =============================================================================
# EXCEPTION HANDLERS
# =============================================================================

def _error(
    request: Request,
    status_code: int,
    error: str,
    message: str,
    details=None,
) -> JSONResponse:
    request_id = getattr(request.state, "request_id", None)
    response = JSONResponse(
        status_code=status_code,
        content=ErrorResponse(
            error=error,
            message=message,
            request_id=request_id,
            details=details,
        ).model_dump(exclude_none=True),
    )
    # 500s are rendered outside the request-id middleware
    if request_id:
        response.headers["X-Request-ID"] = request_id
    return response


async def authentication_error_handler(
    request: Request, exc: AuthenticationError
) -> JSONResponse:
    """Unresolvable identity is a 401; nothing is scored."""
    logger.info(
        "Rejected unauthenticated request",
        extra={"request_id": getattr(request.state, "request_id", None), "path": request.url.path},
    )
    return _error(request, 401, "unauthorized", exc.message)


async def validation_error_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    """Malformed bodies and unknown event types are a 400."""
    errors = exc.errors()
    logger.warning(
        "Validation error",
        extra={"request_id": getattr(request.state, "request_id", None), "error_count": len(errors)},
    )
    fields = sorted({".".join(str(part) for part in err.get("loc", ())[1:]) or "body" for err in errors})
    return _error(
        request,
        400,
        "validation_error",
        f"Invalid request: {', '.join(fields)}",
    )


async def service_validation_error_handler(
    request: Request, exc: ValidationError
) -> JSONResponse:
    """Input the service rejected after HTTP validation passed."""
    return _error(request, 400, "validation_error", exc.message)


async def general_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Handle unexpected errors.

    Logs full exception for debugging but returns a sanitized body in
    production.
    """
    request_id = getattr(request.state, "request_id", None)
    logger.exception(
        "Unexpected error",
        extra={"request_id": request_id, "error_type": type(exc).__name__}
    )
    config: Config = request.app.state.config
    details = None if config.is_production else f"{type(exc).__name__}: {exc}"
    return _error(request, 500, "internal_error", "An unexpected error occurred", details)


# =============================================================================
# ENDPOINTS
# =============================================================================

router = APIRouter()


@router.post(
    "/risk/score",
    response_model=ScoreResponse,
    responses={
        200: {"description": "Scored", "model": ScoreResponse},
        400: {"description": "Invalid request", "model": ErrorResponse},
        401: {"description": "No verified session", "model": ErrorResponse},
        500: {"description": "Internal server error", "model": ErrorResponse},
    },
    summary="Score a security-sensitive action",
)
def score_event(
    body: ScoreRequest,
    request: Request,
    response: Response,
    user_id: str = Depends(get_current_user),
    service: RiskScoringService = Depends(get_service),
) -> ScoreResponse:
    """Score one action for the session user and the request's device.

    A new device token is returned with a Set-Cookie header.
    """
    config: Config = request.app.state.config
    issuer: DeviceTokenIssuer = request.app.state.device_tokens

    issued = issuer.resolve(request.cookies)
    signals = extract_request_signals(
        request.headers,
        peer_host=request.client.host if request.client else None,
        trust_proxy_headers=config.trust_proxy_headers,
    )

    outcome = service.score(
        user_id=user_id,
        device_token=issued.token,
        event_type=body.event_type,
        request_signals=signals,
        typing_sample=body.typing_features,
    )

    if issued.is_new:
        cookie = issuer.cookie
        response.set_cookie(
            key=cookie.name,
            value=issued.token,
            max_age=cookie.max_age,
            path=cookie.path,
            secure=cookie.secure,
            httponly=cookie.httponly,
            samesite=cookie.samesite,
        )

    decision = outcome.decision
    return ScoreResponse(
        risk_score=decision.risk_score,
        action=decision.action.value,
        reasons=decision.reason_values,
        device_token=issued.token,
    )


@router.post(
    "/risk/recompute-features",
    response_model=RecomputeResponse,
    responses={401: {"description": "Bad cron secret", "model": ErrorResponse}},
    summary="Recompute per-user risk features",
    dependencies=[Depends(verify_cron_secret)],
)
def recompute_features(
    service: RiskScoringService = Depends(get_service),
) -> RecomputeResponse:
    """Rebuild UserRiskFeatures for recently active users."""
    summary = service.recompute_features()
    logger.info(
        "Feature recomputation complete",
        extra={
            "users_processed": summary.users_processed,
            "users_updated": summary.users_updated,
            "failed": len(summary.failed_users),
        },
    )
    return RecomputeResponse(
        success=True,
        users_processed=summary.users_processed,
        users_updated=summary.users_updated,
        timestamp=summary.timestamp,
    )


@router.get(
    "/risk/recompute-features",
    responses={401: {"description": "Bad cron secret", "model": ErrorResponse}},
    summary="Check the recomputation endpoint",
    dependencies=[Depends(verify_cron_secret)],
)
async def recompute_features_status() -> dict:
    """Authenticated status check for the scheduler; does not recompute."""
    return {
        "status": "ok",
        "endpoint": "/risk/recompute-features",
        "message": "Use POST to trigger recomputation",
    }


@router.get("/health")
async def health_check() -> dict:
    """Health check endpoint."""
    return {"status": "healthy", "service": "riskgate"}


@router.get("/ready")
async def readiness_check(request: Request) -> dict:
    """Readiness check endpoint.

    Returns 503 until the scoring service is wired.
    """
    if getattr(request.app.state, "service", None) is None:
        raise HTTPException(status_code=503, detail="not_ready")
    return {"status": "ready", "service": "riskgate"}


# =============================================================================
# APPLICATION FACTORY
# =============================================================================

def create_app(
    service: Optional[RiskScoringService] = None,
    config: Optional[Config] = None,
) -> FastAPI:
    """Build the RiskGate application.

    Args:
        service: Scoring service to serve. Built from `config` at startup
            if not provided.
        config: Configuration. Loaded from the environment if not provided.
    """
    config = config or get_config()

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
        logger.info("RiskGate API starting up...")
        if app.state.service is None:
            app.state.service = RiskScoringService.from_config(config)
        logger.info("RiskGate API ready")

        yield

        logger.info("RiskGate API shutting down...")
        app.state.service.shutdown()
        logger.info("RiskGate API shutdown complete")

    app = FastAPI(
        title="RiskGate API",
        description="Behavioral risk scoring for security-sensitive actions.",
        version="0.1.0",
        lifespan=lifespan,
        docs_url="/docs" if config.docs_enabled else None,
        redoc_url="/redoc" if config.docs_enabled else None,
    )

    app.state.config = config
    app.state.service = service
    app.state.sessions = SessionResolver(
        secret=config.session_secret,
        algorithm=config.session_algorithm,
        cookie_name=config.session_cookie_name,
        audience=config.session_audience,
    )
    app.state.device_tokens = DeviceTokenIssuer(
        cookie_name=config.device_cookie_name,
        max_age=config.device_cookie_max_age,
        secure=config.is_production,
    )

    cors_origins = get_cors_origins(config)
    if cors_origins:
        app.add_middleware(
            CORSMiddleware,
            allow_origins=cors_origins,
            allow_credentials=True,
            allow_methods=["POST", "GET"],
            allow_headers=["Content-Type", "Authorization", "X-Request-ID"],
        )

    @app.middleware("http")
    async def add_request_id(request: Request, call_next):
        """Add request ID to each request for tracing."""
        request_id = f"req_{uuid4().hex[:12]}"
        request.state.request_id = request_id

        response = await call_next(request)
        response.headers["X-Request-ID"] = request_id
        return response

    app.add_exception_handler(AuthenticationError, authentication_error_handler)
    app.add_exception_handler(RequestValidationError, validation_error_handler)
    app.add_exception_handler(ValidationError, service_validation_error_handler)
    app.add_exception_handler(Exception, general_exception_handler)
    app.include_router(router)

    return app


app = create_app()


# =============================================================================
# DEVELOPMENT SERVER
# =============================================================================

if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "riskgate.api.gateway:app",
        host="0.0.0.0",
        port=8000,
        reload=True,
        log_level="info",
    )
