"""Configuration management - Centralized configuration for RiskGate.

Provides environment-aware configuration with sensible defaults.
All configuration is loaded from environment variables with fallbacks.
"""

import os
import warnings
from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional

from riskgate.common.constants import DeviceConstants, SignalConstants, WriterConstants


DEFAULT_SESSION_SECRET = "dev-session-secret-change-in-production"
DEFAULT_CRON_SECRET = "dev-cron-secret-change-in-production"


class Environment(str, Enum):
    """Application environment."""
    DEVELOPMENT = "development"
    STAGING = "staging"
    PRODUCTION = "production"


class LogLevel(str, Enum):
    """Logging levels."""
    DEBUG = "DEBUG"
    INFO = "INFO"
    WARNING = "WARNING"
    ERROR = "ERROR"
    CRITICAL = "CRITICAL"


class StoreBackend(str, Enum):
    """Backing store types for registry, ledger and feature store."""
    MEMORY = "memory"
    DYNAMODB = "dynamodb"


class AlertSinkType(str, Enum):
    """Operator alert channels."""
    LOG = "log"
    CLOUDWATCH = "cloudwatch"


def _env_bool(name: str, default: str) -> bool:
    return os.getenv(name, default).lower() == "true"


def _env_list(name: str) -> List[str]:
    raw = os.getenv(name, "")
    return [item.strip() for item in raw.split(",") if item.strip()]


@dataclass
class Config:
    """Central configuration object for RiskGate.

    All settings can be overridden via environment variables prefixed with RISKGATE_.

    Example:
        RISKGATE_ENVIRONMENT=production
        RISKGATE_LOG_LEVEL=INFO
        RISKGATE_STORE_BACKEND=dynamodb
    """

    # Core settings
    environment: Environment = field(
        default_factory=lambda: Environment(
            os.getenv("RISKGATE_ENVIRONMENT", "development")
        )
    )
    debug: bool = field(
        default_factory=lambda: _env_bool("RISKGATE_DEBUG", "false")
    )
    log_level: LogLevel = field(
        default_factory=lambda: LogLevel(os.getenv("RISKGATE_LOG_LEVEL", "INFO"))
    )

    # API settings
    api_host: str = field(
        default_factory=lambda: os.getenv("RISKGATE_API_HOST", "0.0.0.0")
    )
    api_port: int = field(
        default_factory=lambda: int(os.getenv("RISKGATE_API_PORT", "8000"))
    )
    cors_origins: List[str] = field(
        default_factory=lambda: _env_list("RISKGATE_CORS_ORIGINS")
    )
    enable_docs: Optional[bool] = field(
        default_factory=lambda: (
            _env_bool("RISKGATE_ENABLE_DOCS", "false")
            if os.getenv("RISKGATE_ENABLE_DOCS") is not None else None
        )
    )

    # Store settings
    store_backend: StoreBackend = field(
        default_factory=lambda: StoreBackend(
            os.getenv("RISKGATE_STORE_BACKEND", "memory")
        )
    )
    device_registry_table: str = field(
        default_factory=lambda: os.getenv(
            "RISKGATE_DEVICE_REGISTRY_TABLE", "riskgate-device-registry"
        )
    )
    event_ledger_table: str = field(
        default_factory=lambda: os.getenv(
            "RISKGATE_EVENT_LEDGER_TABLE", "riskgate-risk-events"
        )
    )
    user_features_table: str = field(
        default_factory=lambda: os.getenv(
            "RISKGATE_USER_FEATURES_TABLE", "riskgate-user-features"
        )
    )

    # AWS settings (for DynamoDB / CloudWatch)
    aws_region: str = field(
        default_factory=lambda: os.getenv("AWS_DEFAULT_REGION", "us-east-1")
    )
    aws_profile: Optional[str] = field(
        default_factory=lambda: os.getenv("AWS_PROFILE")
    )

    # Identity settings
    session_secret: str = field(
        default_factory=lambda: os.getenv(
            "RISKGATE_SESSION_SECRET", DEFAULT_SESSION_SECRET
        )
    )
    session_algorithm: str = field(
        default_factory=lambda: os.getenv("RISKGATE_SESSION_ALGORITHM", "HS256")
    )
    session_cookie_name: str = field(
        default_factory=lambda: os.getenv("RISKGATE_SESSION_COOKIE", "rg_session")
    )
    session_audience: Optional[str] = field(
        default_factory=lambda: os.getenv("RISKGATE_SESSION_AUDIENCE")
    )
    device_cookie_name: str = field(
        default_factory=lambda: os.getenv(
            "RISKGATE_DEVICE_COOKIE", DeviceConstants.COOKIE_NAME
        )
    )
    device_cookie_max_age: int = field(
        default_factory=lambda: int(os.getenv(
            "RISKGATE_DEVICE_COOKIE_MAX_AGE",
            str(DeviceConstants.COOKIE_MAX_AGE_SECONDS),
        ))
    )
    # Unset: trusted only in development. Enable when deployed behind a proxy.
    trust_proxy_headers: Optional[bool] = field(
        default_factory=lambda: (
            _env_bool("RISKGATE_TRUST_PROXY_HEADERS", "false")
            if os.getenv("RISKGATE_TRUST_PROXY_HEADERS") is not None else None
        )
    )

    # Scoring settings
    signal_timeout_seconds: float = field(
        default_factory=lambda: float(os.getenv(
            "RISKGATE_SIGNAL_TIMEOUT_SECONDS",
            str(SignalConstants.READ_TIMEOUT_SECONDS),
        ))
    )
    signal_max_workers: int = field(
        default_factory=lambda: int(os.getenv(
            "RISKGATE_SIGNAL_MAX_WORKERS", str(SignalConstants.MAX_WORKERS)
        ))
    )

    # Event writer / alerting
    use_background_writer: bool = field(
        default_factory=lambda: _env_bool("RISKGATE_BACKGROUND_WRITER", "true")
    )
    writer_queue_size: int = field(
        default_factory=lambda: int(os.getenv(
            "RISKGATE_WRITER_QUEUE_SIZE", str(WriterConstants.QUEUE_SIZE)
        ))
    )
    alert_sink: AlertSinkType = field(
        default_factory=lambda: AlertSinkType(
            os.getenv("RISKGATE_ALERT_SINK", "log")
        )
    )
    cloudwatch_namespace: str = field(
        default_factory=lambda: os.getenv("RISKGATE_CLOUDWATCH_NAMESPACE", "RiskGate")
    )

    # Offline feature recomputation
    cron_secret: str = field(
        default_factory=lambda: os.getenv("RISKGATE_CRON_SECRET", DEFAULT_CRON_SECRET)
    )

    def __post_init__(self):
        """Validate configuration after initialization."""
        if self.trust_proxy_headers is None:
            self.trust_proxy_headers = self.is_development

        if self.signal_timeout_seconds <= 0:
            raise ValueError("RISKGATE_SIGNAL_TIMEOUT_SECONDS must be positive")

        if self.signal_max_workers <= 0:
            raise ValueError("RISKGATE_SIGNAL_MAX_WORKERS must be positive")

        if self.writer_queue_size <= 0:
            raise ValueError("RISKGATE_WRITER_QUEUE_SIZE must be positive")

        if self.is_production:
            if self.debug:
                warnings.warn(
                    "Debug mode is enabled in production environment",
                    RuntimeWarning,
                    stacklevel=2
                )
            if self.session_secret == DEFAULT_SESSION_SECRET:
                warnings.warn(
                    "RISKGATE_SESSION_SECRET is not set in production",
                    RuntimeWarning,
                    stacklevel=2
                )
            if self.cron_secret == DEFAULT_CRON_SECRET:
                warnings.warn(
                    "RISKGATE_CRON_SECRET is not set in production",
                    RuntimeWarning,
                    stacklevel=2
                )

    @property
    def docs_enabled(self) -> bool:
        """Interactive docs default to off in production."""
        if self.enable_docs is not None:
            return self.enable_docs
        return not self.is_production

    @property
    def is_production(self) -> bool:
        """Check if running in production environment."""
        return self.environment == Environment.PRODUCTION

    @property
    def is_development(self) -> bool:
        """Check if running in development environment."""
        return self.environment == Environment.DEVELOPMENT


_config: Optional[Config] = None


def get_config() -> Config:
    """Get the process configuration, loading it from the environment once.

    Returns:
        Config: The loaded configuration.
    """
    global _config
    if _config is None:
        _config = Config()
    return _config


def reset_config() -> None:
    """Reset the loaded configuration (for testing)."""
    global _config
    _config = None
