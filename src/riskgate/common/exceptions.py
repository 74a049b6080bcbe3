"""Custom exceptions for RiskGate.

Provides a hierarchy of exceptions for different error types.
All RiskGate exceptions inherit from RiskGateException.
"""

from typing import Any, Dict, Optional


class RiskGateException(Exception):
    """Base exception for all RiskGate errors.

    Attributes:
        message: Human-readable error message
        code: Machine-readable error code
        details: Additional context about the error
    """

    def __init__(
        self,
        message: str,
        code: str = "RISKGATE_ERROR",
        details: Optional[Dict[str, Any]] = None
    ):
        self.message = message
        self.code = code
        self.details = details or {}
        super().__init__(self.message)


class ConfigurationError(RiskGateException):
    """Raised when configuration is invalid or missing."""

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(message, code="CONFIG_ERROR", details=details)


class ValidationError(RiskGateException):
    """Raised when input validation fails."""

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(message, code="VALIDATION_ERROR", details=details)


class AuthenticationError(RiskGateException):
    """Raised when the caller identity cannot be resolved."""

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(message, code="AUTHENTICATION_ERROR", details=details)


class StoreError(RiskGateException):
    """Raised when a backing store operation fails."""

    def __init__(
        self,
        message: str,
        store_name: str,
        details: Optional[Dict[str, Any]] = None
    ):
        details = details or {}
        details["store_name"] = store_name
        super().__init__(message, code="STORE_ERROR", details=details)
        self.store_name = store_name

