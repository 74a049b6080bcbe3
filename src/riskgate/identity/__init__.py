"""Identity - device tokens, request signals and session resolution."""

from riskgate.identity.device_token import DeviceTokenIssuer, IssuedDeviceToken
from riskgate.identity.request_signals import (
    RequestSignals,
    UserAgentFamilies,
    client_ip,
    extract_request_signals,
    ip_prefix,
    parse_user_agent,
)
from riskgate.identity.session import SessionResolver

__all__ = [
    "DeviceTokenIssuer",
    "IssuedDeviceToken",
    "RequestSignals",
    "UserAgentFamilies",
    "client_ip",
    "extract_request_signals",
    "ip_prefix",
    "parse_user_agent",
    "SessionResolver",
]
