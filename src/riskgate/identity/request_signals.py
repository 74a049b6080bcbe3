"""Request Signal Extractor - coarse, privacy-safe request features.

Produces a masked IP prefix (network locality, not a host) and a
(ua, os, browser) family triple from a small versioned pattern table.
Everything here is a pure function of the request headers; unknown
inputs map to None / "unknown" rather than raising.
"""

import ipaddress
from dataclasses import dataclass
from functools import lru_cache
from pathlib import Path
from typing import List, Mapping, Optional

import yaml
from pydantic import BaseModel, Field

from riskgate.common.constants import DeviceConstants

UNKNOWN = "unknown"

UA_TABLE_FILE = Path(__file__).with_name("ua_families.yaml")


class FamilyRule(BaseModel):
    """One family and the substrings that identify it."""
    family: str = Field(..., min_length=1)
    patterns: List[str] = Field(..., min_length=1)


class UserAgentTable(BaseModel):
    """Versioned User-Agent family table."""
    version: int = Field(..., ge=1)
    client_classes: List[FamilyRule]
    operating_systems: List[FamilyRule]
    browsers: List[FamilyRule]


@lru_cache(maxsize=4)
def load_ua_table(path: Path = UA_TABLE_FILE) -> UserAgentTable:
    """Load and validate the User-Agent family table."""
    with open(path, "r") as f:
        raw = yaml.safe_load(f)
    return UserAgentTable.model_validate(raw)


@dataclass(frozen=True)
class UserAgentFamilies:
    """Normalized User-Agent triple."""
    ua_family: str = UNKNOWN
    os_family: str = UNKNOWN
    browser_family: str = UNKNOWN


@dataclass(frozen=True)
class RequestSignals:
    """Everything the engine derives from the raw request."""
    ip_prefix: Optional[str]
    ua_family: str
    os_family: str
    browser_family: str


def _first_match(ua: str, rules: List[FamilyRule]) -> str:
    for rule in rules:
        if any(pattern in ua for pattern in rule.patterns):
            return rule.family
    return UNKNOWN


def parse_user_agent(
    user_agent: Optional[str],
    table: Optional[UserAgentTable] = None,
) -> UserAgentFamilies:
    """Map a raw User-Agent string to coarse families.

    Args:
        user_agent: Raw header value, may be None or empty
        table: Family table; the packaged table is used if not provided

    Returns:
        UserAgentFamilies with "unknown" for anything unmatched
    """
    if not user_agent or not user_agent.strip():
        return UserAgentFamilies()

    table = table or load_ua_table()
    ua = user_agent.lower()

    return UserAgentFamilies(
        ua_family=_first_match(ua, table.client_classes),
        os_family=_first_match(ua, table.operating_systems),
        browser_family=_first_match(ua, table.browsers),
    )


def ip_prefix(raw_ip: Optional[str]) -> Optional[str]:
    """Mask host bits off a client address.

    IPv4 keeps the /24 network, IPv6 the /64 network. IPv4-mapped IPv6
    addresses are treated as IPv4.

    Examples:
        "203.0.113.77" -> "203.0.113.0/24"
        "2001:db8:1:2:3:4:5:6" -> "2001:db8:1:2::/64"
    """
    if not raw_ip:
        return None

    candidate = raw_ip.strip()
    # Zone index ("fe80::1%eth0") and bracketed forms
    candidate = candidate.strip("[]").split("%", 1)[0]

    try:
        address = ipaddress.ip_address(candidate)
    except ValueError:
        return None

    if isinstance(address, ipaddress.IPv6Address) and address.ipv4_mapped is not None:
        address = address.ipv4_mapped

    if isinstance(address, ipaddress.IPv4Address):
        prefix_length = DeviceConstants.IPV4_PREFIX_LENGTH
    else:
        prefix_length = DeviceConstants.IPV6_PREFIX_LENGTH

    network = ipaddress.ip_network(f"{address}/{prefix_length}", strict=False)
    return str(network)


def client_ip(
    headers: Mapping[str, str],
    peer_host: Optional[str] = None,
    trust_proxy_headers: bool = True,
) -> Optional[str]:
    """Pick the client address from proxy headers or the socket peer."""
    if trust_proxy_headers:
        forwarded_for = headers.get("x-forwarded-for")
        if forwarded_for:
            first_hop = forwarded_for.split(",")[0].strip()
            if first_hop:
                return first_hop

        real_ip = headers.get("x-real-ip")
        if real_ip and real_ip.strip():
            return real_ip.strip()

    return peer_host


def extract_request_signals(
    headers: Mapping[str, str],
    peer_host: Optional[str] = None,
    trust_proxy_headers: bool = True,
) -> RequestSignals:
    """Derive ip_prefix and User-Agent families from a request."""
    families = parse_user_agent(headers.get("user-agent"))
    return RequestSignals(
        ip_prefix=ip_prefix(client_ip(headers, peer_host, trust_proxy_headers)),
        ua_family=families.ua_family,
        os_family=families.os_family,
        browser_family=families.browser_family,
    )
