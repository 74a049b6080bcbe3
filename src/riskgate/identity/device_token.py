"""Device Identity Issuer - first-party device token, not a fingerprint.

The token is a random value stored in a long-lived HTTP-only cookie.
It is read back unchanged when present and minted when absent; it is
never derived from request headers. Blocked cookies only mean a fresh
token per request, which weakens the device-sharing signal but never
breaks scoring.
"""

import logging
import re
import secrets
from dataclasses import dataclass
from typing import Mapping, Optional

from riskgate.common.constants import DeviceConstants

logger = logging.getLogger(__name__)


_TOKEN_PATTERN = re.compile(
    r"^[A-Za-z0-9_-]{%d,%d}$"
    % (DeviceConstants.TOKEN_MIN_LENGTH, DeviceConstants.TOKEN_MAX_LENGTH)
)


@dataclass(frozen=True)
class IssuedDeviceToken:
    """A device token and whether it was minted for this request."""
    token: str
    is_new: bool


@dataclass(frozen=True)
class DeviceCookieSpec:
    """Attributes for the Set-Cookie instruction."""
    name: str
    max_age: int
    secure: bool
    httponly: bool = True
    samesite: str = "lax"
    path: str = "/"


class DeviceTokenIssuer:
    """Reads or mints the first-party device token."""

    def __init__(
        self,
        cookie_name: str = DeviceConstants.COOKIE_NAME,
        max_age: int = DeviceConstants.COOKIE_MAX_AGE_SECONDS,
        secure: bool = False,
        token_bytes: int = DeviceConstants.TOKEN_BYTES,
    ):
        if token_bytes < 16:
            raise ValueError("Device tokens need at least 128 bits of entropy")
        self.cookie = DeviceCookieSpec(name=cookie_name, max_age=max_age, secure=secure)
        self.token_bytes = token_bytes

    @property
    def cookie_name(self) -> str:
        return self.cookie.name

    @staticmethod
    def is_well_formed(token: Optional[str]) -> bool:
        """Check a cookie value looks like a token we could have issued."""
        return bool(token) and _TOKEN_PATTERN.match(token) is not None

    def mint(self) -> str:
        """Generate a new random device token."""
        return secrets.token_urlsafe(self.token_bytes)

    def resolve(self, cookies: Mapping[str, str]) -> IssuedDeviceToken:
        """Return the request's device token, minting one if needed.

        Args:
            cookies: Parsed request cookies

        Returns:
            IssuedDeviceToken; is_new tells the caller to emit Set-Cookie.
        """
        existing = cookies.get(self.cookie.name)
        if self.is_well_formed(existing):
            return IssuedDeviceToken(token=existing, is_new=False)

        if existing:
            logger.info("Discarding malformed device token cookie")

        token = self.mint()
        logger.debug("Minted new device token")
        return IssuedDeviceToken(token=token, is_new=True)
