"""Session Resolver - verified caller identity.

The acting user is taken from a signed session token issued by the
auth layer, never from a caller-supplied header. Tokens are JWTs
(HS256 by default) whose `sub` claim is the user id. They are read from
`Authorization: Bearer ...` or, failing that, from the session cookie.
"""

import logging
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, Mapping, Optional

import jwt

from riskgate.common.exceptions import AuthenticationError

logger = logging.getLogger(__name__)


class SessionResolver:
    """Verifies session tokens and returns the acting user id."""

    def __init__(
        self,
        secret: str,
        algorithm: str = "HS256",
        cookie_name: str = "rg_session",
        audience: Optional[str] = None,
        leeway_seconds: int = 30,
    ):
        if not secret:
            raise ValueError("Session secret must not be empty")
        self._secret = secret
        self.algorithm = algorithm
        self.cookie_name = cookie_name
        self.audience = audience
        self.leeway_seconds = leeway_seconds

    def issue(
        self,
        user_id: str,
        expires_in: timedelta = timedelta(hours=1),
        now: Optional[datetime] = None,
    ) -> str:
        """Issue a session token (used by tests and local tooling)."""
        now = now or datetime.now(timezone.utc)
        claims: Dict[str, Any] = {
            "sub": user_id,
            "iat": now,
            "exp": now + expires_in,
        }
        if self.audience:
            claims["aud"] = self.audience
        return jwt.encode(claims, self._secret, algorithm=self.algorithm)

    def _extract_token(
        self,
        headers: Mapping[str, str],
        cookies: Mapping[str, str],
    ) -> Optional[str]:
        authorization = headers.get("authorization", "")
        scheme, _, credentials = authorization.partition(" ")
        if scheme.lower() == "bearer" and credentials.strip():
            return credentials.strip()
        return cookies.get(self.cookie_name) or None

    def resolve(
        self,
        headers: Mapping[str, str],
        cookies: Mapping[str, str],
    ) -> str:
        """Resolve the acting user id from a verified token.

        Raises:
            AuthenticationError: If no token is present or it fails verification
        """
        token = self._extract_token(headers, cookies)
        if token is None:
            raise AuthenticationError("No session token provided")

        try:
            payload = jwt.decode(
                token,
                self._secret,
                algorithms=[self.algorithm],
                audience=self.audience,
                leeway=self.leeway_seconds,
                options={"require": ["sub", "exp"]},
            )
        except jwt.ExpiredSignatureError:
            raise AuthenticationError("Session token has expired")
        except jwt.InvalidTokenError as e:
            logger.warning(f"Session token rejected: {type(e).__name__}")
            raise AuthenticationError("Could not validate session token")

        user_id = payload.get("sub")
        if not isinstance(user_id, str) or not user_id.strip():
            raise AuthenticationError("Session token has no subject")

        return user_id
