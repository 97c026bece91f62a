"""
JWT token issuer - Implements TokenIssuer protocol via PyJWT.

Tokens are stateless: {sub, iat, exp}. Only the signature and the
expiry are trusted; there is no server-side revocation, so expiry is
the only way a token stops working.
"""

import logging
import math
from collections.abc import Callable
from datetime import datetime, timezone

import jwt

from src.domain.exceptions import ConfigurationError

logger = logging.getLogger(__name__)

TOKEN_TTL_SECONDS = 3600


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class JwtTokenIssuer:
    """
    Implements TokenIssuer protocol with HMAC-signed JWTs.

    Uses structural subtyping - no explicit inheritance from Protocol.
    """

    def __init__(
        self,
        secret: str,
        algorithm: str = "HS256",
        ttl_seconds: int = TOKEN_TTL_SECONDS,
        clock: Callable[[], datetime] = _utcnow,
    ) -> None:
        """
        Raises:
            ConfigurationError: If the signing secret is empty
        """
        if not secret or not secret.strip():
            raise ConfigurationError("A token signing secret is required")
        self._secret = secret
        self._algorithm = algorithm
        self._ttl_seconds = int(ttl_seconds)
        self._clock = clock

    def mint(self, subject_id: str) -> str:
        """
        Sign a token for the subject.

        JWT time claims are whole seconds. iat is rounded down and exp up,
        so a token always stays valid for at least the full TTL and expires
        less than one second after it. For a whole-second issuance time it
        expires at exactly issuance + TTL.
        """
        issued_at = self._clock().timestamp()
        payload = {
            "sub": subject_id,
            "iat": math.floor(issued_at),
            "exp": math.ceil(issued_at + self._ttl_seconds),
        }
        return jwt.encode(payload, self._secret, algorithm=self._algorithm)

    def validate(self, token: str) -> str | None:
        try:
            payload = jwt.decode(
                token,
                self._secret,
                algorithms=[self._algorithm],
                options={"require": ["sub", "exp"]},
            )
        except jwt.ExpiredSignatureError:
            logger.info("Rejected expired session token")
            return None
        except jwt.InvalidTokenError as e:
            logger.info("Rejected invalid session token: %s", e)
            return None

        subject = payload.get("sub")
        if not isinstance(subject, str) or not subject:
            return None
        return subject
