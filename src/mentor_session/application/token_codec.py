"""Compact signed claims bundles for access and refresh tokens.

Tokens are ``header.payload.signature`` with base64url segments, signed with
an HMAC key via python-jose. ``decode`` verifies the signature but not the
expiry: expiry is judged separately by ``is_expired`` so an expired refresh
token can still be inspected before it is rejected.
"""

import hashlib
import logging
import re
from datetime import datetime, timedelta, timezone
from typing import Any, Callable, Dict, Mapping, Optional, Union

from jose import jwt, JWTError

from ..core.exceptions import TokenDecodeError, mask_identifier

logger = logging.getLogger(__name__)

TTL = Union[str, int, timedelta]


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class TokenCodec:
    """Encodes, decodes and signs token claims, and computes expiry."""
    
    DEFAULT_TTL_SECONDS = 1800  # 30 minutes
    
    _TTL_PATTERN = re.compile(r"^(\d+)([smhd])$")
    _UNIT_SECONDS = {
        "s": 1,
        "m": 60,
        "h": 3600,
        "d": 86400,
    }
    
    def __init__(
        self,
        secret_key: str,
        algorithm: str = "HS256",
        clock: Callable[[], datetime] = utcnow
    ):
        """Initialize codec.
        
        Args:
            secret_key: HMAC signing key
            algorithm: HMAC algorithm understood by python-jose
            clock: Source of the current UTC time
        """
        if not secret_key:
            raise ValueError("Token secret key is required")
        self._secret_key = secret_key
        self.algorithm = algorithm
        self._clock = clock
    
    def now(self) -> int:
        """Current time as whole seconds since the epoch."""
        return int(self._clock().timestamp())
    
    @classmethod
    def parse_ttl(cls, ttl: TTL) -> int:
        """Convert ``"<n><unit>"`` (unit in s/m/h/d), seconds, or a timedelta to seconds.
        
        Unrecognized values fall back to 30 minutes and are logged.
        """
        if isinstance(ttl, timedelta):
            return int(ttl.total_seconds())
        if isinstance(ttl, int) and not isinstance(ttl, bool):
            return ttl
        
        match = cls._TTL_PATTERN.match(ttl.strip()) if isinstance(ttl, str) else None
        if not match:
            logger.warning(
                f"Unrecognized token TTL {ttl!r}, defaulting to {cls.DEFAULT_TTL_SECONDS}s"
            )
            return cls.DEFAULT_TTL_SECONDS
        
        value, unit = match.groups()
        return int(value) * cls._UNIT_SECONDS[unit]
    
    def encode(self, claims: Mapping[str, Any], ttl: TTL) -> str:
        """Sign ``claims`` stamped with ``iat = now`` and ``exp = now + ttl``."""
        issued_at = self.now()
        payload = dict(claims)
        payload["iat"] = issued_at
        payload["exp"] = issued_at + self.parse_ttl(ttl)
        return jwt.encode(payload, self._secret_key, algorithm=self.algorithm)
    
    def verify(self, token: str) -> Dict[str, Any]:
        """Return the claims of a well-formed, correctly signed token.
        
        Raises:
            TokenDecodeError: Malformed token or signature mismatch
        """
        if not isinstance(token, str):
            raise TokenDecodeError("Token must be a string", reason="type")
        
        segments = token.split(".")
        if len(segments) != 3:
            raise TokenDecodeError.malformed(len(segments))
        
        try:
            claims = jwt.decode(
                token,
                self._secret_key,
                algorithms=[self.algorithm],
                options={"verify_exp": False, "verify_aud": False},
            )
        except JWTError as e:
            raise TokenDecodeError.bad_signature(str(e)) from e
        
        if not isinstance(claims, dict):
            raise TokenDecodeError("Token payload is not an object", reason="payload")
        return claims
    
    def decode(self, token: Optional[str]) -> Optional[Dict[str, Any]]:
        """Return the claims, or None for any malformed or unverifiable token."""
        if not token:
            return None
        try:
            return self.verify(token)
        except TokenDecodeError as e:
            logger.debug(f"Rejected token {mask_identifier(token)}: {e}")
            return None
    
    def expires_at(self, token: Optional[str]) -> Optional[datetime]:
        claims = self.decode(token)
        if not claims or not isinstance(claims.get("exp"), (int, float)):
            return None
        return datetime.fromtimestamp(claims["exp"], timezone.utc)
    
    def is_expired(self, token: Optional[str]) -> bool:
        """Fail-closed expiry check: undecodable or exp-less tokens are expired."""
        claims = self.decode(token)
        if not claims:
            return True
        exp = claims.get("exp")
        if not isinstance(exp, (int, float)) or isinstance(exp, bool):
            return True
        return self.now() >= exp
    
    @staticmethod
    def fingerprint(token: str) -> str:
        """SHA-256 hash - stored on the session record for audit, never the token."""
        return hashlib.sha256(token.encode("utf-8")).hexdigest()
