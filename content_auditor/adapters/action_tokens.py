"""Single-use action tokens for corrective transitions.

Tokens are HS256 JWTs scoped to one (item_id, kind) pair, time-boxed by
`exp`, and consumed server-side by `jti` on first successful verification.
"""

from __future__ import annotations

import logging
import secrets
import threading
from datetime import UTC, datetime, timedelta
from typing import Any, Protocol

from jose import jwt
from jose.exceptions import JWTError

from content_auditor.domain.entities import TransitionKind

logger = logging.getLogger(__name__)


class ClockPort(Protocol):
    def now_utc(self) -> datetime: ...


class InMemoryConsumedTokens:
    """Consumed `jti` set - suitable for single-process deployments."""

    def __init__(self) -> None:
        self._consumed: dict[str, datetime] = {}
        self._lock = threading.Lock()

    def consume(self, jti: str, expires_at: datetime, now_utc: datetime) -> bool:
        """Mark jti used. Returns False if it was already used."""
        with self._lock:
            # Expired entries can never verify again, so drop them
            for key in [k for k, exp in self._consumed.items() if exp <= now_utc]:
                del self._consumed[key]

            if jti in self._consumed:
                return False
            self._consumed[jti] = expires_at
            return True

    def __len__(self) -> int:
        with self._lock:
            return len(self._consumed)


class SignedActionTokens:
    """Issues and verifies single-use action tokens."""

    def __init__(
        self,
        secret_key: str,
        ttl_minutes: int = 30,
        algorithm: str = "HS256",
        clock: ClockPort | None = None,
        consumed: InMemoryConsumedTokens | None = None,
    ) -> None:
        self._secret_key = secret_key
        self._ttl = timedelta(minutes=ttl_minutes)
        self._algorithm = algorithm
        self._clock = clock
        self._consumed = consumed or InMemoryConsumedTokens()

    def _now_utc(self) -> datetime:
        if self._clock:
            return self._clock.now_utc()
        return datetime.now(UTC)

    def issue(self, item_id: str, kind: TransitionKind) -> str:
        """Create a token valid once for (item_id, kind)."""
        now = self._now_utc()
        claims: dict[str, Any] = {
            "sub": item_id,
            "act": kind,
            "jti": secrets.token_urlsafe(16),
            "iat": int(now.timestamp()),
            "exp": int((now + self._ttl).timestamp()),
        }
        token: str = jwt.encode(claims, self._secret_key, algorithm=self._algorithm)
        return token

    def verify(self, token: str, item_id: str, kind: TransitionKind) -> bool:
        """Check signature, expiry and scope, then consume the token."""
        if not token:
            return False

        try:
            # Expiry is checked against our clock below
            claims = jwt.decode(
                token,
                self._secret_key,
                algorithms=[self._algorithm],
                options={"verify_exp": False, "verify_iat": False},
            )
        except JWTError:
            logger.warning("Rejected action token with bad signature for item %s", item_id)
            return False

        now = self._now_utc()
        exp = claims.get("exp")
        if not isinstance(exp, int) or exp <= int(now.timestamp()):
            logger.info("Rejected expired action token for item %s", item_id)
            return False

        if claims.get("sub") != item_id or claims.get("act") != kind:
            logger.warning(
                "Rejected action token scoped to %s/%s for %s/%s",
                claims.get("sub"),
                claims.get("act"),
                item_id,
                kind,
            )
            return False

        jti = claims.get("jti")
        if not isinstance(jti, str):
            return False

        expires_at = datetime.fromtimestamp(exp, UTC)
        if not self._consumed.consume(jti, expires_at, now):
            logger.warning("Rejected replayed action token for item %s", item_id)
            return False

        return True
