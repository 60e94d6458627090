"""Identity and password-reset token helpers."""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass
from datetime import UTC, datetime, timedelta
import hashlib
import secrets

import jwt

from devcamper.core.config import Settings
from devcamper.errors import Unauthorized

_RESET_TOKEN_BYTES = 20


@dataclass(frozen=True, slots=True)
class TokenClaims:
    user_id: str
    issued_at: datetime
    expires_at: datetime


@dataclass(frozen=True, slots=True)
class ResetToken:
    plaintext: str
    token_hash: str
    expires_at: datetime


def _utc_now() -> datetime:
    return datetime.now(UTC)


class TokenService:
    """Issues and verifies signed identity tokens and password-reset tokens."""

    def __init__(
        self,
        *,
        secret: str,
        algorithm: str = "HS256",
        lifetime: timedelta = timedelta(days=30),
        reset_lifetime: timedelta = timedelta(minutes=10),
        clock: Callable[[], datetime] = _utc_now,
    ) -> None:
        if not secret:
            raise ValueError("Token signing secret is empty.")
        self._secret = secret
        self._algorithm = algorithm
        self._lifetime = lifetime
        self._reset_lifetime = reset_lifetime
        self._clock = clock

    @classmethod
    def from_settings(cls, settings: Settings) -> TokenService:
        return cls(
            secret=settings.jwt_secret,
            algorithm=settings.jwt_algorithm,
            lifetime=timedelta(days=settings.jwt_expire_days),
            reset_lifetime=timedelta(minutes=settings.reset_token_expire_minutes),
        )

    def issue(self, user_id: str) -> str:
        issued_at = self._clock()
        payload = {
            "sub": str(user_id),
            "iat": int(issued_at.timestamp()),
            "exp": int((issued_at + self._lifetime).timestamp()),
        }
        return jwt.encode(payload, self._secret, algorithm=self._algorithm)

    def verify(self, token: str) -> TokenClaims:
        raw = (token or "").strip()
        if not raw:
            raise Unauthorized("Not authorized to access this route")

        try:
            payload = jwt.decode(
                raw,
                self._secret,
                algorithms=[self._algorithm],
                # Time claims are checked against the service clock below.
                options={"require": ["sub", "iat", "exp"], "verify_exp": False, "verify_iat": False},
            )
        except jwt.InvalidTokenError as exc:
            raise Unauthorized("Not authorized to access this route") from exc

        user_id = str(payload.get("sub") or "").strip()
        if not user_id:
            raise Unauthorized("Not authorized to access this route")

        try:
            issued_at = datetime.fromtimestamp(payload["iat"], UTC)
            expires_at = datetime.fromtimestamp(payload["exp"], UTC)
        except (TypeError, ValueError, OverflowError, OSError) as exc:
            raise Unauthorized("Not authorized to access this route") from exc
        if expires_at <= self._clock():
            raise Unauthorized("Not authorized to access this route")

        return TokenClaims(user_id=user_id, issued_at=issued_at, expires_at=expires_at)

    @staticmethod
    def hash_reset_token(plaintext: str) -> str:
        return hashlib.sha256((plaintext or "").encode("utf-8")).hexdigest()

    def issue_reset_token(self) -> ResetToken:
        plaintext = secrets.token_hex(_RESET_TOKEN_BYTES)
        return ResetToken(
            plaintext=plaintext,
            token_hash=self.hash_reset_token(plaintext),
            expires_at=self._clock() + self._reset_lifetime,
        )

    def verify_reset_token(
        self,
        plaintext: str,
        stored_hash: str | None,
        stored_expiry: datetime | None,
    ) -> bool:
        if not plaintext or not stored_hash or stored_expiry is None:
            return False
        matches = secrets.compare_digest(self.hash_reset_token(plaintext), stored_hash)
        return matches and stored_expiry > self._clock()


__all__ = ["ResetToken", "TokenClaims", "TokenService"]
