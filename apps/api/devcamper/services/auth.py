"""Authentication service layer."""

from __future__ import annotations

import logging
from typing import Any

from devcamper.adapters.email import EmailDeliveryError, EmailMessage, EmailSender
from devcamper.core.logging_safety import safe_log_identifier
from devcamper.core.passwords import hash_password, verify_password
from devcamper.core.tokens import TokenClaims, TokenService
from devcamper.errors import NotFound, Unauthorized, UpstreamFailure, ValidationError
from devcamper.repositories.memory import InMemoryStore
from devcamper.schemas.auth import (
    AuthPrincipal,
    ForgotPasswordRequest,
    LoginRequest,
    RegisterRequest,
    ResetPasswordRequest,
    UpdateDetailsRequest,
    UpdatePasswordRequest,
)
from devcamper.services.users import normalize_email, public_user

logger = logging.getLogger(__name__)


class AuthService:
    def __init__(
        self,
        store: InMemoryStore,
        tokens: TokenService,
        email_sender: EmailSender,
        *,
        public_base_url: str,
    ) -> None:
        self._store = store
        self._tokens = tokens
        self._email_sender = email_sender
        self._public_base_url = public_base_url.rstrip("/")

    def resolve_principal(self, claims: TokenClaims) -> AuthPrincipal:
        """Map verified token claims to the stored user's current role."""
        user = self._store.users.find_by_id(claims.user_id)
        if user is None:
            raise Unauthorized("Not authorized to access this route")
        return AuthPrincipal(user_id=user["id"], role=user["role"])

    def register(self, payload: RegisterRequest) -> str:
        user = self._store.users.insert(
            {
                "name": payload.name,
                "email": normalize_email(payload.email),
                "role": payload.role.value,
                "password_hash": hash_password(payload.password),
                "reset_password_token": None,
                "reset_password_expire": None,
            }
        )
        return self._tokens.issue(user["id"])

    def login(self, payload: LoginRequest) -> str:
        if not payload.email or not payload.password:
            raise ValidationError("Please provide an email and a password")

        user = self._store.users.find_one(email=normalize_email(payload.email))
        if user is None or not verify_password(payload.password, user.get("password_hash") or ""):
            raise Unauthorized("Invalid credentials")
        return self._tokens.issue(user["id"])

    def get_me(self, principal: AuthPrincipal) -> dict[str, Any]:
        user = self._store.users.find_by_id(principal.user_id)
        if user is None:
            raise NotFound(f"User not found with id of {principal.user_id}")
        return public_user(user)

    def update_details(self, principal: AuthPrincipal, payload: UpdateDetailsRequest) -> dict[str, Any]:
        changes = payload.model_dump(mode="json", exclude_unset=True, exclude_none=True)
        if "email" in changes:
            changes["email"] = normalize_email(changes["email"])
        user = self._store.users.update_by_id(principal.user_id, changes)
        if user is None:
            raise NotFound(f"User not found with id of {principal.user_id}")
        return public_user(user)

    def update_password(self, principal: AuthPrincipal, payload: UpdatePasswordRequest) -> str:
        user = self._store.users.find_by_id(principal.user_id)
        if user is None:
            raise NotFound(f"User not found with id of {principal.user_id}")
        if not verify_password(payload.current_password, user.get("password_hash") or ""):
            raise Unauthorized("Password is incorrect")

        self._store.users.update_by_id(user["id"], {"password_hash": hash_password(payload.new_password)})
        return self._tokens.issue(user["id"])

    async def forgot_password(self, payload: ForgotPasswordRequest) -> str:
        user = self._store.users.find_one(email=normalize_email(payload.email))
        if user is None:
            raise NotFound("There is no user with that email")

        reset = self._tokens.issue_reset_token()
        self._store.users.update_by_id(
            user["id"],
            {"reset_password_token": reset.token_hash, "reset_password_expire": reset.expires_at},
        )
        safe_user_id = safe_log_identifier(user["id"], prefix="uid")
        logger.info("reset.issued user_id=%s expires_at=%s", safe_user_id, reset.expires_at.isoformat())

        reset_url = f"{self._public_base_url}/api/v1/auth/resetpassword/{reset.plaintext}"
        message = EmailMessage(
            to=user["email"],
            subject="Password reset token",
            body=(
                "You are receiving this email because you (or someone else) has requested "
                f"the reset of a password. Please make a PUT request to:\n\n{reset_url}"
            ),
        )
        try:
            await self._email_sender.send(message)
        except EmailDeliveryError as exc:
            # An undeliverable token must not stay redeemable.
            self._store.users.update_by_id(
                user["id"],
                {"reset_password_token": None, "reset_password_expire": None},
            )
            logger.warning("reset.email_failed user_id=%s reason=%s", safe_user_id, exc)
            raise UpstreamFailure("Email could not be sent") from exc

        return "Email sent"

    def reset_password(self, reset_token: str, payload: ResetPasswordRequest) -> str:
        token_hash = self._tokens.hash_reset_token(reset_token)
        user = self._store.users.find_one(reset_password_token=token_hash)
        if user is None or not self._tokens.verify_reset_token(
            reset_token,
            user.get("reset_password_token"),
            user.get("reset_password_expire"),
        ):
            raise ValidationError("Invalid token")

        self._store.users.update_by_id(
            user["id"],
            {
                "password_hash": hash_password(payload.password),
                "reset_password_token": None,
                "reset_password_expire": None,
            },
        )
        return self._tokens.issue(user["id"])
