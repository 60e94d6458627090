"""Record ownership rules."""

from __future__ import annotations

from collections.abc import Iterable, Mapping
import logging
from typing import Any

from devcamper.core.logging_safety import safe_log_identifier
from devcamper.errors import Forbidden, ValidationError
from devcamper.schemas.auth import AuthPrincipal

logger = logging.getLogger(__name__)

OWNER_FIELD = "user"


class OwnershipGuard:
    """Decides whether a principal may mutate an ownership-bearing record."""

    def __init__(self, elevated_roles: Iterable[str] = ("admin",), *, owner_field: str = OWNER_FIELD) -> None:
        self._elevated_roles = frozenset(elevated_roles)
        self._owner_field = owner_field

    @property
    def elevated_roles(self) -> frozenset[str]:
        return self._elevated_roles

    def is_elevated(self, principal: AuthPrincipal) -> bool:
        return principal.role in self._elevated_roles

    def can_mutate(self, principal: AuthPrincipal, record: Mapping[str, Any]) -> bool:
        owner_id = record.get(self._owner_field)
        if owner_id is not None and str(owner_id) == principal.user_id:
            return True
        return self.is_elevated(principal)

    def ensure_can_mutate(
        self,
        principal: AuthPrincipal,
        record: Mapping[str, Any],
        *,
        action: str,
        resource: str,
    ) -> None:
        if self.can_mutate(principal, record):
            return

        logger.warning(
            "ownership.denied principal_id=%s role=%s action=%s resource=%s record_id=%s",
            safe_log_identifier(principal.user_id, prefix="pid"),
            principal.role,
            action,
            resource,
            safe_log_identifier(record.get("id"), prefix="rid"),
        )
        raise Forbidden(f"User {principal.user_id} is not authorized to {action} this {resource}")

    def ensure_can_publish(
        self,
        principal: AuthPrincipal,
        existing: Mapping[str, Any] | None,
        *,
        resource: str,
    ) -> None:
        """Enforce one owned record per category unless the principal is elevated."""
        if existing is None or self.is_elevated(principal):
            return
        raise ValidationError(f"The user with ID {principal.user_id} has already published a {resource}")


__all__ = ["OWNER_FIELD", "OwnershipGuard"]
