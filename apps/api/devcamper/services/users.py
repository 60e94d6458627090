"""User administration service layer."""

from collections.abc import Mapping
from typing import Any

from devcamper.core.passwords import hash_password
from devcamper.domain.query import QueryBuilder
from devcamper.errors import NotFound
from devcamper.repositories.memory import InMemoryStore
from devcamper.schemas.envelope import PaginatedResult
from devcamper.schemas.user import CreateUserRequest, UpdateUserRequest

SECRET_USER_FIELDS = frozenset({"password_hash", "reset_password_token", "reset_password_expire"})


def public_user(document: Mapping[str, Any]) -> dict[str, Any]:
    return {key: value for key, value in document.items() if key not in SECRET_USER_FIELDS}


def normalize_email(email: str) -> str:
    return (email or "").strip().lower()


class UserService:
    def __init__(self, store: InMemoryStore) -> None:
        self._store = store

    def list_users(self, params: Mapping[str, str]) -> PaginatedResult:
        builder = QueryBuilder(self._store.users, hidden_fields=SECRET_USER_FIELDS)
        return builder.execute(params)

    def get_user(self, user_id: str) -> dict[str, Any]:
        document = self._store.users.find_by_id(user_id)
        if document is None:
            raise NotFound(f"User not found with id of {user_id}")
        return public_user(document)

    def create_user(self, payload: CreateUserRequest) -> dict[str, Any]:
        document = self._store.users.insert(
            {
                "name": payload.name,
                "email": normalize_email(payload.email),
                "role": payload.role.value,
                "password_hash": hash_password(payload.password),
                "reset_password_token": None,
                "reset_password_expire": None,
            }
        )
        return public_user(document)

    def update_user(self, user_id: str, payload: UpdateUserRequest) -> dict[str, Any]:
        changes = payload.model_dump(mode="json", exclude_unset=True, exclude_none=True)
        if "email" in changes:
            changes["email"] = normalize_email(changes["email"])
        document = self._store.users.update_by_id(user_id, changes)
        if document is None:
            raise NotFound(f"User not found with id of {user_id}")
        return public_user(document)

    def delete_user(self, user_id: str) -> None:
        if not self._store.users.delete_by_id(user_id):
            raise NotFound(f"User not found with id of {user_id}")
