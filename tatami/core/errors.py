from __future__ import annotations

from enum import Enum
from typing import Any

from fastapi import HTTPException


class ApiError(HTTPException):
    def __init__(self, status_code: int, code: str, message: str, details: dict[str, Any] | None = None):
        super().__init__(status_code=status_code, detail={"code": code, "message": message, "details": details})


def default_code_for_status(status_code: int) -> str:
    mapping = {
        400: "bad_request",
        401: "unauthorized",
        403: "forbidden",
        404: "not_found",
        409: "conflict",
        422: "validation_error",
        429: "rate_limited",
        500: "internal_error",
        503: "service_unavailable",
    }
    return mapping.get(status_code, "error")


class AccountErrorKind(str, Enum):
    OLD_PASSWORD_MISMATCH = "old_password_mismatch"
    CONFIRMATION_MISMATCH = "confirmation_mismatch"
    EMPTY_THEME = "empty_theme"
    PERSISTENCE_REJECTED = "persistence_rejected"
    LDAP_MANAGED = "ldap_managed"


class AccountError(Exception):
    """A rejected account operation. Never serialized to the client."""

    def __init__(self, kind: AccountErrorKind, field: str | None = None):
        self.kind = kind
        self.field = field
        super().__init__(f"{kind.value}: {field}" if field else kind.value)


# Account responses carry no error body, only one of these statuses.
_FORBIDDEN_KINDS = frozenset({AccountErrorKind.PERSISTENCE_REJECTED, AccountErrorKind.LDAP_MANAGED})


def status_for_kind(kind: AccountErrorKind) -> int:
    return 403 if kind in _FORBIDDEN_KINDS else 500
