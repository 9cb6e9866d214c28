"""Per-request identity of the caller.

The context is a value: it is built from the bearer token of each request and
never shared between requests. Changing a UI preference produces a new
context, from which a refreshed token is issued back to the caller.
"""
from __future__ import annotations

from dataclasses import dataclass, replace
from typing import Any

from tatami.models.user import User

AUTH_TOKEN_HEADER = "X-Auth-Token"


@dataclass(frozen=True)
class Principal:
    login: str
    theme: str | None = None

    @classmethod
    def for_user(cls, user: User) -> Principal:
        return cls(login=user.login, theme=user.theme)

    @classmethod
    def from_claims(cls, claims: dict[str, Any]) -> Principal:
        return cls(login=str(claims["sub"]), theme=claims.get("theme"))

    def to_claims(self) -> dict[str, Any]:
        return {"sub": self.login, "theme": self.theme}


@dataclass(frozen=True)
class SecurityContext:
    principal: Principal

    @property
    def login(self) -> str:
        return self.principal.login

    def with_theme(self, theme: str) -> SecurityContext:
        return replace(self, principal=replace(self.principal, theme=theme))
