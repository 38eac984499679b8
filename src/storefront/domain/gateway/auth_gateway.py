"""Port for the identity provider that turns a bearer credential into a principal."""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from enum import Enum

from storefront.domain.exceptions import AuthError


class Role(Enum):
    BUYER = "user"
    OPERATOR = "admin"


@dataclass(frozen=True)
class Principal:
    """Who is calling, as vouched for by the auth gateway."""

    identity: str
    role: Role

    @property
    def is_operator(self) -> bool:
        return self.role == Role.OPERATOR


class AuthGateway(ABC):

    @abstractmethod
    def verify(self, credential: str | None) -> Principal:
        """Return the principal for *credential* or raise AuthError."""


def require_authenticated(principal: Principal | None) -> Principal:
    if principal is None or not principal.identity:
        raise AuthError("Not authorized to access this resource")
    return principal


def require_operator(principal: Principal | None) -> Principal:
    principal = require_authenticated(principal)
    if not principal.is_operator:
        raise AuthError("Not authorized as admin")
    return principal
