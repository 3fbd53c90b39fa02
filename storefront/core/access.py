"""
Access policies checked by the entity store before every operation.

The store is constructed with exactly one policy. Nothing is allowed unless
the policy says so: the default is `DenyAllPolicy`, and the permissive
`AllowAllPolicy` can only be selected outside production.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Protocol

from storefront.core.config import Settings
from storefront.core.errors import AccessDenied, ConfigurationError


class Operation(str, Enum):
    CREATE = "create"
    READ = "read"
    UPDATE = "update"
    DELETE = "delete"


@dataclass(frozen=True)
class Actor:
    """Who is calling the store; `sub` is the user's email for token-bearing callers."""
    sub: str
    role: str = "anonymous"


ANONYMOUS = Actor(sub="anonymous")
SYSTEM = Actor(sub="system", role="admin")


class AccessPolicy(Protocol):
    def allows(self, actor: Actor, operation: Operation, entity: str) -> bool: ...


class DenyAllPolicy:
    def allows(self, actor: Actor, operation: Operation, entity: str) -> bool:
        return False


class AllowAllPolicy:
    """Development-only: every actor may do everything."""

    def allows(self, actor: Actor, operation: Operation, entity: str) -> bool:
        return True


def _default_grants() -> dict[str, set[tuple[str, str]]]:
    return {
        "admin": {("*", "*")},
        "customer": {("read", "Product")},
        "anonymous": {("read", "Product")},
    }


@dataclass
class RolePolicy:
    """Grants keyed by role; `("*", "*")` grants everything, `("read", "*")` reads everything."""
    grants: dict[str, set[tuple[str, str]]] = field(default_factory=_default_grants)

    def allows(self, actor: Actor, operation: Operation, entity: str) -> bool:
        granted = self.grants.get(actor.role, set())
        op = operation.value
        return any(g in granted for g in ((op, entity), (op, "*"), ("*", entity), ("*", "*")))


def check(policy: AccessPolicy, actor: Actor, operation: Operation, entity: str) -> None:
    if not policy.allows(actor, operation, entity):
        raise AccessDenied(actor.sub, operation.value, entity)


def policy_from_settings(settings: Settings) -> AccessPolicy:
    settings.validate_runtime()
    if settings.ACCESS_POLICY == "allow_all":
        return AllowAllPolicy()
    if settings.ACCESS_POLICY == "role":
        return RolePolicy()
    if settings.ACCESS_POLICY == "deny_all":
        return DenyAllPolicy()
    raise ConfigurationError(f"Unknown ACCESS_POLICY {settings.ACCESS_POLICY!r}", ["ACCESS_POLICY"])
