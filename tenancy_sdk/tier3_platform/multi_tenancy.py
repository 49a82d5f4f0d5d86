"""
tenancy_sdk.tier3_platform.multi_tenancy
───────────────────────────────────────────
Tenant data model and the current-tenant context.

A Tenant is an immutable snapshot of the backend record. Its ``config``
tree carries an optional ``__visibility`` sub-tree that annotates each
leaf as private, protected or public; only annotated public leaves are
ever sent to a browser.
"""
from __future__ import annotations

from contextvars import ContextVar
from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator

from tenancy_sdk.tier0_core.errors import TenantNotFoundError

VISIBILITY_KEY = "__visibility"


class Visibility(str, Enum):
    """Ordered visibility levels: private < protected < public."""

    PRIVATE = "private"
    PROTECTED = "protected"
    PUBLIC = "public"

    @property
    def rank(self) -> int:
        return _RANKS[self]

    @classmethod
    def parse(cls, value: Any) -> "Visibility":
        """Parse a label; anything unrecognised is treated as private."""
        if isinstance(value, cls):
            return value
        if isinstance(value, str):
            try:
                return cls(value.lower())
            except ValueError:
                pass
        return cls.PRIVATE

    def allows(self, minimum: "Visibility") -> bool:
        return self.rank >= minimum.rank


_RANKS = {
    Visibility.PRIVATE: 1,
    Visibility.PROTECTED: 2,
    Visibility.PUBLIC: 3,
}


class Tenant(BaseModel):
    """Tenant record as returned by the tenant backend."""

    model_config = ConfigDict(frozen=True, extra="ignore", coerce_numbers_to_str=True)

    id: str
    identifier: str = ""
    name: str = ""
    parent_id: str | None = None
    is_active: bool = True
    is_internal: bool = False
    config: dict[str, Any] = Field(default_factory=dict)
    created_at: str | None = None
    updated_at: str | None = None
    parent: Tenant | None = None

    @field_validator("config", mode="before")
    @classmethod
    def _none_config(cls, v: Any) -> Any:
        return {} if v is None else v

    @property
    def cache_key(self) -> str:
        """Key used when bulk-loading: identifier, or id when identifier is empty."""
        return self.identifier or self.id

    @property
    def visibility(self) -> dict[str, Any]:
        tree = self.config.get(VISIBILITY_KEY)
        return tree if isinstance(tree, dict) else {}

    def config_without_visibility(self) -> dict[str, Any]:
        return {k: v for k, v in self.config.items() if k != VISIBILITY_KEY}

    def public_summary(self, config: dict[str, Any]) -> dict[str, Any]:
        """The tenant block placed on the client payload, with *config* already filtered."""
        return {
            "id": self.id,
            "name": self.name,
            "identifier": self.identifier,
            "parent_id": self.parent_id,
            "is_active": self.is_active,
            "is_internal": self.is_internal,
            "config": config,
        }


Tenant.model_rebuild()


# ── Current tenant ────────────────────────────────────────────────────────────

_tenant_context: ContextVar[Tenant | None] = ContextVar(
    "current_tenant", default=None
)


def set_tenant(tenant: Tenant | None) -> None:
    """Set the current tenant (called by the render hook once resolved)."""
    _tenant_context.set(tenant)


def get_tenant() -> Tenant | None:
    """Return the current tenant, or None if not resolved."""
    return _tenant_context.get()


def require_tenant() -> Tenant:
    """Return the current tenant, raising TenantNotFoundError if unset."""
    tenant = _tenant_context.get()
    if tenant is None:
        raise TenantNotFoundError(detail="No tenant resolved for the current request.")
    return tenant


__all__ = [
    "Tenant", "Visibility", "VISIBILITY_KEY",
    "set_tenant", "get_tenant", "require_tenant",
]
