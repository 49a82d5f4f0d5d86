"""
tenancy_sdk.tier0_core.config
────────────────────────────────
Typed tenancy configuration with env layering. Reads from .env → environment
variables. All fields are typed via Pydantic and parsed once at startup;
nothing here is re-read per request.

Invalid values raise ConfigurationError from load_config(), so a bad
deployment fails at boot rather than on the first request.

Minimal stack: pydantic-settings + python-dotenv
"""
from __future__ import annotations

from dataclasses import dataclass
from functools import lru_cache
from typing import Any, ClassVar, Literal, Union

from pydantic import Field, ValidationError as PydanticValidationError, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from tenancy_sdk.tier0_core.errors import ConfigurationError

CacheMode = Literal["preload", "lazy", "disabled"]
ResolutionMode = Literal["gateway", "direct"]
StrategyName = Literal["domain", "subdomain", "path", "header"]

CACHE_MODES: frozenset[str] = frozenset({"preload", "lazy", "disabled"})
RESOLUTION_MODES: frozenset[str] = frozenset({"gateway", "direct"})
STRATEGIES: frozenset[str] = frozenset({"domain", "subdomain", "path", "header"})


# ── Strategy descriptors ──────────────────────────────────────────────────────

@dataclass(frozen=True)
class DomainStrategy:
    """Full host name is the tenant identifier."""
    kind: ClassVar[str] = "domain"


@dataclass(frozen=True)
class SubdomainStrategy:
    """Label at ``level`` of the host name, e.g. level 0 of ``acme.app.com``."""
    level: int = 0
    kind: ClassVar[str] = "subdomain"


@dataclass(frozen=True)
class PathStrategy:
    """Non-empty path segment at ``index``, e.g. index 0 of ``/acme/page``."""
    index: int = 0
    kind: ClassVar[str] = "path"


@dataclass(frozen=True)
class HeaderStrategy:
    """Value of the named request header."""
    name: str = "X-Tenant-ID"
    kind: ClassVar[str] = "header"


TenantStrategy = Union[DomainStrategy, SubdomainStrategy, PathStrategy, HeaderStrategy]


# ── Settings ──────────────────────────────────────────────────────────────────

class TenancyConfig(BaseSettings):
    """
    Typed tenancy configuration. All env vars are prefixed with TENANCY_.
    Fields may also be passed by name to override the environment.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
        populate_by_name=True,
    )

    # ── Resolution ────────────────────────────────────────────────────────────
    enabled: bool = Field(default=True, alias="TENANCY_ENABLED")
    resolution_mode: str = Field(default="gateway", alias="TENANCY_RESOLUTION_MODE")
    strategy_name: str = Field(default="domain", alias="TENANCY_STRATEGY")
    subdomain_level: int = Field(default=0, alias="TENANCY_SUBDOMAIN_LEVEL")
    path_index: int = Field(default=0, alias="TENANCY_PATH_INDEX")
    header_name: str = Field(default="X-Tenant-ID", alias="TENANCY_HEADER_NAME")
    endpoint_prefix: str = Field(default="tenant-info", alias="TENANCY_ENDPOINT_PREFIX")

    # ── Backend ───────────────────────────────────────────────────────────────
    internal_api_url: str | None = Field(default=None, alias="TENANCY_INTERNAL_API_URL")
    http_timeout: float = Field(default=10.0, alias="TENANCY_HTTP_TIMEOUT")

    # ── Cache ─────────────────────────────────────────────────────────────────
    cache_mode: str = Field(default="lazy", alias="TENANCY_CACHE_MODE")
    cache_ttl: int = Field(default=300, alias="TENANCY_CACHE_TTL")

    # ── Static single-tenant fallback ─────────────────────────────────────────
    tenant_id: str | None = Field(default=None, alias="TENANCY_TENANT_ID")
    tenant_name: str | None = Field(default=None, alias="TENANCY_TENANT_NAME")
    api_url: str = Field(default="", alias="TENANCY_API_URL")
    app_url: str = Field(default="", alias="TENANCY_APP_URL")

    # ── Logging / errors ──────────────────────────────────────────────────────
    log_level: str = Field(default="INFO", alias="TENANCY_LOG_LEVEL")
    log_format: str = Field(default="json", alias="TENANCY_LOG_FORMAT")
    error_backend: str = Field(default="none", alias="TENANCY_ERROR_BACKEND")

    @field_validator("resolution_mode")
    @classmethod
    def validate_resolution_mode(cls, v: str) -> str:
        if v.lower() not in RESOLUTION_MODES:
            raise ValueError(f"resolution_mode must be one of {sorted(RESOLUTION_MODES)}, got {v!r}")
        return v.lower()

    @field_validator("strategy_name")
    @classmethod
    def validate_strategy(cls, v: str) -> str:
        if v.lower() not in STRATEGIES:
            raise ValueError(f"strategy must be one of {sorted(STRATEGIES)}, got {v!r}")
        return v.lower()

    @field_validator("cache_mode")
    @classmethod
    def validate_cache_mode(cls, v: str) -> str:
        if v.lower() not in CACHE_MODES:
            raise ValueError(f"cache_mode must be one of {sorted(CACHE_MODES)}, got {v!r}")
        return v.lower()

    @field_validator("cache_ttl")
    @classmethod
    def validate_ttl(cls, v: int) -> int:
        if v <= 0:
            raise ValueError(f"cache_ttl must be a positive number of seconds, got {v}")
        return v

    @field_validator("endpoint_prefix")
    @classmethod
    def strip_prefix(cls, v: str) -> str:
        return v.strip("/")

    @property
    def strategy(self) -> TenantStrategy:
        """The immutable strategy descriptor selected by TENANCY_STRATEGY."""
        return build_strategy(
            self.strategy_name,
            subdomain_level=self.subdomain_level,
            path_index=self.path_index,
            header_name=self.header_name,
        )

    @property
    def is_gateway(self) -> bool:
        return self.resolution_mode == "gateway"


def build_strategy(
    name: str,
    *,
    subdomain_level: int = 0,
    path_index: int = 0,
    header_name: str = "X-Tenant-ID",
) -> TenantStrategy:
    """Construct a strategy descriptor from its name and parameters."""
    name = name.lower()
    if name == "subdomain":
        return SubdomainStrategy(level=subdomain_level)
    if name == "path":
        return PathStrategy(index=path_index)
    if name == "header":
        return HeaderStrategy(name=header_name)
    if name == "domain":
        return DomainStrategy()
    raise ConfigurationError(
        user_message=f"Unknown tenant resolution strategy: {name!r}",
        strategy=name,
    )


def load_config(**overrides: Any) -> TenancyConfig:
    """
    Build a TenancyConfig from the environment; explicit overrides win.
    Raises ConfigurationError instead of pydantic's ValidationError.
    """
    try:
        return TenancyConfig(**overrides)
    except PydanticValidationError as exc:
        fields = {
            ".".join(str(loc) for loc in err["loc"]): err["msg"]
            for err in exc.errors()
        }
        raise ConfigurationError(
            user_message="Invalid tenancy configuration.",
            detail=str(exc),
            fields=fields,
        ) from exc


@lru_cache(maxsize=1)
def get_config() -> TenancyConfig:
    """
    Return the singleton tenancy config. Cached after first call.
    Call _reset_config() in tests to pick up new env vars.
    """
    return load_config()


def _reset_config() -> None:
    """For tests — clear the config cache."""
    get_config.cache_clear()


__all__ = [
    "TenancyConfig", "get_config", "load_config", "build_strategy",
    "DomainStrategy", "SubdomainStrategy", "PathStrategy", "HeaderStrategy",
    "TenantStrategy", "CacheMode", "ResolutionMode",
]
