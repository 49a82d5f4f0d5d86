"""
tenancy_sdk
───────────
Stable top-level exports. Import from here, not from sub-modules directly.
Every name exported here is part of the public API and subject to semver.
"""
from tenancy_sdk.tier0_core.logging import get_logger, configure_logging, bind_context, clear_context
from tenancy_sdk.tier0_core.errors import (
    TenancyError,
    ConfigurationError,
    ValidationError,
    ResolutionTransportError,
    TenantNotFoundError,
    TenantRedirect,
    VisibilityMissingError,
)
from tenancy_sdk.tier0_core.config import (
    get_config,
    load_config,
    TenancyConfig,
    DomainStrategy,
    SubdomainStrategy,
    PathStrategy,
    HeaderStrategy,
)

from tenancy_sdk.tier1_runtime.context import (
    SSRRequest,
    RenderContext,
    ensure_render_context,
)
from tenancy_sdk.tier1_runtime.middleware import TenancyASGIMiddleware

from tenancy_sdk.tier2_reliability.cache import TenantCache

from tenancy_sdk.tier3_platform.multi_tenancy import Tenant, Visibility, get_tenant, require_tenant
from tenancy_sdk.tier3_platform.extraction import extract_identifier
from tenancy_sdk.tier3_platform.visibility import filter_config_by_visibility, filter_public_config
from tenancy_sdk.tier3_platform.api_client import TenantFetcher, ResolutionResult
from tenancy_sdk.tier3_platform.resolver import TenantResolver, TenantResolution, tenant_from_settings
from tenancy_sdk.tier3_platform.cookies import session_cookie_name, xsrf_cookie_name
from tenancy_sdk.tier3_platform.merge import (
    ConfigMergeStage,
    default_merge_tenant_config,
    NotFound404,
    Redirect,
    Render,
    Custom,
)
from tenancy_sdk.tier3_platform.hooks import TenantRequestHooks, create_tenancy_hooks

__version__ = "0.1.0"
__all__ = [
    # logging
    "get_logger", "configure_logging", "bind_context", "clear_context",
    # errors
    "TenancyError", "ConfigurationError", "ValidationError",
    "ResolutionTransportError", "TenantNotFoundError", "TenantRedirect",
    "VisibilityMissingError",
    # config
    "get_config", "load_config", "TenancyConfig",
    "DomainStrategy", "SubdomainStrategy", "PathStrategy", "HeaderStrategy",
    # context
    "SSRRequest", "RenderContext", "ensure_render_context",
    # middleware
    "TenancyASGIMiddleware",
    # cache
    "TenantCache",
    # tenant model
    "Tenant", "Visibility", "get_tenant", "require_tenant",
    # extraction
    "extract_identifier",
    # visibility
    "filter_config_by_visibility", "filter_public_config",
    # backend
    "TenantFetcher", "ResolutionResult",
    # resolution
    "TenantResolver", "TenantResolution", "tenant_from_settings",
    # cookies
    "session_cookie_name", "xsrf_cookie_name",
    # merge
    "ConfigMergeStage", "default_merge_tenant_config",
    "NotFound404", "Redirect", "Render", "Custom",
    # hooks
    "TenantRequestHooks", "create_tenancy_hooks",
]
