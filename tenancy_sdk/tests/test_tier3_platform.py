"""Tests for tier3_platform building blocks: model, extraction, visibility, fetcher, cookies."""
from __future__ import annotations

import httpx
import pytest

from tenancy_sdk.tier0_core.config import (
    DomainStrategy,
    HeaderStrategy,
    PathStrategy,
    SubdomainStrategy,
)
from tenancy_sdk.tier0_core.errors import (
    ConfigurationError,
    ResolutionTransportError,
    TenantNotFoundError,
    VisibilityMissingError,
)
from tenancy_sdk.tier1_runtime.context import SSRRequest
from tenancy_sdk.tier3_platform.api_client import TenantFetcher
from tenancy_sdk.tier3_platform.cookies import session_cookie_name, xsrf_cookie_name
from tenancy_sdk.tier3_platform.extraction import extract_identifier
from tenancy_sdk.tier3_platform.multi_tenancy import (
    Tenant,
    Visibility,
    get_tenant,
    require_tenant,
    set_tenant,
)
from tenancy_sdk.tier3_platform.visibility import (
    filter_config_by_visibility,
    filter_public_config,
)


# ── model ──────────────────────────────────────────────────────────────────

class TestTenantModel:
    def test_visibility_split(self, make_tenant):
        tenant = make_tenant()
        assert tenant.visibility["frontend"] == {"url": "public"}
        assert "__visibility" not in tenant.config_without_visibility()
        assert "__visibility" in tenant.config

    def test_embedded_parent(self, tenant_data):
        tenant = Tenant.model_validate(
            tenant_data(parent_id="t_root", parent=tenant_data(id="t_root", identifier="root"))
        )
        assert tenant.parent.id == "t_root"
        assert tenant.parent.parent is None

    def test_numeric_ids_become_strings(self, tenant_data):
        tenant = Tenant.model_validate(tenant_data(id=42, parent_id=7))
        assert tenant.id == "42"
        assert tenant.parent_id == "7"
        assert tenant.cache_key == "acme.example.com"

    def test_null_config_becomes_empty(self, tenant_data):
        tenant = Tenant.model_validate(tenant_data(config=None))
        assert tenant.config == {}
        assert tenant.visibility == {}

    def test_is_frozen(self, make_tenant):
        tenant = make_tenant()
        with pytest.raises(Exception):
            tenant.name = "Other"  # type: ignore[misc]

    def test_visibility_parse_defaults_to_private(self):
        assert Visibility.parse("PUBLIC") is Visibility.PUBLIC
        assert Visibility.parse("secret") is Visibility.PRIVATE
        assert Visibility.parse(None) is Visibility.PRIVATE
        assert Visibility.PUBLIC.allows(Visibility.PROTECTED)
        assert not Visibility.PROTECTED.allows(Visibility.PUBLIC)

    def test_current_tenant(self, make_tenant):
        assert get_tenant() is None
        with pytest.raises(TenantNotFoundError):
            require_tenant()
        tenant = make_tenant()
        set_tenant(tenant)
        assert require_tenant() is tenant


# ── extraction ─────────────────────────────────────────────────────────────

class TestExtraction:
    def test_domain_prefers_forwarded_host(self):
        request = SSRRequest(headers={
            "X-Forwarded-Host": "acme.example.com:443",
            "Host": "internal:8080",
        })
        assert extract_identifier(request, DomainStrategy()) == "acme.example.com"

    def test_domain_falls_back_to_host_then_hostname(self):
        assert extract_identifier(
            SSRRequest(headers={"Host": "acme.example.com:3000"}), DomainStrategy()
        ) == "acme.example.com"
        assert extract_identifier(
            SSRRequest(hostname="fallback.example.com"), DomainStrategy()
        ) == "fallback.example.com"

    def test_domain_absent(self):
        assert extract_identifier(SSRRequest(), DomainStrategy()) is None

    @pytest.mark.parametrize(
        "host, level, expected",
        [
            ("a.b.com", 0, None),
            ("x.a.b.com", 0, "x"),
            ("x.y.a.com", 1, "y"),
            ("x.a.b.com", 2, None),
            ("x.a.b.com", -1, None),
            ("localhost", 0, None),
        ],
    )
    def test_subdomain(self, host, level, expected):
        request = SSRRequest(headers={"host": host})
        assert extract_identifier(request, SubdomainStrategy(level=level)) == expected

    @pytest.mark.parametrize(
        "path, index, expected",
        [
            ("/t/dashboard", 1, "dashboard"),
            ("/t", 1, None),
            ("//acme///page", 0, "acme"),
            ("/", 0, None),
            ("/acme", -1, None),
        ],
    )
    def test_path(self, path, index, expected):
        assert extract_identifier(SSRRequest(path=path), PathStrategy(index=index)) == expected

    def test_header(self):
        request = SSRRequest(headers={"X-Tenant-ID": "acme"})
        assert extract_identifier(request, HeaderStrategy("x-tenant-id")) == "acme"
        assert extract_identifier(request, HeaderStrategy("X-Org")) is None

    def test_empty_header_is_absent(self):
        request = SSRRequest(headers={"X-Tenant-ID": ""})
        assert extract_identifier(request, HeaderStrategy()) is None


# ── visibility ─────────────────────────────────────────────────────────────

class TestVisibilityFilter:
    CONFIG = {"app": {"url": "u", "key": "s"}, "frontend": {"url": "f"}}
    VISIBILITY = {"app": {"url": "public", "key": "private"}, "frontend": {"url": "public"}}

    def test_public_filter(self):
        assert filter_config_by_visibility(self.CONFIG, self.VISIBILITY, "public") == {
            "app": {"url": "u"},
            "frontend": {"url": "f"},
        }

    def test_lower_minimum_includes_more(self):
        visibility = {"app": {"url": "public", "key": "protected"}}
        assert filter_config_by_visibility(self.CONFIG, visibility, Visibility.PROTECTED) == {
            "app": {"url": "u", "key": "s"},
        }

    def test_unannotated_fields_never_leak(self):
        config = {"app": {"url": "u"}, "billing": {"stripe_key": "sk_live"}}
        assert filter_config_by_visibility(config, {"app": {"url": "public"}}) == {
            "app": {"url": "u"},
        }

    def test_annotated_but_missing_value_is_null(self):
        assert filter_config_by_visibility({}, {"theme": "public"}) == {"theme": None}

    def test_nested_branch_missing_in_config_is_omitted(self):
        visibility = {"branding": {"logo": "public"}}
        assert filter_config_by_visibility({"branding": "flat"}, visibility) == {}
        assert filter_config_by_visibility({}, visibility) == {}

    def test_empty_nested_result_is_dropped(self):
        config = {"branding": {"logo": "l"}}
        visibility = {"branding": {"logo": "protected"}}
        assert filter_config_by_visibility(config, visibility, "public") == {}

    def test_unknown_label_is_private(self):
        assert filter_config_by_visibility({"a": 1}, {"a": "everyone"}, "private") == {"a": 1}
        assert filter_config_by_visibility({"a": 1}, {"a": "everyone"}, "protected") == {}

    def test_label_case_is_ignored(self):
        assert filter_config_by_visibility({"a": 1}, {"a": "PUBLIC"}) == {"a": 1}

    @pytest.mark.parametrize("visibility", [None, {}])
    def test_public_filter_requires_visibility(self, visibility):
        with pytest.raises(VisibilityMissingError):
            filter_public_config({"app": {"url": "u"}}, visibility)

    def test_public_filter_with_visibility(self):
        assert filter_public_config(self.CONFIG, self.VISIBILITY)["app"] == {"url": "u"}


# ── fetcher ────────────────────────────────────────────────────────────────

class TestFetcher:
    @pytest.mark.asyncio
    async def test_gateway_url_and_override_header(self, tenant_data, mock_client):
        client = mock_client(lambda request: httpx.Response(200, json={"data": tenant_data()}))
        fetcher = TenantFetcher("gateway", "tenant-info")

        result = await fetcher.resolve_by_identifier("acme.example.com", client)

        request = client.seen[0]
        assert str(request.url) == "http://gateway.internal/tenant-info/protected"
        assert request.headers["X-Tenant-Override"] == "acme.example.com"
        assert result.ok
        assert result.tenant.id == "t_acme"

    @pytest.mark.asyncio
    async def test_direct_url_uses_identifier_host(self, tenant_data, mock_client):
        client = mock_client(lambda request: httpx.Response(200, json=tenant_data()), base_url="")
        fetcher = TenantFetcher("direct", "tenant-info")

        result = await fetcher.resolve_by_identifier("acme.example.com", client)

        request = client.seen[0]
        assert str(request.url) == "https://api.acme.example.com/tenant-info/protected"
        assert request.headers["X-Tenant-Override"] == "acme.example.com"
        assert result.tenant.identifier == "acme.example.com"

    @pytest.mark.asyncio
    async def test_null_data_is_not_found_without_error(self, mock_client):
        client = mock_client(lambda request: httpx.Response(200, json={"data": None}))
        result = await TenantFetcher().resolve_by_identifier("nobody", client)
        assert result.tenant is None
        assert result.error is None

    @pytest.mark.asyncio
    async def test_404_is_not_found_without_error(self, mock_client):
        client = mock_client(lambda request: httpx.Response(404, json={"message": "no"}))
        result = await TenantFetcher().resolve_by_identifier("nobody", client)
        assert result.tenant is None
        assert result.error is None

    @pytest.mark.asyncio
    async def test_server_error_is_returned_not_raised(self, mock_client):
        client = mock_client(lambda request: httpx.Response(500))
        result = await TenantFetcher().resolve_by_identifier("acme", client)
        assert result.tenant is None
        assert isinstance(result.error, ResolutionTransportError)
        assert result.url == "/tenant-info/protected"

    @pytest.mark.asyncio
    async def test_transport_failure_is_returned(self, mock_client):
        def handler(request):
            raise httpx.ConnectError("connection refused", request=request)

        result = await TenantFetcher().resolve_by_identifier("acme", mock_client(handler))
        assert isinstance(result.error, ResolutionTransportError)
        assert "connection refused" in result.error.detail

    @pytest.mark.asyncio
    async def test_invalid_payload_is_protocol_error(self, mock_client):
        client = mock_client(lambda request: httpx.Response(200, json={"data": {"name": "no id"}}))
        result = await TenantFetcher().resolve_by_identifier("acme", client)
        assert isinstance(result.error, ResolutionTransportError)

    @pytest.mark.asyncio
    async def test_non_json_body_is_protocol_error(self, mock_client):
        client = mock_client(lambda request: httpx.Response(200, text="<html>"))
        result = await TenantFetcher().resolve_by_identifier("acme", client)
        assert isinstance(result.error, ResolutionTransportError)

    @pytest.mark.asyncio
    async def test_bulk_fetch(self, tenant_data, mock_client):
        client = mock_client(lambda request: httpx.Response(200, json={"data": [tenant_data()]}))
        tenants = await TenantFetcher("gateway", "tenants").bulk_fetch(client)
        assert client.seen[0].url.path == "/tenants/cache"
        assert [t.id for t in tenants] == ["t_acme"]

    @pytest.mark.asyncio
    async def test_bulk_fetch_skips_invalid_records(self, tenant_data, mock_client):
        body = [tenant_data(), {"name": "no id"}, "not a record"]
        client = mock_client(lambda request: httpx.Response(200, json=body))
        tenants = await TenantFetcher().bulk_fetch(client)
        assert [t.id for t in tenants] == ["t_acme"]

    @pytest.mark.asyncio
    async def test_bulk_fetch_rejects_object(self, tenant_data, mock_client):
        client = mock_client(lambda request: httpx.Response(200, json=tenant_data()))
        with pytest.raises(ResolutionTransportError):
            await TenantFetcher().bulk_fetch(client)

    @pytest.mark.asyncio
    async def test_bulk_fetch_requires_gateway(self, mock_client):
        client = mock_client(lambda request: httpx.Response(200, json=[]))
        with pytest.raises(ConfigurationError):
            await TenantFetcher("direct").bulk_fetch(client)
        assert client.seen == []


# ── cookies ────────────────────────────────────────────────────────────────

class TestCookies:
    def test_default_pattern_uses_tenant_id(self, make_tenant):
        tenant = make_tenant(id="01K791XPER5WS4YBR34E9WDYF5")
        assert session_cookie_name(tenant) == "tenant_01K791XPER5WS4YBR34E9WDYF5_session"
        assert xsrf_cookie_name(tenant) == "tenant_01K791XPER5WS4YBR34E9WDYF5_xsrf"

    def test_custom_names_win(self, make_tenant):
        tenant = make_tenant(config={
            "session": {"name": "acme_session"},
            "xsrf": {"name": "acme_xsrf"},
        })
        assert session_cookie_name(tenant) == "acme_session"
        assert xsrf_cookie_name(tenant) == "acme_xsrf"

    def test_global_defaults_without_tenant(self):
        assert session_cookie_name(None) == "laravel_session"
        assert xsrf_cookie_name(None) == "XSRF-TOKEN"
