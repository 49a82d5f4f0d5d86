"""
tenancy_sdk.tier3_platform.visibility
───────────────────────────────────────
Filter tenant configuration by backend-declared visibility.

The visibility tree drives the walk, never the config tree: a config
field without a matching annotation is simply never visited, so fields
added on the backend stay private until someone annotates them.

    config     = {"app": {"url": "u", "key": "s"}, "frontend": {"url": "f"}}
    visibility = {"app": {"url": "public", "key": "private"},
                  "frontend": {"url": "public"}}
    filter_config_by_visibility(config, visibility, "public")
    # → {"app": {"url": "u"}, "frontend": {"url": "f"}}
"""
from __future__ import annotations

from typing import Any

from tenancy_sdk.tier0_core.errors import VisibilityMissingError
from tenancy_sdk.tier3_platform.multi_tenancy import Visibility


def filter_config_by_visibility(
    config: dict[str, Any],
    visibility: dict[str, Any] | None,
    min_visibility: Visibility | str = Visibility.PUBLIC,
) -> dict[str, Any]:
    """Return the subset of *config* whose annotated level is at least *min_visibility*."""
    minimum = Visibility.parse(min_visibility)
    return _filter(visibility or {}, config if isinstance(config, dict) else {}, minimum)


def _filter(
    visibility: dict[str, Any],
    config: dict[str, Any],
    minimum: Visibility,
) -> dict[str, Any]:
    filtered: dict[str, Any] = {}

    for key, label in visibility.items():
        if isinstance(label, dict):
            child = config.get(key)
            if not isinstance(child, dict):
                continue
            nested = _filter(label, child, minimum)
            if nested:
                filtered[key] = nested
        elif Visibility.parse(label).allows(minimum):
            filtered[key] = config.get(key)

    return filtered


def filter_public_config(
    config: dict[str, Any],
    visibility: dict[str, Any] | None,
) -> dict[str, Any]:
    """
    Return only the public fields of *config*.

    Raises VisibilityMissingError when no visibility tree is supplied:
    exposing configuration without explicit annotations is never allowed.
    """
    if not visibility:
        raise VisibilityMissingError()
    return filter_config_by_visibility(config, visibility, Visibility.PUBLIC)


__all__ = ["filter_config_by_visibility", "filter_public_config"]
