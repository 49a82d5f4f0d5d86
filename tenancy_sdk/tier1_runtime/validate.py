"""
tenancy_sdk.tier1_runtime.validate
──────────────────────────────────────
Backend payload validation via Pydantic v2. Raises the package
ValidationError (not raw Pydantic errors) so the fetcher can fold it into
a single protocol-error channel.
"""
from __future__ import annotations

from typing import Any, Type, TypeVar

from pydantic import BaseModel, ValidationError as PydanticValidationError

from tenancy_sdk.tier0_core.errors import ValidationError

T = TypeVar("T", bound=BaseModel)


def validate_payload(model: Type[T], data: Any) -> T:
    """
    Validate raw data against a Pydantic model.

    Usage:
        tenant = validate_payload(Tenant, response.json()["data"])
    """
    try:
        return model.model_validate(data)
    except PydanticValidationError as exc:
        fields = {
            ".".join(str(loc) for loc in err["loc"]): err["msg"]
            for err in exc.errors()
        }
        raise ValidationError(
            user_message=f"{model.__name__} payload failed validation.",
            fields=fields,
        ) from exc


__all__ = ["validate_payload"]
