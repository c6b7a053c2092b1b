"""Shared response envelopes and validation helpers."""

from typing import Dict, Iterable, Optional

from pydantic import BaseModel, Field

# Location prefixes added by FastAPI request validation
_REQUEST_LOCATIONS = {"body", "query", "path", "header", "cookie"}


class BaseResponse(BaseModel):
    """Base response envelope"""
    success: bool = Field(
        ...,
        description="Whether the request succeeded"
    )
    message: Optional[str] = Field(
        None,
        description="Response message"
    )


class OperationResponse(BaseResponse):
    """Response for operations without a payload (e.g. delete)"""
    data: Optional[bool] = Field(
        None,
        description="Operation result"
    )


class HealthCheckResponse(BaseModel):
    """Health check response"""
    status: str = Field("healthy", description="Service status")
    service: str = Field("inventory-service", description="Service name")
    version: str = Field("1.0.0", description="Service version")


class APIInfoResponse(BaseModel):
    """API root response"""
    message: str = Field("Inventory service API", description="Welcome message")
    docs: str = Field("/docs", description="API documentation path")
    health: str = Field("/health", description="Health check path")


def field_errors(errors: Iterable[dict]) -> Dict[str, str]:
    """Flatten pydantic error dicts into ``{field: message}``.

    The first message wins when a field has several errors.
    """
    result: Dict[str, str] = {}
    for error in errors:
        loc = [str(part) for part in error.get("loc", ())]
        if loc and loc[0] in _REQUEST_LOCATIONS:
            loc = loc[1:]
        field = ".".join(loc) or "__root__"
        result.setdefault(field, error.get("msg", "Invalid value"))
    return result
