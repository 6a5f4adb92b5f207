"""
Common response DTOs shared across endpoints.

ApiResponse     — success envelope {success, message?, data}
ErrorResponse   — error envelope produced by the AppError handler
HealthResponse  — GET /health
"""

from __future__ import annotations

from typing import Any, Optional

from pydantic import BaseModel, ConfigDict


class ApiResponse(BaseModel):
    """Success envelope wrapping every 2xx body."""

    model_config = ConfigDict(populate_by_name=True)

    success: bool = True
    message: Optional[str] = None
    data: Optional[Any] = None


class ErrorResponse(BaseModel):
    """Error JSON body produced by the AppError exception handler."""

    model_config = ConfigDict(populate_by_name=True)

    success: bool = False
    message: str
    data: None = None
    code: str
    field: Optional[str] = None
    details: Optional[Any] = None


class HealthResponse(BaseModel):
    """Response body for GET /health."""

    model_config = ConfigDict(populate_by_name=True)

    status: str
    checks: dict[str, str]


def envelope(data: Any = None, message: Optional[str] = None) -> dict:
    """Build a success envelope dict.

    Pydantic ``data`` is dumped by alias with None fields dropped, so
    optional keys such as ``otpCode`` only appear when set.
    """
    if isinstance(data, BaseModel):
        data = data.model_dump(mode="json", by_alias=True, exclude_none=True)
    body: dict = {"success": True, "data": data}
    if message is not None:
        body["message"] = message
    return body
