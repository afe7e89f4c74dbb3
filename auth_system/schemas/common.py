"""Shared schema base and the uniform response envelope."""

from typing import Generic, TypeVar

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

T = TypeVar("T")


class ApiModel(BaseModel):
    """Base for API models: snake_case in Python, camelCase on the wire."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
    )


class Envelope(ApiModel, Generic[T]):
    """Success envelope: {success: true, message, data}."""

    success: bool = Field(default=True, description="Always true for 2xx responses")
    message: str = Field(..., description="Human-readable outcome")
    data: T | None = Field(default=None, description="Endpoint payload, if any")


class ErrorDetail(ApiModel):
    """One field-level validation problem."""

    field: str
    message: str


class ErrorResponse(ApiModel):
    """Error envelope: {success: false, message, errors?}."""

    success: bool = False
    message: str
    errors: list[ErrorDetail] | None = None
