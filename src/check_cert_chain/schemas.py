# src/check_cert_chain/schemas.py

"""Pydantic request schemas for the web API."""

from typing import Any

from pydantic import BaseModel, Field, ValidationError, field_validator

from check_cert_chain.config import DEFAULT_PORT


class CheckRequest(BaseModel):
    domain: str = Field(..., min_length=1)
    port: int = DEFAULT_PORT

    @field_validator("domain", mode="before")
    @classmethod
    def strip_domain(cls, value: Any) -> Any:
        return value.strip() if isinstance(value, str) else value

    @field_validator("port", mode="before")
    @classmethod
    def reject_bool_port(cls, value: Any) -> Any:
        if isinstance(value, bool):
            raise ValueError("port must be an integer")
        return value


def describe_validation_error(error: ValidationError) -> str:
    """Maps a CheckRequest validation error to a single user-facing message."""
    fields = {str(item["loc"][0]) for item in error.errors() if item.get("loc")}
    if "domain" in fields:
        return "Domain is required"
    if "port" in fields:
        return "Port must be an integer between 1 and 65535"
    return "Invalid request body"
