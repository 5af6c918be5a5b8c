"""Shared Pydantic response/request models for the HealthTrack API.

Provides the error envelope, a camelCase base model matching the JSON the
browser client consumes, and small shared payloads.
"""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    """Base model serialised with camelCase keys; accepts either spelling on input."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class ErrorDetail(BaseModel):
    """Structured error payload."""

    code: str
    message: str
    details: dict | None = None


class ErrorResponse(BaseModel):
    """Standard error response envelope."""

    error: ErrorDetail


class MessageResponse(BaseModel):
    message: str
