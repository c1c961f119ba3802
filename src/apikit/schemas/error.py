"""Error response schemas.

Every error a handler, middleware or fault handler reports is one of these items,
placed under the "errors" key of the response envelope (see schemas/payload.py):

    {"errors": [{"type": "...", "description": "...", "uid": "..."}]}

FieldError adds a machine-readable ``code`` and the dotted ``fieldName`` it refers to.
All keys are always serialized, with null for absent values.
"""

from enum import StrEnum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class ActionErrorType(StrEnum):
    """Closed set of error categories an API response can report."""

    BAD_REQUEST = "BAD_REQUEST"
    INSUFFICIENT_PRIVILEGES = "INSUFFICIENT_PRIVILEGES"
    NOT_ALLOWED = "NOT_ALLOWED"
    NOT_IMPLEMENTED = "NOT_IMPLEMENTED"
    RESOURCE_NOT_FOUND = "RESOURCE_NOT_FOUND"
    SERVER_ERROR = "SERVER_ERROR"
    UNAUTHENTICATED = "UNAUTHENTICATED"
    VALIDATION_ERROR = "VALIDATION_ERROR"
    SCHEMA_VALIDATION_ERROR = "SCHEMA_VALIDATION_ERROR"
    VERIFICATION_ERROR = "VERIFICATION_ERROR"


class Error(BaseModel):
    """Error not tied to a particular field."""

    model_config = ConfigDict(frozen=True)

    type: ActionErrorType
    description: str | None = None
    uid: str | None = None

    def serialize(self) -> dict[str, Any]:
        return self.model_dump(mode="json", by_alias=True)


class FieldError(BaseModel):
    """Error tied to a dotted path inside the validated document."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    type: ActionErrorType
    code: str
    field_name: str = Field(alias="fieldName", min_length=1)
    description: str | None = None
    uid: str | None = None

    def serialize(self) -> dict[str, Any]:
        return self.model_dump(mode="json", by_alias=True)


class ActionWarning(BaseModel):
    """Non-fatal notice returned alongside data or errors."""

    model_config = ConfigDict(frozen=True)

    type: str
    description: str | None = None
    uid: str | None = None

    def serialize(self) -> dict[str, Any]:
        return self.model_dump(mode="json")


ErrorItem = Error | FieldError
