"""Validation directives: which schema validates which part of a request.

Directives are registered against route endpoints at startup, then looked up by
SchemaValidationMiddleware for each request::

    directives = DirectiveRegistry()

    @router.post("/users")
    @directives.validates(
        ValidationDirective(ValidationTarget.REQUEST_BODY, "CreateUser"),
        ValidationDirective(ValidationTarget.QUERY_PARAMETERS, "CreateUserQuery"),
    )
    async def create_user(...): ...
"""

from collections.abc import Callable
from dataclasses import dataclass
from enum import StrEnum
from typing import Any


class ValidationTarget(StrEnum):
    REQUEST_BODY = "requestBody"
    QUERY_PARAMETERS = "queryParameters"

    @property
    def folder_prefix(self) -> str:
        """Sub-folder of the schema folder holding schemas for this target."""
        return _FOLDER_PREFIXES[self]


_FOLDER_PREFIXES = {
    ValidationTarget.REQUEST_BODY: "RequestBody/",
    ValidationTarget.QUERY_PARAMETERS: "QueryParameters/",
}


@dataclass(frozen=True)
class ValidationDirective:
    target: ValidationTarget
    schema_name: str

    @property
    def qualified_schema_name(self) -> str:
        """Schema name as passed to the resolver, e.g. ``RequestBody/CreateUser``."""
        return f"{self.target.folder_prefix}{self.schema_name}"


class DirectiveRegistry:
    """Ordered validation directives per endpoint."""

    def __init__(self) -> None:
        self._directives: dict[Callable[..., Any], list[ValidationDirective]] = {}

    def register(self, endpoint: Callable[..., Any], *directives: ValidationDirective) -> None:
        self._directives.setdefault(endpoint, []).extend(directives)

    def validates[F: Callable[..., Any]](self, *directives: ValidationDirective) -> Callable[[F], F]:
        def decorator(endpoint: F) -> F:
            self.register(endpoint, *directives)
            return endpoint

        return decorator

    def directives_for(self, endpoint: Callable[..., Any] | None) -> tuple[ValidationDirective, ...]:
        if endpoint is None:
            return ()
        return tuple(self._directives.get(endpoint, ()))
