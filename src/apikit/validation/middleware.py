"""Validate request bodies and query parameters against JSON Schema files.

For every request, the middleware finds the endpoint of the matched route and
evaluates the directives registered for it (see directives.py) in order:

1. Extract the data: the JSON body (empty body → ``{}``) or the query string
   as an object (empty → ``{}``).
2. Resolve ``<schema_folder>/RequestBody/<Name>.json`` or
   ``<schema_folder>/QueryParameters/<Name>.json``.
3. Validate. The first failing directive answers 400 with field errors and
   the remaining directives are not evaluated.

When every directive passes, the request continues to the endpoint untouched.
Missing or broken schema files are not the client's fault: SchemaError
propagates to the fault handler and becomes a 500.
"""

import json
import re
from collections.abc import Awaitable, Callable, Mapping, Sequence
from pathlib import Path
from typing import Any

from starlette.concurrency import run_in_threadpool
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import Response
from starlette.routing import Match
from starlette.types import ASGIApp

from apikit.logging import get_logger
from apikit.responses import respond
from apikit.schemas.error import ActionErrorType, Error, ErrorItem, FieldError
from apikit.schemas.payload import Payload
from apikit.validation.directives import DirectiveRegistry, ValidationDirective, ValidationTarget
from apikit.validation.resolver import SchemaResolver
from apikit.validation.validator import REQUIRED_KEYWORD, SchemaValidator, ValidationIssue, ValidationResult

logger = get_logger(__name__)

ROOT_PATH = ""

# First parenthesized group, e.g. "The required properties (email, name) are missing."
_PARENTHESIZED = re.compile(r"\((.*?)\)")
_INNER_UPPERCASE = re.compile(r"(?<=[^_])(?=[A-Z])")


def generate_code(field_name: str, keyword: str) -> str:
    """Build a machine-readable error code from a field path and schema keyword.

    >>> generate_code("userName", "minLength")
    'USER_NAME_MINLENGTH'
    >>> generate_code("user.age", "type")
    'USER_AGE_TYPE'
    """
    snake = _INNER_UPPERCASE.sub("_", field_name.replace(".", "_"))
    return f"{snake}_{keyword}".upper()


def extract_field_names(message: str) -> list[str]:
    """Return the comma-separated names inside the first parenthesized group."""
    match = _PARENTHESIZED.search(message)
    if match is None or not match.group(1):
        return []
    return match.group(1).split(", ")


def _root_errors(issue: ValidationIssue) -> list[ErrorItem]:
    names: Sequence[str] = []
    if issue.keyword == REQUIRED_KEYWORD:
        names = [name for name in issue.properties or extract_field_names(issue.message) if name]

    if not names:
        return [Error(type=ActionErrorType.VALIDATION_ERROR, description=issue.message)]

    return [
        FieldError(
            type=ActionErrorType.VALIDATION_ERROR,
            field_name=name,
            code=generate_code(name, issue.keyword),
            description=f"The required property (`{name}`) is missing.",
        )
        for name in names
    ]


def build_validation_errors(errors: Mapping[str, Sequence[ValidationIssue]]) -> list[ErrorItem]:
    """Translate path-keyed validator issues into API error items.

    Root ``required`` issues are split into one FieldError per missing property;
    other root issues become plain Errors; every non-root issue becomes one
    FieldError addressed by its path.
    """
    items: list[ErrorItem] = []
    for path, issues in errors.items():
        for issue in issues:
            if path == ROOT_PATH:
                items.extend(_root_errors(issue))
                continue
            items.append(
                FieldError(
                    type=ActionErrorType.VALIDATION_ERROR,
                    field_name=path,
                    code=generate_code(path, issue.keyword),
                    description=issue.message,
                )
            )
    return items


def _matched_endpoint(request: Request) -> Callable[..., Any] | None:
    for route in request.app.router.routes:
        match, child_scope = route.matches(request.scope)
        if match == Match.FULL:
            return child_scope.get("endpoint")
    return None


def _query_data(request: Request) -> dict[str, Any]:
    data: dict[str, Any] = {}
    for key in request.query_params.keys():
        values = request.query_params.getlist(key)
        data[key] = values if len(values) > 1 else values[0]
    return data


class SchemaValidationMiddleware(BaseHTTPMiddleware):
    """Reject requests whose body or query does not match the endpoint's schemas.

    Usage:
        app.add_middleware(
            SchemaValidationMiddleware,
            directives=directives,
            schema_folder=settings.schema_folder,
            prefix=settings.schema_prefix,
        )
    """

    def __init__(
        self,
        app: ASGIApp,
        directives: DirectiveRegistry,
        schema_folder: Path | str,
        prefix: str | None = None,
        resolver: SchemaResolver | None = None,
        validator: SchemaValidator | None = None,
    ) -> None:
        super().__init__(app)
        self.directives = directives
        self.resolver = resolver or SchemaResolver(schema_folder)
        self.validator = validator or SchemaValidator(self.resolver, prefix)

    async def _extract_data(self, target: ValidationTarget, request: Request) -> Any:
        if target is ValidationTarget.QUERY_PARAMETERS:
            return _query_data(request)

        body = await request.body()
        if not body.strip():
            return {}
        return json.loads(body)

    def _validate(self, directive: ValidationDirective, data: Any) -> ValidationResult:
        # Blocking: reads the schema file on every call
        schema = self.resolver.resolve(directive.qualified_schema_name)
        return self.validator.validate(data, schema)

    async def dispatch(
        self,
        request: Request,
        call_next: Callable[[Request], Awaitable[Response]],
    ) -> Response:
        for directive in self.directives.directives_for(_matched_endpoint(request)):
            try:
                data = await self._extract_data(directive.target, request)
            except ValueError:
                logger.info("request_body_not_json", path=request.url.path)
                error = Error(type=ActionErrorType.BAD_REQUEST, description="The request body is not valid JSON.")
                return respond(Payload(status_code=400, errors=error))

            result = await run_in_threadpool(self._validate, directive, data)
            if not result.valid:
                logger.info(
                    "schema_validation_failed",
                    schema=directive.qualified_schema_name,
                    paths=list(result.errors),
                    path=request.url.path,
                )
                return respond(Payload(status_code=400, errors=build_validation_errors(result.errors)))

        return await call_next(request)
