"""Tests for JSON Schema request validation: error translation and the middleware."""

from pathlib import Path
from unittest.mock import Mock, call

import pytest
from fastapi import APIRouter, FastAPI
from httpx import AsyncClient

from apikit.handlers import register_error_handlers
from apikit.schemas.error import ActionErrorType, Error, FieldError
from apikit.validation.directives import DirectiveRegistry, ValidationDirective, ValidationTarget
from apikit.validation.middleware import (
    SchemaValidationMiddleware,
    build_validation_errors,
    extract_field_names,
    generate_code,
)
from apikit.validation.resolver import SchemaResolver
from apikit.validation.validator import SchemaValidator, ValidationIssue
from tests.factories import make_app, make_client, make_router, make_settings
from tests.seeds import SCHEMA_PREFIX, write_schema

VALID_USER = {"email": "ada@example.com", "name": "Ada"}


# ---------------------------------------------------------------------------
# 1. Code generation and message parsing
# ---------------------------------------------------------------------------
@pytest.mark.parametrize(
    "field_name, keyword, expected",
    [
        ("userName", "minLength", "USER_NAME_MINLENGTH"),
        ("id", "required", "ID_REQUIRED"),
        ("email", "required", "EMAIL_REQUIRED"),
        ("user.age", "type", "USER_AGE_TYPE"),
        ("user.firstName", "type", "USER_FIRST_NAME_TYPE"),
        ("tags.1", "type", "TAGS_1_TYPE"),
    ],
)
def test_generate_code(field_name: str, keyword: str, expected: str) -> None:
    assert generate_code(field_name, keyword) == expected


def test_extract_field_names() -> None:
    assert extract_field_names("The required properties (email, name) are missing.") == ["email", "name"]


def test_extract_field_names_uses_first_group() -> None:
    assert extract_field_names("Missing (email) and (name)") == ["email"]


@pytest.mark.parametrize("message", ["No parentheses here", "Empty () group"])
def test_extract_field_names_without_list(message: str) -> None:
    assert extract_field_names(message) == []


# ---------------------------------------------------------------------------
# 2. Translating validator issues into error items
# ---------------------------------------------------------------------------
def test_root_required_is_split_per_property() -> None:
    issue = ValidationIssue("required", "The required properties (email, name) are missing.", ("email", "name"))

    errors = build_validation_errors({"": (issue,)})

    assert errors == [
        FieldError(
            type=ActionErrorType.VALIDATION_ERROR,
            field_name="email",
            code="EMAIL_REQUIRED",
            description="The required property (`email`) is missing.",
        ),
        FieldError(
            type=ActionErrorType.VALIDATION_ERROR,
            field_name="name",
            code="NAME_REQUIRED",
            description="The required property (`name`) is missing.",
        ),
    ]


def test_root_required_falls_back_to_message_names() -> None:
    issue = ValidationIssue("required", "The required properties (firstName) are missing.")

    (error,) = build_validation_errors({"": (issue,)})

    assert isinstance(error, FieldError)
    assert error.code == "FIRST_NAME_REQUIRED"


def test_root_required_without_names_is_plain_error() -> None:
    issue = ValidationIssue("required", "Something is missing")

    errors = build_validation_errors({"": (issue,)})

    assert errors == [Error(type=ActionErrorType.VALIDATION_ERROR, description="Something is missing")]


def test_root_required_skips_empty_names() -> None:
    issue = ValidationIssue("required", "The required properties (, email) are missing.", ("", "email"))

    (error,) = build_validation_errors({"": (issue,)})

    assert isinstance(error, FieldError)
    assert error.field_name == "email"


def test_root_required_with_only_empty_name_is_plain_error() -> None:
    issue = ValidationIssue("required", "The required properties () are missing.", ("",))

    errors = build_validation_errors({"": (issue,)})

    assert errors == [Error(type=ActionErrorType.VALIDATION_ERROR, description=issue.message)]


def test_root_other_keyword_is_plain_error() -> None:
    issue = ValidationIssue("additionalProperties", "Additional properties are not allowed ('x' was unexpected)")

    (error,) = build_validation_errors({"": (issue,)})

    assert isinstance(error, Error)
    assert error.description == issue.message


def test_nested_issue_is_field_error() -> None:
    issue = ValidationIssue("type", "'old' is not of type 'integer'")

    errors = build_validation_errors({"user.age": (issue,)})

    assert errors == [
        FieldError(
            type=ActionErrorType.VALIDATION_ERROR,
            field_name="user.age",
            code="USER_AGE_TYPE",
            description="'old' is not of type 'integer'",
        )
    ]


def test_one_field_error_per_keyword() -> None:
    issues = (ValidationIssue("minLength", "too short"), ValidationIssue("pattern", "bad pattern"))

    errors = build_validation_errors({"userName": issues})

    assert [error.code for error in errors] == ["USER_NAME_MINLENGTH", "USER_NAME_PATTERN"]  # type: ignore[union-attr]


# ---------------------------------------------------------------------------
# 3. Request body validation
# ---------------------------------------------------------------------------
@pytest.mark.asyncio
async def test_valid_body_reaches_handler(client: AsyncClient) -> None:
    resp = await client.post("/users", json=VALID_USER)

    assert resp.status_code == 201
    assert resp.json() == {"data": VALID_USER}


@pytest.mark.asyncio
async def test_missing_required_fields(client: AsyncClient) -> None:
    resp = await client.post("/users", json={"age": 30})

    assert resp.status_code == 400
    assert resp.headers["content-type"] == "application/json"
    body = resp.json()
    assert "data" not in body
    assert body["errors"] == [
        {
            "type": "VALIDATION_ERROR",
            "code": "EMAIL_REQUIRED",
            "fieldName": "email",
            "description": "The required property (`email`) is missing.",
            "uid": None,
        },
        {
            "type": "VALIDATION_ERROR",
            "code": "NAME_REQUIRED",
            "fieldName": "name",
            "description": "The required property (`name`) is missing.",
            "uid": None,
        },
    ]


@pytest.mark.asyncio
async def test_empty_required_name_is_still_a_bad_request(client: AsyncClient, schema_folder: Path) -> None:
    write_schema(schema_folder, "RequestBody/CreateUser", {"type": "object", "required": ["", "email"]})

    resp = await client.post("/users", json={})

    assert resp.status_code == 400
    assert [error["fieldName"] for error in resp.json()["errors"]] == ["email"]


@pytest.mark.asyncio
async def test_empty_body_is_validated_as_empty_object(client: AsyncClient) -> None:
    resp = await client.post("/users", content=b"")

    assert resp.status_code == 400
    assert [error["code"] for error in resp.json()["errors"]] == ["EMAIL_REQUIRED", "NAME_REQUIRED"]


@pytest.mark.asyncio
async def test_nested_field_error(client: AsyncClient) -> None:
    resp = await client.post("/users", json={**VALID_USER, "user": {"age": "old"}})

    assert resp.status_code == 400
    (error,) = resp.json()["errors"]
    assert error["fieldName"] == "user.age"
    assert error["code"] == "USER_AGE_TYPE"
    assert error["type"] == "VALIDATION_ERROR"


@pytest.mark.asyncio
async def test_camel_case_field_code(client: AsyncClient) -> None:
    resp = await client.post("/users", json={**VALID_USER, "userName": "x"})

    (error,) = resp.json()["errors"]
    assert error["code"] == "USER_NAME_MINLENGTH"


@pytest.mark.asyncio
async def test_malformed_json_body(client: AsyncClient) -> None:
    resp = await client.post("/users", content=b"{not json", headers={"Content-Type": "application/json"})

    assert resp.status_code == 400
    assert resp.json() == {
        "errors": [{"type": "BAD_REQUEST", "description": "The request body is not valid JSON.", "uid": None}]
    }


@pytest.mark.asyncio
async def test_ref_errors_are_addressed_by_path(client: AsyncClient) -> None:
    resp = await client.post("/orders", json={"address": {"street": "Main St"}})

    assert resp.status_code == 400
    (error,) = resp.json()["errors"]
    assert error["fieldName"] == "address"
    assert error["code"] == "ADDRESS_REQUIRED"
    assert error["description"] == "The required properties (city) are missing."


@pytest.mark.asyncio
async def test_trailing_slash_is_still_validated(client: AsyncClient) -> None:
    resp = await client.post("/users/", json={})

    assert resp.status_code == 400


@pytest.mark.asyncio
async def test_endpoint_without_directives_is_untouched(client: AsyncClient) -> None:
    resp = await client.post("/echo", content=b"anything goes")

    assert resp.status_code == 200
    assert resp.json() == {"data": {"body": "anything goes"}}


# ---------------------------------------------------------------------------
# 4. Query parameter validation
# ---------------------------------------------------------------------------
@pytest.mark.asyncio
async def test_valid_query(client: AsyncClient) -> None:
    resp = await client.get("/users", params={"limit": "10", "sort": "name"})

    assert resp.status_code == 200
    assert resp.json() == {"data": {"query": {"limit": "10", "sort": "name"}}}


@pytest.mark.asyncio
async def test_empty_query_is_valid(client: AsyncClient) -> None:
    resp = await client.get("/users")

    assert resp.status_code == 200


@pytest.mark.asyncio
async def test_invalid_query_value(client: AsyncClient) -> None:
    resp = await client.get("/users", params={"limit": "ten"})

    assert resp.status_code == 400
    (error,) = resp.json()["errors"]
    assert error["fieldName"] == "limit"
    assert error["code"] == "LIMIT_PATTERN"


@pytest.mark.asyncio
async def test_repeated_query_key_is_a_list(client: AsyncClient) -> None:
    resp = await client.get("/users?sort=name&sort=email")

    errors = resp.json()["errors"]
    assert {error["fieldName"] for error in errors} == {"sort"}
    assert [error["code"] for error in errors] == ["SORT_TYPE", "SORT_ENUM"]


@pytest.mark.asyncio
async def test_unknown_query_key_is_plain_error(client: AsyncClient) -> None:
    resp = await client.get("/users", params={"page": "2"})

    assert resp.status_code == 400
    (error,) = resp.json()["errors"]
    assert error["type"] == "VALIDATION_ERROR"
    assert "fieldName" not in error
    assert "page" in error["description"]


# ---------------------------------------------------------------------------
# 5. Directive ordering
# ---------------------------------------------------------------------------
def _spied_app(schema_folder: Path) -> tuple[FastAPI, Mock, Mock]:
    resolver = Mock(wraps=SchemaResolver(schema_folder))
    validator = Mock(wraps=SchemaValidator(SchemaResolver(schema_folder), SCHEMA_PREFIX))
    directives = DirectiveRegistry()
    router: APIRouter = make_router(directives)

    app = FastAPI()
    register_error_handlers(app, make_settings(schema_folder))
    app.add_middleware(
        SchemaValidationMiddleware,
        directives=directives,
        schema_folder=schema_folder,
        resolver=resolver,
        validator=validator,
    )
    app.include_router(router)
    return app, resolver, validator


@pytest.mark.asyncio
async def test_first_failing_directive_stops_evaluation(schema_folder: Path) -> None:
    app, resolver, validator = _spied_app(schema_folder)

    async with make_client(app) as client:
        resp = await client.post("/imports", params={"limit": "ten"}, json={})

    assert resp.status_code == 400
    assert [error["fieldName"] for error in resp.json()["errors"]] == ["limit"]
    assert resolver.resolve.call_args_list == [call("QueryParameters/ListUsers")]
    assert validator.validate.call_count == 1


@pytest.mark.asyncio
async def test_directives_run_in_declaration_order(schema_folder: Path) -> None:
    app, resolver, validator = _spied_app(schema_folder)

    async with make_client(app) as client:
        resp = await client.post("/imports", params={"limit": "10"}, json={})

    assert resp.status_code == 400
    assert [error["code"] for error in resp.json()["errors"]] == ["EMAIL_REQUIRED", "NAME_REQUIRED"]
    assert resolver.resolve.call_args_list == [call("QueryParameters/ListUsers"), call("RequestBody/CreateUser")]
    assert validator.validate.call_count == 2


@pytest.mark.asyncio
async def test_all_directives_pass(schema_folder: Path) -> None:
    app, _, validator = _spied_app(schema_folder)

    async with make_client(app) as client:
        resp = await client.post("/imports", params={"limit": "10"}, json=VALID_USER)

    assert resp.status_code == 200
    assert resp.json() == {"data": {"imported": True}}
    assert validator.validate.call_count == 2


# ---------------------------------------------------------------------------
# 6. Schema configuration failures are server faults
# ---------------------------------------------------------------------------
@pytest.mark.asyncio
async def test_missing_schema_is_server_error(client: AsyncClient) -> None:
    resp = await client.post("/missing", json={})

    assert resp.status_code == 500
    (error,) = resp.json()["errors"]
    assert error["type"] == "SERVER_ERROR"
    assert error["description"] == "An internal error has occurred while processing your request."
    assert error["uid"]


@pytest.mark.asyncio
async def test_broken_schema_is_server_error(client: AsyncClient) -> None:
    resp = await client.post("/broken", json={})

    assert resp.status_code == 500
    assert resp.json()["errors"][0]["type"] == "SERVER_ERROR"


@pytest.mark.asyncio
async def test_schema_error_details_when_enabled(schema_folder: Path) -> None:
    app = make_app(schema_folder, display_error_details=True)

    async with make_client(app) as client:
        resp = await client.post("/missing", json={})

    assert resp.status_code == 500
    assert resp.json()["errors"][0]["description"] == "JSON schema does not exist. (`RequestBody/Missing`)"
