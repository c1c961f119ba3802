"""Validate decoded request data against a JSON Schema (draft-07).

Evaluation is delegated to jsonschema. This module only shapes the engine's
errors into a path-keyed result:

    ValidationResult(valid=False, errors={
        "": (ValidationIssue("required", "The required properties (email, name) are missing.",
                             ("email", "name")),),
        "user.age": (ValidationIssue("type", "'x' is not of type 'integer'"),),
    })

Paths are dot-joined data paths, "" being the document root. ``validate`` returns
a fresh result each call and keeps no per-call state, so one validator can serve
concurrent requests.
"""

from collections import Counter
from collections.abc import Iterable, Iterator, Mapping
from dataclasses import dataclass, field
from typing import Any

from jsonschema import Draft7Validator
from jsonschema.exceptions import ValidationError
from referencing import Registry, Resource
from referencing.exceptions import NoSuchResource
from referencing.jsonschema import DRAFT7

from apikit.validation.resolver import SCHEMA_SUFFIX, SchemaResolver

# Distinct issues reported per call; a merged `required` issue counts once
MAX_ERRORS = 5

REQUIRED_KEYWORD = "required"
REQUIRED_MESSAGE = "The required properties ({names}) are missing."


@dataclass(frozen=True)
class ValidationIssue:
    """One failing schema keyword at one data path.

    ``properties`` is only filled for ``required``: the missing property names.
    """

    keyword: str
    message: str
    properties: tuple[str, ...] = ()


@dataclass(frozen=True)
class ValidationResult:
    valid: bool
    errors: Mapping[str, tuple[ValidationIssue, ...]] = field(default_factory=dict)


class SchemaValidator:
    """Run draft-07 validation with a bounded number of reported errors.

    When ``prefix`` is given, ``$ref`` URIs starting with it are loaded through
    ``resolver`` from the schema folder, e.g. with prefix
    ``https://schemas.example.com/`` the reference
    ``https://schemas.example.com/Common/Address.json`` reads
    ``<schema_folder>/Common/Address.json``.
    """

    def __init__(
        self,
        resolver: SchemaResolver | None = None,
        prefix: str | None = None,
        max_errors: int = MAX_ERRORS,
    ) -> None:
        self.resolver = resolver
        self.prefix = prefix
        self.max_errors = max_errors
        self.registry: Registry = (
            Registry(retrieve=self._retrieve) if prefix is not None and resolver is not None else Registry()
        )

    def _retrieve(self, uri: str) -> Resource:
        if self.resolver is None or self.prefix is None or not uri.startswith(self.prefix):
            raise NoSuchResource(ref=uri)
        schema_name = uri.removeprefix(self.prefix).removesuffix(SCHEMA_SUFFIX)
        contents = self.resolver.resolve(schema_name)
        return Resource.from_contents(contents, default_specification=DRAFT7)

    def validate(self, data: Any, schema: Mapping[str, Any]) -> ValidationResult:
        engine = Draft7Validator(schema, registry=self.registry)
        errors = list(_within_cap(engine.iter_errors(data), self.max_errors))
        if not errors:
            return ValidationResult(valid=True)
        return ValidationResult(valid=False, errors=_group_by_path(errors))


def _data_path(error: ValidationError) -> str:
    return ".".join(str(part) for part in error.absolute_path)


def _within_cap(errors: Iterable[ValidationError], limit: int) -> Iterator[ValidationError]:
    """Pull engine errors until ``limit`` distinct issues have been seen.

    The engine emits one ``required`` error per missing name; those merge into a
    single issue per path, so only the first of them counts against the limit.
    """
    required_paths: set[str] = set()
    issues = 0
    for error in errors:
        path = _data_path(error)
        is_required = str(error.validator) == REQUIRED_KEYWORD
        if not (is_required and path in required_paths):
            if issues == limit:
                return
            issues += 1
            if is_required:
                required_paths.add(path)
        yield error


def _missing_property(error: ValidationError, index: int) -> str | None:
    # jsonschema reports one error per missing name, in schema order.
    instance = error.instance if isinstance(error.instance, Mapping) else {}
    missing = [name for name in error.validator_value if name not in instance]
    return missing[index] if index < len(missing) else None


def _required_issue(names: tuple[str, ...]) -> ValidationIssue:
    return ValidationIssue(
        keyword=REQUIRED_KEYWORD,
        message=REQUIRED_MESSAGE.format(names=", ".join(names)),
        properties=names,
    )


def _group_by_path(errors: Iterable[ValidationError]) -> dict[str, tuple[ValidationIssue, ...]]:
    """Group engine errors by data path, merging ``required`` errors per object."""
    grouped: dict[str, list[ValidationIssue]] = {}
    required_slot: dict[str, int] = {}
    seen_required: Counter[tuple[str, tuple[str, ...]]] = Counter()

    for error in errors:
        path = _data_path(error)
        keyword = str(error.validator)
        bucket = grouped.setdefault(path, [])

        name = None
        if keyword == REQUIRED_KEYWORD:
            key = (path, tuple(error.validator_value))
            name = _missing_property(error, seen_required[key])
            seen_required[key] += 1

        if name is None:
            bucket.append(ValidationIssue(keyword=keyword, message=error.message))
        elif path not in required_slot:
            required_slot[path] = len(bucket)
            bucket.append(_required_issue((name,)))
        else:
            merged = bucket[required_slot[path]]
            if name not in merged.properties:
                bucket[required_slot[path]] = _required_issue((*merged.properties, name))

    return {path: tuple(issues) for path, issues in grouped.items()}
