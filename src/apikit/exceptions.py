"""Schema configuration exceptions.

Raised by the schema resolver when a schema file is missing or unreadable as JSON.
These are server-side defects (schema files ship with the deployment), so they
are never rendered as 400s: they propagate to the fault handler in handlers.py,
which answers with 500 SERVER_ERROR.
"""


class SchemaError(Exception):
    """Base class for all schema configuration errors."""

    def __init__(self, message: str, schema_name: str) -> None:
        self.message = message
        self.schema_name = schema_name
        super().__init__(message)


class SchemaNotFoundError(SchemaError):
    """Raised when the requested schema file does not exist."""

    def __init__(self, schema_name: str) -> None:
        super().__init__(f"JSON schema does not exist. (`{schema_name}`)", schema_name)


class InvalidSchemaError(SchemaError):
    """Raised when a schema file cannot be decoded into a JSON Schema document."""

    def __init__(self, schema_name: str) -> None:
        super().__init__(f"JSON schema cannot be decoded. (`{schema_name}`)", schema_name)
