"""Load JSON Schema documents from disk.

Schemas are addressed by name relative to the schema folder, without the
``.json`` extension (``RequestBody/CreateUser`` → ``<folder>/RequestBody/CreateUser.json``).
Nothing is cached: every call re-reads the file, so schema edits are picked up
without a restart.
"""

import json
from pathlib import Path
from typing import Any

from apikit.exceptions import InvalidSchemaError, SchemaNotFoundError
from apikit.logging import get_logger

logger = get_logger(__name__)

SCHEMA_SUFFIX = ".json"


class SchemaResolver:
    """Resolve schema names to decoded JSON Schema documents."""

    def __init__(self, schema_folder: Path | str) -> None:
        self.schema_folder = Path(schema_folder)

    def path_for(self, schema_name: str) -> Path:
        return self.schema_folder / f"{schema_name}{SCHEMA_SUFFIX}"

    def resolve(self, schema_name: str) -> dict[str, Any]:
        """Return the decoded schema.

        Raises:
            SchemaNotFoundError: the file does not exist.
            InvalidSchemaError: the file is not JSON, or decodes to a value
                other than an object.
            OSError: the file exists but cannot be read.
        """
        try:
            path = self.path_for(schema_name).resolve(strict=True)
        except (FileNotFoundError, NotADirectoryError) as exc:
            raise SchemaNotFoundError(schema_name) from exc
        if not path.is_file():
            raise SchemaNotFoundError(schema_name)

        content = path.read_text(encoding="utf-8")

        try:
            schema = json.loads(content)
        except json.JSONDecodeError as exc:
            raise InvalidSchemaError(schema_name) from exc

        # Parsed fine but not a schema document (null, false, 0, "", a list, ...)
        if not isinstance(schema, dict):
            raise InvalidSchemaError(schema_name)

        logger.debug("schema_resolved", schema=schema_name, path=str(path))
        return schema
