"""Response envelope shared by every endpoint.

Payload: plain dataclass holding the outcome of a request plus its HTTP status.

Serialized shape::

    {"data": ...}                      # success
    {"errors": [...]}                  # failure, always a list
    {"data": ..., "warnings": [...]}   # warnings ride along with either branch

``data`` wins over ``errors`` when both are set, so exactly one of the two keys
is ever emitted. The status code is not part of the body; responses.py uses it
for the HTTP status line.
"""

from collections.abc import Sequence
from dataclasses import dataclass
from typing import Any

from apikit.schemas.error import ActionWarning, ErrorItem


def _as_list[T](items: T | Sequence[T] | None) -> list[T] | None:
    if items is None:
        return None
    if isinstance(items, Sequence):
        return list(items)
    return [items]


@dataclass(frozen=True)
class Payload:
    """Outcome of a request: data, or one-or-many errors, with optional warnings.

    ``errors`` and ``warnings`` accept a single item or a sequence of items;
    read them through ``error_list`` / ``warning_list`` to always get a list
    (or None when unset).
    """

    status_code: int = 200
    data: Any = None
    errors: ErrorItem | Sequence[ErrorItem] | None = None
    warnings: ActionWarning | Sequence[ActionWarning] | None = None

    @property
    def error_list(self) -> list[ErrorItem] | None:
        return _as_list(self.errors)

    @property
    def warning_list(self) -> list[ActionWarning] | None:
        return _as_list(self.warnings)

    def serialize(self) -> dict[str, Any]:
        payload: dict[str, Any] = {}
        errors = self.error_list
        if self.data is not None:
            payload["data"] = self.data
        elif errors is not None:
            payload["errors"] = [error.serialize() for error in errors]

        warnings = self.warning_list
        if warnings is not None:
            payload["warnings"] = [warning.serialize() for warning in warnings]

        return payload
