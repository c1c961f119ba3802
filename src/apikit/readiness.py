"""Readiness probes reported by GET /readiness.

Applications register one probe per dependency they need before serving
traffic (database, cache, upstream API, ...)::

    registry = ReadinessCheckRegistry()
    registry.register(Probe("database", check_database))
    registry.register(Probe("search", check_search, required=False))

A failing required probe makes the service not ready (503); a failing optional
probe only degrades it.
"""

import inspect
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field
from typing import Any, Protocol, runtime_checkable


@runtime_checkable
class ReadinessCheck(Protocol):
    name: str
    required: bool

    def is_ready(self) -> bool | Awaitable[bool]: ...

    def details(self) -> dict[str, Any]: ...


@dataclass(frozen=True)
class Probe:
    """ReadinessCheck backed by a plain sync or async callable."""

    name: str
    check: Callable[[], bool | Awaitable[bool]]
    required: bool = True
    info: dict[str, Any] = field(default_factory=dict)

    def is_ready(self) -> bool | Awaitable[bool]:
        return self.check()

    def details(self) -> dict[str, Any]:
        return dict(self.info)


async def evaluate(check: ReadinessCheck) -> bool:
    """Run a probe, awaiting it when it is async."""
    result = check.is_ready()
    if inspect.isawaitable(result):
        result = await result
    return bool(result)


class ReadinessCheckRegistry:
    def __init__(self) -> None:
        self._checks: list[ReadinessCheck] = []

    def register(self, check: ReadinessCheck) -> None:
        self._checks.append(check)

    def all(self) -> list[ReadinessCheck]:
        return list(self._checks)
