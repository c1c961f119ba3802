"""Render response envelopes as JSON HTTP responses.

Handlers build a Payload (or call one of the shortcuts below) instead of
returning raw dicts, so every endpoint answers with the same envelope.
"""

from typing import Any

from fastapi.encoders import jsonable_encoder
from fastapi.responses import JSONResponse
from starlette.responses import Response

from apikit.schemas.payload import Payload

# Statuses that must not carry a body
NO_BODY_STATUSES = frozenset({204, 304})


def respond(payload: Payload, headers: dict[str, str] | None = None) -> Response:
    """Serialize the payload and use its status code for the response."""
    if payload.status_code in NO_BODY_STATUSES:
        response = Response(status_code=payload.status_code, headers=headers)
        response.headers["Content-Type"] = "application/json"
        return response

    return JSONResponse(
        status_code=payload.status_code,
        content=jsonable_encoder(payload.serialize()),
        headers=headers,
    )


def respond_with_data(
    data: Any = None,
    status_code: int = 200,
    headers: dict[str, str] | None = None,
) -> Response:
    return respond(Payload(status_code=status_code, data=data), headers=headers)


def respond_without_data(status_code: int = 204, headers: dict[str, str] | None = None) -> Response:
    return respond(Payload(status_code=status_code), headers=headers)
