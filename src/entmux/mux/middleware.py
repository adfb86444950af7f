"""Starlette middleware decoding creation payloads before handlers run."""

from __future__ import annotations

import json
from typing import Any, Callable, Iterable, Mapping

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import JSONResponse, Response

from entmux.errors import (
    BadRequestError,
    DecodeError,
    FieldWriteError,
    MuxContextCorruptError,
    MuxContextNotFoundError,
)
from entmux.logging import get_logger
from entmux.mux.context import MuxContext
from entmux.mux.registry import EntityRegistry


logger = get_logger(__name__)

STATE_KEY = "mux_context"


def _parse_body(body: bytes) -> Any:
    if not body:
        raise BadRequestError("Request body is empty.")
    try:
        return json.loads(body)
    except (UnicodeDecodeError, json.JSONDecodeError) as exc:
        raise BadRequestError(f"Malformed JSON body: {exc}") from exc


class CreationMiddleware(BaseHTTPMiddleware):
    """Decode JSON bodies of creation routes into registered entities.

    ``routes`` maps request paths to entity identifiers. For a matching
    request a fresh MuxContext is attached to ``request.state`` and the
    decoded value is stored in it under the entity identifier. Decode errors
    go into the context's error slot for the handler to inspect; a body that
    is not valid JSON is answered with 400 before any decoding.
    """

    def __init__(
        self,
        app,
        registry: EntityRegistry,
        routes: Mapping[str, str],
        methods: Iterable[str] = ("POST",),
    ):
        super().__init__(app)
        self.registry = registry
        self.routes = dict(routes)
        self.methods = {m.upper() for m in methods}

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        entity_id = self.routes.get(request.url.path)
        if entity_id is None or request.method.upper() not in self.methods:
            return await call_next(request)

        ctx = MuxContext()
        setattr(request.state, STATE_KEY, ctx)

        try:
            payload = _parse_body(await request.body())
        except BadRequestError as exc:
            logger.info("bad_request", path=request.url.path, error=str(exc))
            return JSONResponse(status_code=400, content={"detail": str(exc)})

        field_errors: list[FieldWriteError] = []
        try:
            value = self.registry.decode(entity_id, payload, field_errors=field_errors)
        except DecodeError as exc:
            logger.info("decode_failed", entity_id=entity_id, error=str(exc))
            ctx.set_error(exc)
            value = exc.partial
        else:
            if field_errors:
                ctx.set_error(field_errors[0])
        ctx.set(entity_id, value)
        return await call_next(request)


def isolate(request: Request) -> MuxContext:
    """Return the MuxContext attached to ``request``."""

    found = getattr(request.state, STATE_KEY, None)
    if found is None:
        raise MuxContextNotFoundError("No mux context attached to the request.")
    if not isinstance(found, MuxContext):
        raise MuxContextCorruptError(
            f"Request mux context has unexpected type {type(found).__name__}."
        )
    return found
