"""Entity registry, payload decoding and request pre-processing."""

from entmux.mux.registry import EntityRegistry, create
from entmux.mux.decoder import PayloadDecoder
from entmux.mux.context import MuxContext
from entmux.mux.middleware import CreationMiddleware, isolate
from entmux.mux.schema import build_payload_model, build_payload_schema

__all__ = [
    "EntityRegistry",
    "create",
    "PayloadDecoder",
    "MuxContext",
    "CreationMiddleware",
    "isolate",
    "build_payload_model",
    "build_payload_schema",
]
