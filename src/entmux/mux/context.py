"""Per-request value store shared between pre-processing and handlers."""

from __future__ import annotations

import threading
from typing import Any, Optional


class MuxContext:
    """Lock-guarded key/value map scoped to one request.

    Decoded entities are stored under their entity identifier. The error
    slot records the first pre-processing failure; later calls to
    ``set_error`` leave it unchanged.
    """

    def __init__(self) -> None:
        self._payloads: dict[str, Any] = {}
        self._error: Optional[BaseException] = None
        self._lock = threading.Lock()

    def set(self, key: str, payload: Any) -> None:
        with self._lock:
            self._payloads[key] = payload

    def retrieve(self, key: str, default: Any = None) -> Any:
        with self._lock:
            return self._payloads.get(key, default)

    def keys(self) -> list[str]:
        with self._lock:
            return list(self._payloads)

    def set_error(self, error: BaseException | str) -> bool:
        """Record ``error`` unless one is already set. Returns True if it was recorded."""
        if isinstance(error, str):
            error = RuntimeError(error)
        with self._lock:
            if self._error is not None:
                return False
            self._error = error
            return True

    @property
    def error(self) -> Optional[BaseException]:
        with self._lock:
            return self._error

    def __contains__(self, key: object) -> bool:
        with self._lock:
            return key in self._payloads
