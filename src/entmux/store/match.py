"""Evaluation of query and update documents against plain dict documents."""

from __future__ import annotations

import copy
from typing import Any, Callable

from entmux.errors import StoreError
from entmux.store.base import Document


_MISSING = object()


def _get_path(document: Document, path: str) -> Any:
    current: Any = document
    for part in path.split("."):
        if isinstance(current, dict) and part in current:
            current = current[part]
        else:
            return _MISSING
    return current


def _compare(op: Callable[[Any, Any], bool]) -> Callable[[Any, Any], bool]:
    def _run(value: Any, target: Any) -> bool:
        if value is _MISSING:
            return False
        try:
            return bool(op(value, target))
        except TypeError:
            return False

    return _run


def _equals(value: Any, target: Any) -> bool:
    if value is _MISSING:
        return target is None
    if isinstance(value, list) and not isinstance(target, list):
        return target in value
    return value == target


def _in(value: Any, target: Any) -> bool:
    if not isinstance(target, (list, tuple, set)):
        raise StoreError("$in/$nin require a list.")
    return any(_equals(value, item) for item in target)


_QUERY_OPERATORS: dict[str, Callable[[Any, Any], bool]] = {
    "$eq": _equals,
    "$ne": lambda value, target: not _equals(value, target),
    "$gt": _compare(lambda a, b: a > b),
    "$gte": _compare(lambda a, b: a >= b),
    "$lt": _compare(lambda a, b: a < b),
    "$lte": _compare(lambda a, b: a <= b),
    "$in": _in,
    "$nin": lambda value, target: not _in(value, target),
    "$exists": lambda value, target: (value is not _MISSING) == bool(target),
}


def _is_operator_doc(cond: Any) -> bool:
    return isinstance(cond, dict) and bool(cond) and all(
        isinstance(key, str) and key.startswith("$") for key in cond
    )


def matches(document: Document, filter: Document) -> bool:
    """Return whether ``document`` satisfies ``filter``."""

    for key, cond in filter.items():
        if key == "$and":
            if not all(matches(document, sub) for sub in cond):
                return False
            continue
        if key == "$or":
            if not any(matches(document, sub) for sub in cond):
                return False
            continue
        if key.startswith("$"):
            raise StoreError(f"Unsupported query operator: {key}")
        value = _get_path(document, key)
        if _is_operator_doc(cond):
            for op, target in cond.items():
                handler = _QUERY_OPERATORS.get(op)
                if handler is None:
                    raise StoreError(f"Unsupported query operator: {op}")
                if not handler(value, target):
                    return False
        elif not _equals(value, cond):
            return False
    return True


def _parent(document: Document, path: str, *, create: bool) -> tuple[Any, str]:
    parts = path.split(".")
    current: Any = document
    for part in parts[:-1]:
        if not isinstance(current, dict):
            raise StoreError(f"Cannot traverse non-document at {path}.")
        if part not in current:
            if not create:
                return None, parts[-1]
            current[part] = {}
        current = current[part]
    if not isinstance(current, dict):
        raise StoreError(f"Cannot traverse non-document at {path}.")
    return current, parts[-1]


def _set(document: Document, path: str, value: Any) -> None:
    parent, leaf = _parent(document, path, create=True)
    parent[leaf] = copy.deepcopy(value)


def _unset(document: Document, path: str, _value: Any) -> None:
    parent, leaf = _parent(document, path, create=False)
    if parent is not None:
        parent.pop(leaf, None)


def _inc(document: Document, path: str, value: Any) -> None:
    parent, leaf = _parent(document, path, create=True)
    current = parent.get(leaf, 0)
    if not isinstance(current, (int, float)) or not isinstance(value, (int, float)):
        raise StoreError(f"$inc requires numeric values at {path}.")
    parent[leaf] = current + value


def _push(document: Document, path: str, value: Any) -> None:
    parent, leaf = _parent(document, path, create=True)
    current = parent.setdefault(leaf, [])
    if not isinstance(current, list):
        raise StoreError(f"$push requires an array at {path}.")
    current.append(copy.deepcopy(value))


def _pull(document: Document, path: str, value: Any) -> None:
    parent, leaf = _parent(document, path, create=False)
    if parent is None or leaf not in parent:
        return
    current = parent[leaf]
    if not isinstance(current, list):
        raise StoreError(f"$pull requires an array at {path}.")
    parent[leaf] = [item for item in current if item != value]


_UPDATE_OPERATORS: dict[str, Callable[[Document, str, Any], None]] = {
    "$set": _set,
    "$unset": _unset,
    "$inc": _inc,
    "$push": _push,
    "$pull": _pull,
}


def apply_update(document: Document, update: Document) -> Document:
    """Return a copy of ``document`` with ``update`` operators applied."""

    if not update or not all(isinstance(key, str) and key.startswith("$") for key in update):
        raise StoreError("Update document must only contain update operators.")
    updated = copy.deepcopy(document)
    for op, changes in update.items():
        handler = _UPDATE_OPERATORS.get(op)
        if handler is None:
            raise StoreError(f"Unsupported update operator: {op}")
        if not isinstance(changes, dict):
            raise StoreError(f"{op} expects a document of field changes.")
        for path, value in changes.items():
            handler(updated, path, value)
    return updated
