"""Field/value/operator specs rendered into query and update documents."""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field


def _operator(name: str) -> str:
    return name if name.startswith("$") else f"${name}"


class ESpec(BaseModel):
    """Field, target and operator triple used for queries and updates.

    A spec intended for updates should leave ``query_operator`` empty and
    vice versa. Without a query operator the query is an equality match;
    without an update operator the update replaces the field (``$set``).

    The following update operators only make sense in the context of other
    operators and are not supported: ``$``, ``$[]``, ``$[<identifier>]``,
    ``$slice``, ``$sort``, ``$each``, ``$position``.
    """

    model_config = ConfigDict(populate_by_name=True, frozen=True)

    field: str = Field(min_length=1)
    target: Any = None
    update_operator: str = Field(default="", alias="updateOperator")
    query_operator: str = Field(default="", alias="queryOperator")

    def to_query_document(self) -> dict[str, Any]:
        if not self.query_operator:
            return {self.field: self.target}
        return {self.field: {_operator(self.query_operator): self.target}}

    def to_update_document(self) -> dict[str, Any]:
        operator = self.update_operator or "set"
        return {_operator(operator): self.to_query_document()}


def merge_documents(specs: list[ESpec], *, update: bool = False) -> dict[str, Any]:
    """Combine several specs into one query (or update) document."""

    merged: dict[str, Any] = {}
    for spec in specs:
        rendered = spec.to_update_document() if update else spec.to_query_document()
        for key, value in rendered.items():
            if update and isinstance(merged.get(key), dict):
                merged[key].update(value)
            else:
                merged[key] = value
    return merged
