"""Query/update specs and axis filters."""

from entmux.query.spec import ESpec, merge_documents
from entmux.query.filter import axis_filter, to_document

__all__ = [
    "ESpec",
    "merge_documents",
    "axis_filter",
    "to_document",
]
