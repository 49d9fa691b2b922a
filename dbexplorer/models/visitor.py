"""
Visitor contract for walking a semantic model.

``SemanticModel.accept`` calls :meth:`visit_semantic_model` once, then
each table, view and stored procedure in stored order.  Every entity
calls :meth:`visit_column` for its columns after its own callback.

All callbacks are no-ops here; a consumer overrides only the ones it
cares about.  Traversal is synchronous and cannot be cancelled from
inside; callers that need cancellation check a flag in their own
``visit_table`` / ``visit_view`` implementations.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from .entities import Column, SemanticModelEntity, StoredProcedure, Table, View
    from .semantic_model import SemanticModel


class SemanticModelVisitor:
    """Base visitor with one callback per concept."""

    def visit_semantic_model(self, model: "SemanticModel") -> None:
        pass

    def visit_table(self, table: "Table") -> None:
        pass

    def visit_view(self, view: "View") -> None:
        pass

    def visit_stored_procedure(self, procedure: "StoredProcedure") -> None:
        pass

    def visit_column(self, entity: "SemanticModelEntity", column: "Column") -> None:
        pass
