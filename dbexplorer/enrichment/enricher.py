"""
LLM-backed description enrichment.

:class:`DescriptionEnricher` is a :class:`SemanticModelVisitor`: walking a
model with it asks the LLM for a description of every entity it is not
told to skip and stores the answer in ``semantic_description``.
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Callable, Optional

from ..llm.base import LLMClient
from ..models.entities import SemanticModelEntity, StoredProcedure, Table, View
from ..models.semantic_model import SemanticModel
from ..models.visitor import SemanticModelVisitor

logger = logging.getLogger(__name__)

ProgressCallback = Callable[[int, int, str], None]

_MAX_DEFINITION_CHARS = 4000


def _utc_now() -> str:
    return datetime.now(timezone.utc).strftime("%Y-%m-%dT%H:%M:%SZ")


def build_prompt(entity: SemanticModelEntity, model: Optional[SemanticModel] = None) -> str:
    """Build the description prompt for one entity."""
    kind_label = {
        "table": "table",
        "view": "view",
        "storedprocedure": "stored procedure",
    }[entity.kind]
    lines = [
        f"Describe the purpose of the database {kind_label} "
        f"{entity.qualified_name} in two to four sentences.",
        "Answer with the description only.",
        "",
    ]
    if model is not None:
        lines.append(f"Database: {model.name}")
        if model.description:
            lines.append(f"Database description: {model.description}")
    if entity.description:
        lines.append(f"Existing description: {entity.description}")
    if entity.columns:
        lines.append("Columns:")
        for col in entity.columns:
            parts = [f"- {col.name} {col.type}",
                     "NULL" if col.nullable else "NOT NULL"]
            if col.is_primary_key:
                parts.append("PRIMARY KEY")
            if col.referenced_table:
                parts.append(f"REFERENCES {col.referenced_table}({col.referenced_column or ''})")
            if col.description:
                parts.append(f"-- {col.description}")
            lines.append(" ".join(parts))
    if isinstance(entity, StoredProcedure) and entity.parameters:
        lines.append(f"Parameters: {entity.parameters}")
    definition = getattr(entity, "definition", None)
    if definition:
        lines.append("Definition:")
        lines.append(definition[:_MAX_DEFINITION_CHARS])
    return "\n".join(lines)


class DescriptionEnricher(SemanticModelVisitor):
    """
    Writes LLM-generated descriptions back onto entities.

    Parameters
    ----------
    llm:
        Client used to generate descriptions.
    skip_tables, skip_views, skip_stored_procedures:
        Kinds to leave untouched during a full-model walk.
    progress_callback:
        Optional ``(current, total, label)`` callback, called after each
        entity is enriched.
    """

    def __init__(
        self,
        llm: LLMClient,
        skip_tables: bool = False,
        skip_views: bool = False,
        skip_stored_procedures: bool = False,
        progress_callback: Optional[ProgressCallback] = None,
    ) -> None:
        self.llm = llm
        self.skip_tables = skip_tables
        self.skip_views = skip_views
        self.skip_stored_procedures = skip_stored_procedures
        self.progress_callback = progress_callback
        self._model: Optional[SemanticModel] = None
        self._total = 0
        self._done = 0
        self._cancelled = False

    # ------------------------------------------------------------------
    # Visitor callbacks
    # ------------------------------------------------------------------

    def visit_semantic_model(self, model: SemanticModel) -> None:
        self._model = model
        self._done = 0
        self._total = (
            (0 if self.skip_tables else len(model.tables))
            + (0 if self.skip_views else len(model.views))
            + (0 if self.skip_stored_procedures else len(model.stored_procedures))
        )

    def visit_table(self, table: Table) -> None:
        if not self.skip_tables:
            self._enrich_counted(table)

    def visit_view(self, view: View) -> None:
        if not self.skip_views:
            self._enrich_counted(view)

    def visit_stored_procedure(self, procedure: StoredProcedure) -> None:
        if not self.skip_stored_procedures:
            self._enrich_counted(procedure)

    def cancel(self) -> None:
        """Stop enriching; entities not yet visited are left unchanged."""
        self._cancelled = True

    def _enrich_counted(self, entity: SemanticModelEntity) -> None:
        if self._cancelled:
            return
        self.enrich_entity(entity)
        self._done += 1
        if self.progress_callback:
            self.progress_callback(self._done, self._total, entity.qualified_name)

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def enrich_entity(self, entity: SemanticModelEntity) -> str:
        """Generate and store a description for *entity*; returns it."""
        prompt = build_prompt(entity, self._model)
        description = self.llm.generate_response(prompt).strip()
        entity.semantic_description = description
        entity.semantic_description_last_update = _utc_now()
        logger.info("Enriched %s %s", entity.kind, entity.qualified_name)
        return description

    def enrich_model(self, model: SemanticModel) -> int:
        """Enrich every non-skipped entity in *model*.  Returns the count."""
        self._cancelled = False
        model.accept(self)
        return self._done

    def enrich_table(self, model: SemanticModel, schema: str, name: str) -> bool:
        """Enrich one table.  Returns False if it is not in the model."""
        return self._enrich_one(model, model.find_table(schema, name), "table", schema, name)

    def enrich_view(self, model: SemanticModel, schema: str, name: str) -> bool:
        """Enrich one view.  Returns False if it is not in the model."""
        return self._enrich_one(model, model.find_view(schema, name), "view", schema, name)

    def enrich_stored_procedure(self, model: SemanticModel, schema: str, name: str) -> bool:
        """Enrich one stored procedure.  Returns False if it is not in the model."""
        return self._enrich_one(
            model, model.find_stored_procedure(schema, name),
            "stored procedure", schema, name,
        )

    def _enrich_one(self, model: SemanticModel, entity: Optional[SemanticModelEntity],
                    label: str, schema: str, name: str) -> bool:
        if entity is None:
            logger.error("%s not found: [%s].[%s]", label.capitalize(), schema, name)
            return False
        self._model = model
        self.enrich_entity(entity)
        return True
