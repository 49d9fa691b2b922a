"""
Markdown Exporter: renders a semantic model as Markdown documents.

Either one combined file or one file per entity (``split_files``).
"""

from __future__ import annotations

import os
from typing import Optional

from ..models.entities import (
    KIND_FOLDERS,
    EntityKind,
    SemanticModelEntity,
    StoredProcedure,
    Table,
    View,
)
from ..models.semantic_model import SemanticModel
from ..models.visitor import SemanticModelVisitor
from ..persistence.entity_store import entity_file_name
from . import ExportOptions, ExportStrategy

_SECTION_TITLES = {
    EntityKind.TABLE: "Tables",
    EntityKind.VIEW: "Views",
    EntityKind.STORED_PROCEDURE: "Stored Procedures",
}


def _cell(text: Optional[str]) -> str:
    if not text:
        return ""
    return text.replace("|", "\\|").replace("\n", " ")


def _code_block(text: str) -> list[str]:
    return ["```sql", text.rstrip(), "```"]


class MarkdownRenderVisitor(SemanticModelVisitor):
    """Collects one Markdown section per entity while walking the model."""

    def __init__(self, heading_level: int = 2) -> None:
        self.heading_level = heading_level
        self.header: list[str] = []
        # (entity, lines) in traversal order
        self.sections: list[tuple[SemanticModelEntity, list[str]]] = []

    def visit_semantic_model(self, model: SemanticModel) -> None:
        self.header = [f"# {model.name}", ""]
        if model.description:
            self.header += [model.description, ""]
        self.header += [f"Source: `{model.source}`", ""]

    def visit_table(self, table: Table) -> None:
        lines = self._entity_header(table)
        if table.indexes:
            lines += ["**Indexes**", ""]
            for idx in table.indexes:
                flags = [f for f, on in (("primary key", idx.is_primary_key),
                                         ("unique", idx.is_unique)) if on]
                suffix = f" ({', '.join(flags)})" if flags else ""
                lines.append(f"- `{idx.name}`: {', '.join(idx.columns)}{suffix}")
            lines.append("")
        self.sections.append((table, lines))

    def visit_view(self, view: View) -> None:
        lines = self._entity_header(view)
        if view.definition:
            lines += ["**Definition**", ""] + _code_block(view.definition) + [""]
        self.sections.append((view, lines))

    def visit_stored_procedure(self, procedure: StoredProcedure) -> None:
        lines = self._entity_header(procedure)
        if procedure.parameters:
            lines += [f"**Parameters**: `{_cell(procedure.parameters)}`", ""]
        if procedure.definition:
            lines += ["**Definition**", ""] + _code_block(procedure.definition) + [""]
        self.sections.append((procedure, lines))

    def _entity_header(self, entity: SemanticModelEntity) -> list[str]:
        hashes = "#" * self.heading_level
        lines = [f"{hashes} {entity.schema}.{entity.name}", ""]
        if entity.description:
            lines += [entity.description, ""]
        if entity.semantic_description:
            lines += [entity.semantic_description, ""]
        if entity.columns:
            lines += [
                "| # | Column | Type | Nullable | Description |",
                "|---|--------|------|----------|-------------|",
            ]
            for col in entity.columns:
                name = f"**{col.name}**" if col.is_primary_key else col.name
                lines.append(
                    f"| {col.ordinal} | {_cell(name)} | {_cell(col.type)} | "
                    f"{'yes' if col.nullable else 'no'} | {_cell(col.description)} |"
                )
            lines.append("")
        return lines


class MarkdownExportStrategy(ExportStrategy):
    """Writes Markdown, combined or split per entity."""

    name = "markdown"

    def export(self, model: SemanticModel, options: ExportOptions) -> list[str]:
        if options.split_files:
            return self._export_split(model, options)
        return [self._export_combined(model, options)]

    def _export_combined(self, model: SemanticModel, options: ExportOptions) -> str:
        visitor = MarkdownRenderVisitor(heading_level=3)
        model.accept(visitor)

        lines = list(visitor.header)
        for kind in EntityKind.ALL:
            sections = [s for e, s in visitor.sections if e.kind == kind]
            if not sections:
                continue
            lines += [f"## {_SECTION_TITLES[kind]}", ""]
            for section in sections:
                lines += section

        os.makedirs(options.output_path, exist_ok=True)
        file_name = options.output_file_name or f"{model.name}.md"
        path = os.path.join(options.output_path, file_name)
        with open(path, "w", encoding="utf-8") as f:
            f.write("\n".join(lines).rstrip() + "\n")
        return path

    def _export_split(self, model: SemanticModel, options: ExportOptions) -> list[str]:
        visitor = MarkdownRenderVisitor(heading_level=1)
        model.accept(visitor)

        written: list[str] = []
        for entity, lines in visitor.sections:
            folder = os.path.join(options.output_path, KIND_FOLDERS[entity.kind])
            os.makedirs(folder, exist_ok=True)
            occurrence = 1
            while True:
                base = entity_file_name(entity.schema, entity.name, occurrence)[: -len(".json")]
                path = os.path.join(folder, f"{base}.md")
                if path not in written:
                    break
                occurrence += 1
            with open(path, "w", encoding="utf-8") as f:
                f.write("\n".join(lines).rstrip() + "\n")
            written.append(path)
        return written
