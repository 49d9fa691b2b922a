"""
Entities held by a semantic model: tables, views and stored procedures.

Each entity is identified by ``(schema, name)``.  Both parts are
case-sensitive and fixed at construction; everything else (descriptions,
columns, definitions) may be mutated by enrichment passes.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Optional

if TYPE_CHECKING:
    from .visitor import SemanticModelVisitor


# ---------------------------------------------------------------------------
# Kind constants
# ---------------------------------------------------------------------------

class EntityKind:
    TABLE = "table"
    VIEW = "view"
    STORED_PROCEDURE = "storedprocedure"

    ALL = (TABLE, VIEW, STORED_PROCEDURE)


# Subdirectory under the model root that holds each kind's documents.
KIND_FOLDERS = {
    EntityKind.TABLE: "tables",
    EntityKind.VIEW: "views",
    EntityKind.STORED_PROCEDURE: "storedprocedures",
}


# ---------------------------------------------------------------------------
# Value types
# ---------------------------------------------------------------------------

@dataclass
class Column:
    """A column of a table or view.  Ordinal order is significant."""
    name: str
    type: str
    nullable: bool = True
    ordinal: int = 0
    description: Optional[str] = None
    is_primary_key: bool = False
    max_length: Optional[int] = None
    precision: Optional[int] = None
    scale: Optional[int] = None
    referenced_table: Optional[str] = None
    referenced_column: Optional[str] = None


@dataclass
class Index:
    """An index defined on a table."""
    name: str
    type: str = ""
    columns: list[str] = field(default_factory=list)
    is_unique: bool = False
    is_primary_key: bool = False


# ---------------------------------------------------------------------------
# Entities
# ---------------------------------------------------------------------------

class SemanticModelEntity:
    """
    Base class for the three persisted entity kinds.

    Subclasses set :attr:`kind` and implement :meth:`_visit_self`, which
    calls the matching visitor callback.

    Parameters
    ----------
    schema:
        Schema that owns the object (e.g. ``dbo``).
    name:
        Object name within the schema.
    description:
        Human-supplied description.  ``None`` means "not yet described";
        an empty string is a deliberate, distinct value.
    columns:
        Ordered column list.
    """

    kind: str = ""

    def __init__(
        self,
        schema: str,
        name: str,
        description: Optional[str] = None,
        columns: Optional[list[Column]] = None,
    ) -> None:
        if not schema:
            raise ValueError(f"{type(self).__name__} requires a schema")
        if not name:
            raise ValueError(f"{type(self).__name__} requires a name")
        self._schema = schema
        self._name = name
        self.description = description
        self.columns: list[Column] = list(columns) if columns else []
        self.semantic_description: Optional[str] = None
        self.semantic_description_last_update: Optional[str] = None
        self.details: Optional[str] = None
        self.additional_information: Optional[str] = None

    @property
    def schema(self) -> str:
        return self._schema

    @property
    def name(self) -> str:
        return self._name

    @property
    def identity(self) -> tuple[str, str]:
        return (self._schema, self._name)

    @property
    def qualified_name(self) -> str:
        return f"[{self._schema}].[{self._name}]"

    def has_identity(self, schema: str, name: str) -> bool:
        return self._schema == schema and self._name == name

    def add_column(self, column: Column) -> None:
        self.columns.append(column)

    def find_column(self, name: str) -> Optional[Column]:
        for column in self.columns:
            if column.name == name:
                return column
        return None

    # ------------------------------------------------------------------
    # Traversal
    # ------------------------------------------------------------------

    def accept(self, visitor: "SemanticModelVisitor") -> None:
        """Visit this entity, then each of its columns in order."""
        self._visit_self(visitor)
        for column in self.columns:
            visitor.visit_column(self, column)

    def _visit_self(self, visitor: "SemanticModelVisitor") -> None:
        raise NotImplementedError

    # ------------------------------------------------------------------
    # Display
    # ------------------------------------------------------------------

    def display(self) -> str:
        """Return a plain-text rendering used by the ``show`` commands."""
        label = self.kind.replace("storedprocedure", "stored procedure").title()
        lines = [f"{label}: {self.qualified_name}"]
        lines.append(f"  Description: {_or_dash(self.description)}")
        if self.semantic_description is not None:
            lines.append(f"  Semantic description: {self.semantic_description}")
        if self.details:
            lines.append(f"  Details: {self.details}")
        if self.additional_information:
            lines.append(f"  Additional information: {self.additional_information}")
        lines.extend(self._display_extra())
        if self.columns:
            lines.append("  Columns:")
            for col in self.columns:
                null_label = "null" if col.nullable else "not-null"
                pk = " PK" if col.is_primary_key else ""
                line = f"    {col.ordinal:>3}  {col.name}:{col.type}:{null_label}{pk}"
                if col.referenced_table:
                    line += f" -> {col.referenced_table}.{col.referenced_column or '?'}"
                if col.description:
                    line += f"  -- {col.description}"
                lines.append(line)
        return "\n".join(lines)

    def _display_extra(self) -> list[str]:
        return []

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self._schema!r}, {self._name!r})"


class Table(SemanticModelEntity):
    """A base table, with its columns and indexes."""

    kind = EntityKind.TABLE

    def __init__(
        self,
        schema: str,
        name: str,
        description: Optional[str] = None,
        columns: Optional[list[Column]] = None,
        indexes: Optional[list[Index]] = None,
    ) -> None:
        super().__init__(schema, name, description, columns)
        self.indexes: list[Index] = list(indexes) if indexes else []

    def _visit_self(self, visitor: "SemanticModelVisitor") -> None:
        visitor.visit_table(self)

    def _display_extra(self) -> list[str]:
        lines = []
        for idx in self.indexes:
            flags = []
            if idx.is_primary_key:
                flags.append("primary key")
            if idx.is_unique:
                flags.append("unique")
            suffix = f" ({', '.join(flags)})" if flags else ""
            lines.append(f"  Index: {idx.name} on {', '.join(idx.columns)}{suffix}")
        return lines


class View(SemanticModelEntity):
    """A view; ``definition`` holds its SQL text when known."""

    kind = EntityKind.VIEW

    def __init__(
        self,
        schema: str,
        name: str,
        description: Optional[str] = None,
        columns: Optional[list[Column]] = None,
        definition: Optional[str] = None,
    ) -> None:
        super().__init__(schema, name, description, columns)
        self.definition = definition

    def _visit_self(self, visitor: "SemanticModelVisitor") -> None:
        visitor.visit_view(self)

    def _display_extra(self) -> list[str]:
        if not self.definition:
            return []
        return ["  Definition:", _indent(self.definition)]


class StoredProcedure(SemanticModelEntity):
    """A stored procedure with its raw parameter list and body."""

    kind = EntityKind.STORED_PROCEDURE

    def __init__(
        self,
        schema: str,
        name: str,
        description: Optional[str] = None,
        columns: Optional[list[Column]] = None,
        definition: str = "",
        parameters: Optional[str] = None,
        procedure_type: Optional[str] = None,
    ) -> None:
        super().__init__(schema, name, description, columns)
        self.definition = definition
        self.parameters = parameters
        self.procedure_type = procedure_type

    def _visit_self(self, visitor: "SemanticModelVisitor") -> None:
        visitor.visit_stored_procedure(self)

    def _display_extra(self) -> list[str]:
        lines = []
        if self.procedure_type:
            lines.append(f"  Type: {self.procedure_type}")
        lines.append(f"  Parameters: {_or_dash(self.parameters)}")
        if self.definition:
            lines.append("  Definition:")
            lines.append(_indent(self.definition))
        return lines


def _or_dash(value: Optional[str]) -> str:
    return "-" if value is None else value


def _indent(text: str, prefix: str = "    ") -> str:
    return "\n".join(prefix + line for line in text.splitlines())
