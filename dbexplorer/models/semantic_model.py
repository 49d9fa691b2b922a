"""
The semantic model: aggregate root over tables, views and stored procedures.

Collections are plain lists so that iteration order (used by save, visit
and select) is the insertion order.  Lookups are linear scans returning
the first match.

The model is not thread-safe.  Callers that fan enrichment out across
threads must serialise ``add_*`` / ``remove_*`` calls themselves.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Iterable, Iterator, NamedTuple, Optional

from .entities import EntityKind, SemanticModelEntity, StoredProcedure, Table, View
from .errors import DuplicateIdentityError
from .visitor import SemanticModelVisitor

logger = logging.getLogger(__name__)


class TableRef(NamedTuple):
    """A ``(schema, name)`` pair naming a table to select."""
    schema: str
    name: str


@dataclass
class UnavailableEntity:
    """
    A manifest entry whose document could not be loaded.

    Only produced by a non-strict load.  The reference is written back to
    the manifest on save and its document is never pruned.
    """
    kind: str
    schema: str
    name: str
    relative_path: str
    reason: str


class SemanticModel:
    """
    In-memory semantic model of a database.

    Parameters
    ----------
    name:
        Model name; usually the database name.
    source:
        Identifier of the originating connection.
    description:
        Optional free-text description of the whole database.
    reject_duplicates:
        When True, ``add_*`` raises :class:`DuplicateIdentityError` if an
        entity of the same kind already has the same ``(schema, name)``.
        When False (default) duplicates are appended and ``find_*``
        returns the one added first.
    """

    def __init__(
        self,
        name: str,
        source: str,
        description: Optional[str] = None,
        reject_duplicates: bool = False,
    ) -> None:
        if not name:
            raise ValueError("SemanticModel requires a name")
        self._name = name
        self.source = source
        self.description = description
        self.reject_duplicates = reject_duplicates
        self.tables: list[Table] = []
        self.views: list[View] = []
        self.stored_procedures: list[StoredProcedure] = []
        self.unavailable: list[UnavailableEntity] = []

    @property
    def name(self) -> str:
        return self._name

    # ------------------------------------------------------------------
    # Generic helpers
    # ------------------------------------------------------------------

    def entities(self, kind: str) -> list:
        """Return the live collection for *kind*."""
        if kind == EntityKind.TABLE:
            return self.tables
        if kind == EntityKind.VIEW:
            return self.views
        if kind == EntityKind.STORED_PROCEDURE:
            return self.stored_procedures
        raise ValueError(f"Unknown entity kind: {kind!r}")

    def all_entities(self) -> Iterator[SemanticModelEntity]:
        """Yield tables, then views, then stored procedures."""
        yield from self.tables
        yield from self.views
        yield from self.stored_procedures

    def _add(self, kind: str, entity: SemanticModelEntity) -> None:
        collection = self.entities(kind)
        if self.reject_duplicates and _find(collection, entity.schema, entity.name):
            raise DuplicateIdentityError(kind, entity.schema, entity.name)
        collection.append(entity)

    def add_entity(self, entity: SemanticModelEntity) -> None:
        """Add *entity* to the collection matching its kind."""
        self._add(entity.kind, entity)

    @staticmethod
    def _remove(collection: list, entity: SemanticModelEntity) -> bool:
        # Identity comparison: a duplicate with the same (schema, name)
        # must survive removal of the other object.
        for i, candidate in enumerate(collection):
            if candidate is entity:
                del collection[i]
                return True
        return False

    # ------------------------------------------------------------------
    # Tables
    # ------------------------------------------------------------------

    def add_table(self, table: Table) -> None:
        self._add(EntityKind.TABLE, table)

    def remove_table(self, table: Table) -> bool:
        return self._remove(self.tables, table)

    def find_table(self, schema: str, name: str) -> Optional[Table]:
        return _find(self.tables, schema, name)

    def select_tables(self, table_list: Iterable[tuple[str, str]]) -> list[Table]:
        """
        Return the tables named in *table_list*, in the order given.

        Pairs that match no table are skipped without error; callers
        wanting strict matching compare lengths.
        """
        selected: list[Table] = []
        for schema, name in table_list:
            table = _find(self.tables, schema, name)
            if table is not None:
                selected.append(table)
            else:
                logger.debug("select_tables: no table [%s].[%s]", schema, name)
        return selected

    # ------------------------------------------------------------------
    # Views
    # ------------------------------------------------------------------

    def add_view(self, view: View) -> None:
        self._add(EntityKind.VIEW, view)

    def remove_view(self, view: View) -> bool:
        return self._remove(self.views, view)

    def find_view(self, schema: str, name: str) -> Optional[View]:
        return _find(self.views, schema, name)

    # ------------------------------------------------------------------
    # Stored procedures
    # ------------------------------------------------------------------

    def add_stored_procedure(self, procedure: StoredProcedure) -> None:
        self._add(EntityKind.STORED_PROCEDURE, procedure)

    def remove_stored_procedure(self, procedure: StoredProcedure) -> bool:
        return self._remove(self.stored_procedures, procedure)

    def find_stored_procedure(self, schema: str, name: str) -> Optional[StoredProcedure]:
        return _find(self.stored_procedures, schema, name)

    # ------------------------------------------------------------------
    # Traversal
    # ------------------------------------------------------------------

    def accept(self, visitor: SemanticModelVisitor) -> None:
        """Visit the model, then every table, view and stored procedure."""
        visitor.visit_semantic_model(self)
        for table in self.tables:
            table.accept(visitor)
        for view in self.views:
            view.accept(visitor)
        for procedure in self.stored_procedures:
            procedure.accept(visitor)

    # ------------------------------------------------------------------
    # Persistence shortcuts
    # ------------------------------------------------------------------

    def save(self, root_directory: str) -> None:
        """Save this model under *root_directory* (see ``persistence.model_store``)."""
        from ..persistence.model_store import save_model
        save_model(self, root_directory)

    @classmethod
    def load(cls, root_directory: str, strict: bool = True) -> "SemanticModel":
        """Load a model previously written by :meth:`save`."""
        from ..persistence.model_store import load_model
        return load_model(root_directory, strict=strict)

    def __repr__(self) -> str:
        return (
            f"SemanticModel({self._name!r}, tables={len(self.tables)}, "
            f"views={len(self.views)}, "
            f"stored_procedures={len(self.stored_procedures)})"
        )


def _find(collection: list, schema: str, name: str):
    for entity in collection:
        if entity.has_identity(schema, name):
            return entity
    return None
