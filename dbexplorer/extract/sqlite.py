"""
SQLite schema extractor.

Reads tables and views (with columns, primary keys, foreign keys and
indexes) from a SQLite database file.  SQLite has neither schemas nor
stored procedures: every object is placed in schema ``main`` and the
stored procedure collection stays empty.
"""

from __future__ import annotations

import logging
import os
import re
import sqlite3
from contextlib import contextmanager
from pathlib import Path
from typing import Optional

from ..models.entities import Column, Index, Table, View
from ..models.semantic_model import SemanticModel
from . import SchemaExtractor

logger = logging.getLogger(__name__)

SQLITE_SCHEMA = "main"

_TYPE_ARGS = re.compile(r"^\s*([^(]+?)\s*\(\s*(\d+)\s*(?:,\s*(\d+)\s*)?\)\s*$")
_LENGTH_TYPES = ("CHAR", "VARCHAR", "NCHAR", "NVARCHAR", "VARYING CHARACTER",
                 "NATIVE CHARACTER", "CHARACTER", "BINARY", "VARBINARY")


def _parse_type(declared: str) -> tuple[Optional[int], Optional[int], Optional[int]]:
    """Return ``(max_length, precision, scale)`` parsed from a declared type."""
    match = _TYPE_ARGS.match(declared or "")
    if not match:
        return None, None, None
    base = match.group(1).upper()
    first = int(match.group(2))
    second = int(match.group(3)) if match.group(3) is not None else None
    if second is None and base in _LENGTH_TYPES:
        return first, None, None
    return None, first, second


class SqliteExtractor(SchemaExtractor):
    """
    Extracts a semantic model from a SQLite database file.

    Parameters
    ----------
    database_path:
        Path to the ``.db`` / ``.sqlite`` file.  Opened read-only.
    model_name:
        Name for the model; defaults to the file name without extension.
    """

    def __init__(self, database_path: str, model_name: Optional[str] = None) -> None:
        self._database_path = os.path.abspath(database_path)
        self._model_name = model_name or Path(database_path).stem

    @property
    def source(self) -> str:
        return f"sqlite:///{Path(self._database_path).as_posix().lstrip('/')}"

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    @contextmanager
    def _connect(self):
        """Yield a read-only SQLite connection."""
        if not os.path.isfile(self._database_path):
            raise FileNotFoundError(f"SQLite database not found: {self._database_path}")
        uri = Path(self._database_path).as_uri() + "?mode=ro"
        conn = sqlite3.connect(uri, uri=True)
        conn.row_factory = sqlite3.Row
        try:
            yield conn
        finally:
            conn.close()

    def _object_names(self, conn: sqlite3.Connection, object_type: str) -> list[sqlite3.Row]:
        return conn.execute(
            "SELECT name, sql FROM sqlite_master "
            "WHERE type = ? AND name NOT LIKE 'sqlite_%' ORDER BY name",
            (object_type,),
        ).fetchall()

    def _columns(self, conn: sqlite3.Connection, name: str) -> list[Column]:
        rows = conn.execute(
            'SELECT cid, name, type, "notnull", pk FROM pragma_table_info(?) ORDER BY cid',
            (name,),
        ).fetchall()
        foreign_keys = {
            r["from"]: (r["table"], r["to"])
            for r in conn.execute(
                'SELECT "from", "table", "to" FROM pragma_foreign_key_list(?)', (name,)
            ).fetchall()
        }
        columns = []
        for r in rows:
            max_length, precision, scale = _parse_type(r["type"])
            ref_table, ref_column = foreign_keys.get(r["name"], (None, None))
            columns.append(Column(
                name=r["name"],
                type=r["type"] or "",
                nullable=not (r["notnull"] or r["pk"]),
                ordinal=r["cid"],
                is_primary_key=bool(r["pk"]),
                max_length=max_length,
                precision=precision,
                scale=scale,
                referenced_table=f"{SQLITE_SCHEMA}.{ref_table}" if ref_table else None,
                referenced_column=ref_column,
            ))
        return columns

    def _indexes(self, conn: sqlite3.Connection, name: str) -> list[Index]:
        indexes = []
        for r in conn.execute(
            "SELECT name, \"unique\", origin FROM pragma_index_list(?) ORDER BY name",
            (name,),
        ).fetchall():
            cols = [
                c["name"] for c in conn.execute(
                    "SELECT name FROM pragma_index_info(?) ORDER BY seqno", (r["name"],)
                ).fetchall()
            ]
            indexes.append(Index(
                name=r["name"],
                type="btree",
                columns=cols,
                is_unique=bool(r["unique"]),
                is_primary_key=r["origin"] == "pk",
            ))
        return indexes

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def extract(
        self,
        skip_tables: bool = False,
        skip_views: bool = False,
        skip_stored_procedures: bool = False,
    ) -> SemanticModel:
        model = SemanticModel(self._model_name, self.source)
        with self._connect() as conn:
            if not skip_tables:
                for row in self._object_names(conn, "table"):
                    model.add_table(Table(
                        SQLITE_SCHEMA,
                        row["name"],
                        columns=self._columns(conn, row["name"]),
                        indexes=self._indexes(conn, row["name"]),
                    ))
            if not skip_views:
                for row in self._object_names(conn, "view"):
                    model.add_view(View(
                        SQLITE_SCHEMA,
                        row["name"],
                        columns=self._columns(conn, row["name"]),
                        definition=row["sql"],
                    ))
        logger.info(
            "Extracted '%s' from %s: %d tables, %d views",
            model.name, self.source, len(model.tables), len(model.views),
        )
        return model
