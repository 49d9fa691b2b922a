"""
Data dictionary merge.

A data dictionary is one or more YAML (or JSON) files describing tables::

    schema: dbo
    name: Orders
    description: One row per customer order.
    columns:
      Id: Surrogate key.
      CustomerId: Customer placing the order.

A file may hold a single mapping, a list of mappings, or a mapping with a
``tables`` list.  ``columns`` may also be a list of ``{name, description}``.
Entries are matched to model tables with ``SemanticModel.select_tables``;
entries naming tables the model does not have are logged and skipped.
"""

from __future__ import annotations

import glob
import logging
import os
from dataclasses import dataclass, field
from typing import Optional

import yaml

from ..models.entities import Table
from ..models.errors import MalformedDocumentError
from ..models.semantic_model import SemanticModel, TableRef

logger = logging.getLogger(__name__)


@dataclass
class DataDictionaryEntry:
    """Descriptions for one table taken from a data dictionary file."""
    schema: str
    name: str
    description: Optional[str] = None
    columns: dict[str, str] = field(default_factory=dict)
    source_file: str = ""

    @property
    def ref(self) -> TableRef:
        return TableRef(self.schema, self.name)


def _parse_columns(raw) -> dict[str, str]:
    if raw is None:
        return {}
    if isinstance(raw, dict):
        return {str(k): str(v) for k, v in raw.items() if v is not None}
    if isinstance(raw, list):
        columns = {}
        for item in raw:
            if item.get("description") is not None:
                columns[str(item["name"])] = str(item["description"])
        return columns
    raise TypeError("'columns' must be a mapping or a list")


def _parse_entry(raw: dict, path: str) -> DataDictionaryEntry:
    name = raw.get("name", raw.get("table"))
    if not raw.get("schema") or not name:
        raise KeyError("each entry needs 'schema' and 'name'")
    description = raw.get("description")
    return DataDictionaryEntry(
        schema=str(raw["schema"]),
        name=str(name),
        description=None if description is None else str(description),
        columns=_parse_columns(raw.get("columns")),
        source_file=path,
    )


def load_data_dictionary(path: str) -> list[DataDictionaryEntry]:
    """Parse one data dictionary file.

    Raises :class:`MalformedDocumentError` when the file cannot be parsed.
    """
    try:
        with open(path, "r", encoding="utf-8") as f:
            data = yaml.safe_load(f)
    except yaml.YAMLError as exc:
        raise MalformedDocumentError(path, str(exc)) from exc

    if isinstance(data, dict) and "tables" in data:
        data = data["tables"]
    if isinstance(data, dict):
        data = [data]
    if not isinstance(data, list):
        raise MalformedDocumentError(path, "expected a mapping or a list of mappings")

    try:
        return [_parse_entry(item, path) for item in data]
    except (AttributeError, KeyError, TypeError) as exc:
        raise MalformedDocumentError(path, f"{type(exc).__name__}: {exc}") from exc


def load_data_dictionaries(source_pattern: str) -> list[DataDictionaryEntry]:
    """Parse every regular file matching the glob *source_pattern*, in sorted order."""
    paths = sorted(p for p in glob.glob(source_pattern) if os.path.isfile(p))
    if not paths:
        logger.warning("No data dictionary files match %s", source_pattern)
    entries: list[DataDictionaryEntry] = []
    for path in paths:
        entries.extend(load_data_dictionary(path))
    return entries


def apply_entry(table: Table, entry: DataDictionaryEntry) -> None:
    """Copy the descriptions from *entry* onto *table* and its columns."""
    if entry.description is not None:
        table.description = entry.description
    for column_name, description in entry.columns.items():
        column = table.find_column(column_name)
        if column is None:
            logger.warning("Data dictionary column %s not in %s (%s)",
                           column_name, table.qualified_name, entry.source_file)
            continue
        column.description = description


def apply_data_dictionary(
    model: SemanticModel,
    source_pattern: str,
    schema: Optional[str] = None,
    name: Optional[str] = None,
) -> list[Table]:
    """
    Merge data dictionary descriptions into the tables of *model*.

    Parameters
    ----------
    model:
        Model to update in place.
    source_pattern:
        Glob matching the dictionary files (e.g. ``dict/*.yaml``).
    schema, name:
        When given, only entries for that schema / table name are applied.

    Returns
    -------
    list[Table]
        The tables that were updated, in dictionary order.
    """
    entries = [
        e for e in load_data_dictionaries(source_pattern)
        if (schema is None or e.schema == schema) and (name is None or e.name == name)
    ]
    by_identity: dict[tuple[str, str], DataDictionaryEntry] = {}
    for entry in entries:
        by_identity[tuple(entry.ref)] = entry

    selected = model.select_tables(e.ref for e in entries)
    if len(selected) < len(entries):
        matched = {t.identity for t in selected}
        for entry in entries:
            if entry.ref not in matched:
                logger.warning("Data dictionary table [%s].[%s] not in model (%s)",
                               entry.schema, entry.name, entry.source_file)

    updated: list[Table] = []
    for table in selected:
        if any(table is t for t in updated):
            continue
        apply_entry(table, by_identity[table.identity])
        updated.append(table)
    logger.info("Applied data dictionary to %d table(s)", len(updated))
    return updated
