"""
Per-entity JSON documents.

Each table, view or stored procedure is written to its own file whose
name is derived from ``(schema, name)``, so re-saving an entity always
overwrites the same document.  Output is deterministic: fixed key order,
two-space indent, trailing newline.
"""

from __future__ import annotations

import hashlib
import json
import logging
import os
from typing import Any, Optional
from urllib.parse import quote

from ..models.entities import (
    Column,
    EntityKind,
    Index,
    SemanticModelEntity,
    StoredProcedure,
    Table,
    View,
)
from ..models.errors import DocumentWriteError, EntityNotFoundError, MalformedDocumentError

logger = logging.getLogger(__name__)

# Optional column attributes, written only when they differ from the default.
_OPTIONAL_COLUMN_FIELDS = (
    ("description", None),
    ("is_primary_key", False),
    ("max_length", None),
    ("precision", None),
    ("scale", None),
    ("referenced_table", None),
    ("referenced_column", None),
)

_JSON_COLUMN_KEYS = {
    "description": "description",
    "is_primary_key": "isPrimaryKey",
    "max_length": "maxLength",
    "precision": "precision",
    "scale": "scale",
    "referenced_table": "referencedTable",
    "referenced_column": "referencedColumn",
}

# Entity-level optional text attributes shared by every kind.
_OPTIONAL_ENTITY_FIELDS = (
    ("semantic_description", "semanticDescription"),
    ("semantic_description_last_update", "semanticDescriptionLastUpdate"),
    ("details", "details"),
    ("additional_information", "additionalInformation"),
)


# ---------------------------------------------------------------------------
# File naming
# ---------------------------------------------------------------------------

# Longest file name written, leaving room for the ".tmp" suffix within the
# usual 255-byte limit.
MAX_FILE_NAME_LENGTH = 200
_HASH_LENGTH = 16


def _safe_component(value: str) -> str:
    # '.' separates schema, name and occurrence, so it is escaped inside each part.
    return quote(value, safe="").replace(".", "%2E")


def entity_file_name(schema: str, name: str, occurrence: int = 1) -> str:
    """
    Return the deterministic document file name for ``(schema, name)``.

    *occurrence* numbers entities that share an identity within one kind;
    the second and later ones get a ``.<n>`` segment before ``.json``.
    Names that would exceed :data:`MAX_FILE_NAME_LENGTH` are truncated and
    suffixed with a hash of the identity.
    """
    suffix = ".json" if occurrence <= 1 else f".{occurrence}.json"
    stem = f"{_safe_component(schema)}.{_safe_component(name)}"
    if len(stem) + len(suffix) > MAX_FILE_NAME_LENGTH:
        digest = hashlib.sha1(
            json.dumps([schema, name], ensure_ascii=False).encode("utf-8")
        ).hexdigest()[:_HASH_LENGTH]
        keep = MAX_FILE_NAME_LENGTH - len(suffix) - _HASH_LENGTH - 1
        stem = f"{stem[:keep]}~{digest}"
    return stem + suffix


def write_json(path: str, data: Any) -> None:
    """
    Write *data* to *path* via a temp file and an atomic replace.

    Raises :class:`DocumentWriteError` when the file cannot be written.
    """
    tmp = path + ".tmp"
    try:
        with open(tmp, "w", encoding="utf-8", newline="\n") as f:
            json.dump(data, f, indent=2, ensure_ascii=False)
            f.write("\n")
        os.replace(tmp, path)
    except OSError as exc:
        if os.path.exists(tmp):
            os.remove(tmp)
        raise DocumentWriteError(path, str(exc)) from exc


def read_json(path: str) -> Any:
    """Read a JSON document, mapping decode failures to MalformedDocumentError."""
    try:
        with open(path, "r", encoding="utf-8") as f:
            return json.load(f)
    except (json.JSONDecodeError, UnicodeDecodeError) as exc:
        raise MalformedDocumentError(path, str(exc)) from exc


# ---------------------------------------------------------------------------
# dict <-> entity
# ---------------------------------------------------------------------------

def column_to_dict(column: Column) -> dict:
    data: dict[str, Any] = {
        "name": column.name,
        "type": column.type,
        "nullable": column.nullable,
        "ordinal": column.ordinal,
    }
    for attr, default in _OPTIONAL_COLUMN_FIELDS:
        value = getattr(column, attr)
        if value != default:
            data[_JSON_COLUMN_KEYS[attr]] = value
    return data


def column_from_dict(data: dict) -> Column:
    kwargs = {
        attr: data[key]
        for attr, key in _JSON_COLUMN_KEYS.items()
        if key in data
    }
    nullable = data["nullable"]
    ordinal = data["ordinal"]
    if not isinstance(nullable, bool):
        raise ValueError(f"column {data['name']!r}: 'nullable' must be a boolean")
    if not isinstance(ordinal, int) or isinstance(ordinal, bool):
        raise ValueError(f"column {data['name']!r}: 'ordinal' must be an integer")
    return Column(
        name=data["name"],
        type=data["type"],
        nullable=nullable,
        ordinal=ordinal,
        **kwargs,
    )


def _index_to_dict(index: Index) -> dict:
    return {
        "name": index.name,
        "type": index.type,
        "columns": list(index.columns),
        "isUnique": index.is_unique,
        "isPrimaryKey": index.is_primary_key,
    }


def _index_from_dict(data: dict) -> Index:
    return Index(
        name=data["name"],
        type=data.get("type", ""),
        columns=list(data.get("columns", [])),
        is_unique=bool(data.get("isUnique", False)),
        is_primary_key=bool(data.get("isPrimaryKey", False)),
    )


def entity_to_dict(entity: SemanticModelEntity) -> dict:
    """Serialise *entity* to a JSON-ready dict."""
    data: dict[str, Any] = {"schema": entity.schema, "name": entity.name}
    if entity.description is not None:
        data["description"] = entity.description
    for attr, key in _OPTIONAL_ENTITY_FIELDS:
        value = getattr(entity, attr)
        if value is not None:
            data[key] = value

    if isinstance(entity, StoredProcedure):
        if entity.procedure_type is not None:
            data["procedureType"] = entity.procedure_type
        if entity.parameters is not None:
            data["parameters"] = entity.parameters
        data["definition"] = entity.definition
    elif isinstance(entity, View) and entity.definition is not None:
        data["definition"] = entity.definition

    data["columns"] = [column_to_dict(c) for c in entity.columns]
    if isinstance(entity, Table):
        data["indexes"] = [_index_to_dict(i) for i in entity.indexes]
    return data


def entity_from_dict(data: dict, kind: str) -> SemanticModelEntity:
    """
    Build an entity of *kind* from *data*.

    Raises KeyError / TypeError / ValueError on bad input; callers wrap
    these in :class:`MalformedDocumentError`.
    """
    if not isinstance(data, dict):
        raise TypeError("entity document must be a JSON object")
    schema = data["schema"]
    name = data["name"]
    if not isinstance(schema, str) or not isinstance(name, str):
        raise TypeError("'schema' and 'name' must be strings")
    description = data.get("description")
    columns = [column_from_dict(c) for c in data.get("columns", [])]

    entity: SemanticModelEntity
    if kind == EntityKind.TABLE:
        entity = Table(
            schema, name, description, columns,
            indexes=[_index_from_dict(i) for i in data.get("indexes", [])],
        )
    elif kind == EntityKind.VIEW:
        entity = View(
            schema, name, description, columns,
            definition=data.get("definition"),
        )
    elif kind == EntityKind.STORED_PROCEDURE:
        entity = StoredProcedure(
            schema, name,
            definition=data.get("definition", ""),
            parameters=data.get("parameters"),
            procedure_type=data.get("procedureType"),
            description=description,
            columns=columns,
        )
    else:
        raise ValueError(f"Unknown entity kind: {kind!r}")

    for attr, key in _OPTIONAL_ENTITY_FIELDS:
        setattr(entity, attr, data.get(key))
    return entity


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------

def save_entity(
    entity: SemanticModelEntity,
    destination_directory: str,
    file_name: Optional[str] = None,
) -> str:
    """
    Write *entity* into *destination_directory* and return the file path.

    The directory must already exist.  *file_name* defaults to
    :func:`entity_file_name` for the entity's identity; an existing
    document with that name is overwritten.
    """
    path = os.path.join(
        destination_directory,
        file_name or entity_file_name(entity.schema, entity.name),
    )
    write_json(path, entity_to_dict(entity))
    logger.debug("Saved %s %s -> %s", entity.kind, entity.qualified_name, path)
    return path


def load_entity(path: str, kind: str, expected: Optional[tuple[str, str]] = None) -> SemanticModelEntity:
    """
    Load an entity of *kind* from *path*.

    Parameters
    ----------
    path:
        Absolute path of the entity document.
    kind:
        One of :class:`EntityKind`.
    expected:
        Optional ``(schema, name)`` the document must carry (taken from the
        manifest reference).

    Raises
    ------
    EntityNotFoundError
        The document does not exist.
    MalformedDocumentError
        The document does not parse, lacks required fields, or carries a
        different identity than *expected*.
    """
    if not os.path.isfile(path):
        raise EntityNotFoundError(path)
    data = read_json(path)
    try:
        entity = entity_from_dict(data, kind)
    except (KeyError, TypeError, ValueError) as exc:
        raise MalformedDocumentError(path, f"{type(exc).__name__}: {exc}") from exc
    if expected is not None and entity.identity != tuple(expected):
        raise MalformedDocumentError(
            path,
            f"identity {entity.qualified_name} does not match manifest "
            f"[{expected[0]}].[{expected[1]}]",
        )
    return entity
