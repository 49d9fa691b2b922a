"""
Directory persistence for a whole semantic model.

Layout under the model root::

    semanticmodel.json           manifest (name, source, description, refs)
    tables/<schema>.<name>.json
    views/<schema>.<name>.json
    storedprocedures/<schema>.<name>.json

The manifest embeds only ``{schema, name, relativePath}`` per entity; the
entity content lives in its own document.

There is no locking.  Two processes saving into the same directory at
once can interleave writes and leave a manifest that does not match the
entity files.
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field
from typing import Callable, Optional

from ..models.entities import KIND_FOLDERS, EntityKind
from ..models.errors import (
    DocumentWriteError,
    MalformedDocumentError,
    ModelNotFoundError,
    SemanticModelError,
)
from ..models.semantic_model import SemanticModel, UnavailableEntity
from .entity_store import entity_file_name, load_entity, read_json, save_entity, write_json

logger = logging.getLogger(__name__)

MANIFEST_FILE_NAME = "semanticmodel.json"

# Manifest key for each entity kind, in save/load order.
_MANIFEST_KEYS = {
    EntityKind.TABLE: "tables",
    EntityKind.VIEW: "views",
    EntityKind.STORED_PROCEDURE: "storedProcedures",
}

ProgressCallback = Callable[[int, int, str], None]


# ---------------------------------------------------------------------------
# Manifest records
# ---------------------------------------------------------------------------

@dataclass
class EntityReference:
    """Lightweight manifest entry pointing at one entity document."""
    schema: str
    name: str
    relative_path: str

    def to_dict(self) -> dict:
        return {
            "schema": self.schema,
            "name": self.name,
            "relativePath": self.relative_path,
        }


@dataclass
class Manifest:
    """Parsed contents of ``semanticmodel.json``."""
    name: str
    source: str
    description: Optional[str] = None
    references: dict[str, list[EntityReference]] = field(
        default_factory=lambda: {kind: [] for kind in EntityKind.ALL}
    )

    def to_dict(self) -> dict:
        data: dict = {"name": self.name, "source": self.source}
        if self.description:
            data["description"] = self.description
        for kind, key in _MANIFEST_KEYS.items():
            data[key] = [ref.to_dict() for ref in self.references.get(kind, [])]
        return data

    def relative_paths(self) -> set[str]:
        return {
            ref.relative_path
            for refs in self.references.values()
            for ref in refs
        }


def manifest_path(root_directory: str) -> str:
    return os.path.join(root_directory, MANIFEST_FILE_NAME)


def read_manifest(root_directory: str) -> Manifest:
    """
    Read and validate the manifest under *root_directory*.

    Raises
    ------
    ModelNotFoundError
        No manifest file exists.
    MalformedDocumentError
        The manifest does not parse or is missing required fields.
    """
    path = manifest_path(root_directory)
    if not os.path.isfile(path):
        raise ModelNotFoundError(path)
    data = read_json(path)
    try:
        return _manifest_from_dict(data)
    except (KeyError, TypeError, ValueError) as exc:
        raise MalformedDocumentError(path, f"{type(exc).__name__}: {exc}") from exc


def _manifest_from_dict(data: dict) -> Manifest:
    if not isinstance(data, dict):
        raise TypeError("manifest must be a JSON object")
    name = data["name"]
    source = data.get("source", "")
    if not isinstance(name, str) or not isinstance(source, str):
        raise TypeError("'name' and 'source' must be strings")
    manifest = Manifest(name=name, source=source, description=data.get("description"))
    for kind, key in _MANIFEST_KEYS.items():
        refs = manifest.references[kind]
        for item in data.get(key, []):
            ref = EntityReference(
                schema=item["schema"],
                name=item["name"],
                relative_path=item["relativePath"],
            )
            _check_relative_path(ref.relative_path, kind)
            refs.append(ref)
    return manifest


def _check_relative_path(relative_path: str, kind: str) -> None:
    """Require ``<kind folder>/<file>``: one file directly inside the kind's folder."""
    if not isinstance(relative_path, str) or not relative_path:
        raise ValueError("relativePath must be a non-empty string")
    parts = relative_path.split("/")
    if (
        len(parts) != 2
        or parts[0] != KIND_FOLDERS[kind]
        or parts[1] in ("", ".", "..")
        or "\\" in parts[1]
        or ":" in parts[1]
    ):
        raise ValueError(
            f"relativePath must name a file directly under "
            f"'{KIND_FOLDERS[kind]}/': {relative_path!r}"
        )


def _resolve(root_directory: str, relative_path: str) -> str:
    return os.path.join(root_directory, *relative_path.split("/"))


# ---------------------------------------------------------------------------
# Save
# ---------------------------------------------------------------------------

def save_model(
    model: SemanticModel,
    root_directory: str,
    progress_callback: Optional[ProgressCallback] = None,
) -> Manifest:
    """
    Save *model* into *root_directory* and return the manifest written.

    Steps: create the root and one folder per kind, write every entity
    document, write the manifest, then delete documents referenced by the
    previous manifest that the new one no longer lists.  Documents behind
    :attr:`SemanticModel.unavailable` references are kept and never pruned.

    Entities sharing an identity within one kind are written to distinct
    files (``schema.name.json``, ``schema.name.2.json``, ...) in collection
    order, so duplicates round-trip with their own content.
    """
    _make_dirs(root_directory)
    previous_paths = _previous_paths(root_directory)

    manifest = Manifest(
        name=model.name, source=model.source, description=model.description
    )
    total = sum(1 for _ in model.all_entities())
    done = 0

    for kind in EntityKind.ALL:
        folder = KIND_FOLDERS[kind]
        kind_dir = os.path.join(root_directory, folder)
        _make_dirs(kind_dir)
        refs = manifest.references[kind]
        kept = [missing for missing in model.unavailable if missing.kind == kind]
        used = {missing.relative_path for missing in kept}

        for entity in model.entities(kind):
            occurrence = 1
            while True:
                file_name = entity_file_name(entity.schema, entity.name, occurrence)
                relative_path = f"{folder}/{file_name}"
                if relative_path not in used:
                    break
                occurrence += 1
            used.add(relative_path)
            save_entity(entity, kind_dir, file_name)
            refs.append(EntityReference(
                schema=entity.schema,
                name=entity.name,
                relative_path=relative_path,
            ))
            done += 1
            if progress_callback:
                progress_callback(done, total, entity.qualified_name)

        for missing in kept:
            refs.append(EntityReference(
                missing.schema, missing.name, missing.relative_path
            ))

    write_json(manifest_path(root_directory), manifest.to_dict())
    _prune(root_directory, previous_paths - manifest.relative_paths())
    logger.info(
        "Saved semantic model '%s' to %s (%d tables, %d views, %d stored procedures)",
        model.name, root_directory, len(model.tables), len(model.views),
        len(model.stored_procedures),
    )
    return manifest


def _make_dirs(path: str) -> None:
    try:
        os.makedirs(path, exist_ok=True)
    except OSError as exc:
        raise DocumentWriteError(path, str(exc)) from exc


def _previous_paths(root_directory: str) -> set[str]:
    """Relative paths listed by the manifest currently on disk, if any."""
    try:
        return read_manifest(root_directory).relative_paths()
    except ModelNotFoundError:
        return set()
    except MalformedDocumentError as exc:
        logger.warning("Previous manifest unreadable, skipping pruning: %s", exc)
        return set()


def _prune(root_directory: str, orphaned: set[str]) -> None:
    manifest_file = os.path.abspath(manifest_path(root_directory))
    for relative_path in sorted(orphaned):
        path = _resolve(root_directory, relative_path)
        if os.path.abspath(path) == manifest_file:
            continue
        if os.path.isfile(path):
            os.remove(path)
            logger.info("Pruned orphaned entity document %s", relative_path)


# ---------------------------------------------------------------------------
# Load
# ---------------------------------------------------------------------------

def load_model(
    root_directory: str,
    strict: bool = True,
    reject_duplicates: bool = False,
    progress_callback: Optional[ProgressCallback] = None,
) -> SemanticModel:
    """
    Load the semantic model saved under *root_directory*.

    Parameters
    ----------
    root_directory:
        Directory holding ``semanticmodel.json``.
    strict:
        When True (default) the first entity that fails to load aborts the
        whole load.  When False, failed entities are recorded in
        :attr:`SemanticModel.unavailable` and the rest of the model loads.
    reject_duplicates:
        Passed to the new :class:`SemanticModel`.
    progress_callback:
        Optional ``(current, total, label)`` callback.

    Raises
    ------
    ModelNotFoundError
        The manifest is absent.
    MalformedDocumentError
        The manifest is malformed, or (strict mode) an entity document is.
    EntityNotFoundError
        Strict mode only: a referenced entity document is missing.
    """
    manifest = read_manifest(root_directory)
    model = SemanticModel(
        manifest.name,
        manifest.source,
        manifest.description,
        reject_duplicates=reject_duplicates,
    )
    total = sum(len(refs) for refs in manifest.references.values())
    done = 0

    for kind in EntityKind.ALL:
        for ref in manifest.references[kind]:
            path = _resolve(root_directory, ref.relative_path)
            try:
                entity = load_entity(path, kind, expected=(ref.schema, ref.name))
            except SemanticModelError as exc:
                if strict:
                    raise
                logger.warning(
                    "Entity [%s].[%s] unavailable: %s", ref.schema, ref.name, exc
                )
                model.unavailable.append(UnavailableEntity(
                    kind=kind,
                    schema=ref.schema,
                    name=ref.name,
                    relative_path=ref.relative_path,
                    reason=str(exc),
                ))
            else:
                model.add_entity(entity)
            done += 1
            if progress_callback:
                progress_callback(done, total, f"[{ref.schema}].[{ref.name}]")

    logger.info(
        "Loaded semantic model '%s' from %s (%d unavailable)",
        model.name, root_directory, len(model.unavailable),
    )
    return model
