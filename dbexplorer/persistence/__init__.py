"""
On-disk persistence: one JSON document per entity plus a manifest.
"""

from .entity_store import entity_file_name, load_entity, save_entity
from .model_store import (
    MANIFEST_FILE_NAME,
    EntityReference,
    Manifest,
    load_model,
    read_manifest,
    save_model,
)

__all__ = [
    "MANIFEST_FILE_NAME",
    "EntityReference",
    "Manifest",
    "entity_file_name",
    "load_entity",
    "load_model",
    "read_manifest",
    "save_entity",
    "save_model",
]
