"""
Semantic model types: entities, the aggregate root, the visitor contract
and the error hierarchy.
"""

from .entities import (
    KIND_FOLDERS,
    Column,
    EntityKind,
    Index,
    SemanticModelEntity,
    StoredProcedure,
    Table,
    View,
)
from .errors import (
    DocumentWriteError,
    DuplicateIdentityError,
    EntityNotFoundError,
    MalformedDocumentError,
    ModelNotFoundError,
    SemanticModelError,
    UnsupportedFormatError,
)
from .semantic_model import SemanticModel, TableRef, UnavailableEntity
from .visitor import SemanticModelVisitor

__all__ = [
    "KIND_FOLDERS",
    "Column",
    "EntityKind",
    "Index",
    "SemanticModelEntity",
    "StoredProcedure",
    "Table",
    "View",
    "SemanticModel",
    "TableRef",
    "UnavailableEntity",
    "SemanticModelVisitor",
    "SemanticModelError",
    "ModelNotFoundError",
    "EntityNotFoundError",
    "MalformedDocumentError",
    "DocumentWriteError",
    "DuplicateIdentityError",
    "UnsupportedFormatError",
]
