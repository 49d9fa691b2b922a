"""
dbexplorer: a persistable semantic model of a relational database schema.
"""

from .models import (
    Column,
    EntityKind,
    Index,
    SemanticModel,
    SemanticModelVisitor,
    StoredProcedure,
    Table,
    TableRef,
    View,
)
from .persistence import load_model, save_model

__version__ = "0.1.0"
