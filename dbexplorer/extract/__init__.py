"""
Schema extractors: build a fresh semantic model from a live database.
"""

from __future__ import annotations

from abc import ABC, abstractmethod

from ..models.semantic_model import SemanticModel


class SchemaExtractor(ABC):
    """Base class for database-specific extractors."""

    @abstractmethod
    def extract(
        self,
        skip_tables: bool = False,
        skip_views: bool = False,
        skip_stored_procedures: bool = False,
    ) -> SemanticModel:
        """Read the schema and return a populated model."""


__all__ = ["SchemaExtractor"]
