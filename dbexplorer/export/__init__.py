"""
Export strategies: pluggable renderers for a loaded semantic model.

Custom formats subclass :class:`ExportStrategy` and are registered in an
:class:`~dbexplorer.export.registry.ExportRegistry`, either directly or via
the ``export_strategies`` list in ``.dbexplorer.yaml``.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Optional

from ..models.semantic_model import SemanticModel


@dataclass
class ExportOptions:
    """Options passed to every export strategy."""
    output_path: str
    output_file_name: Optional[str] = None
    split_files: bool = False


class ExportStrategy(ABC):
    """Base class for export formats.

    Example::

        class CsvExportStrategy(ExportStrategy):
            name = "csv"

            def export(self, model, options):
                ...
    """

    name: str = ""  # Format name used for registry lookup

    @abstractmethod
    def export(self, model: SemanticModel, options: ExportOptions) -> list[str]:
        """Write *model* according to *options*.  Returns the files written."""


__all__ = ["ExportOptions", "ExportStrategy"]
