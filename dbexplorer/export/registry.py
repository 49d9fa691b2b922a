"""
Export Registry: an explicit, caller-built mapping of format name to
export strategy.  Lookups are case-insensitive.
"""

from __future__ import annotations

import importlib
import logging
from typing import Optional

from ..models.errors import UnsupportedFormatError
from ..models.semantic_model import SemanticModel
from . import ExportOptions, ExportStrategy

logger = logging.getLogger(__name__)


class ExportRegistry:
    """Maps format names to :class:`ExportStrategy` instances.

    Strategies can be registered via:
    1. :meth:`register` with an instance
    2. Config file (``export_strategies`` list of Python import paths)
    """

    def __init__(self, strategies: Optional[dict[str, ExportStrategy]] = None):
        self._strategies: dict[str, ExportStrategy] = {}
        for name, strategy in (strategies or {}).items():
            self.register(name, strategy)

    def register(self, name: str, strategy: ExportStrategy) -> None:
        key = name.strip().lower()
        if not key:
            raise ValueError("Export format name must not be empty")
        if key in self._strategies:
            logger.warning("[ExportRegistry] Replacing strategy for '%s'", key)
        self._strategies[key] = strategy

    def discover(self, config_strategies: list[str] | None = None) -> None:
        """Load and register strategies named by dotted import paths."""
        for path in config_strategies or []:
            strategy = self._load_from_path(path)
            if strategy:
                self.register(strategy.name, strategy)
        logger.info("[ExportRegistry] %d strategy(ies) registered", self.size)

    def _load_from_path(self, dotted_path: str) -> ExportStrategy | None:
        """Instantiate a strategy class from a dotted Python import path.

        Example: ``my_package.exporters.CsvExportStrategy``
        """
        try:
            module_path, cls_name = dotted_path.rsplit(".", 1)
            module = importlib.import_module(module_path)
            cls = getattr(module, cls_name)
            if isinstance(cls, type) and issubclass(cls, ExportStrategy) and cls.name:
                instance = cls()
                logger.info("[ExportRegistry] Loaded strategy: %s (format=%s)",
                            dotted_path, instance.name)
                return instance
            logger.warning("[ExportRegistry] %s is not a named ExportStrategy subclass",
                           dotted_path)
        except (ImportError, AttributeError, ValueError) as e:
            logger.warning("[ExportRegistry] Failed to load '%s': %s", dotted_path, e)
        return None

    def get(self, name: str) -> ExportStrategy:
        """Return the strategy for *name*, or raise :class:`UnsupportedFormatError`."""
        strategy = self._strategies.get(name.strip().lower())
        if strategy is None:
            raise UnsupportedFormatError(name, self.formats)
        return strategy

    def __contains__(self, name: str) -> bool:
        return name.strip().lower() in self._strategies

    @property
    def formats(self) -> list[str]:
        return sorted(self._strategies)

    @property
    def size(self) -> int:
        return len(self._strategies)


def default_registry() -> ExportRegistry:
    """Return a fresh registry holding the built-in formats."""
    from .markdown import MarkdownExportStrategy
    return ExportRegistry({"markdown": MarkdownExportStrategy()})


def export_model(
    model: SemanticModel,
    format_name: str,
    options: ExportOptions,
    registry: ExportRegistry,
) -> list[str]:
    """
    Export *model* with the strategy registered under *format_name*.

    The format is resolved before anything is written, so an unknown name
    raises :class:`UnsupportedFormatError` without touching the disk.
    """
    strategy = registry.get(format_name)
    files = strategy.export(model, options)
    logger.info("Exported semantic model '%s' as %s (%d file(s))",
                model.name, format_name, len(files))
    return files
