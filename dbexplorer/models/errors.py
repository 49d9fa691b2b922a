"""
Exception hierarchy for the semantic model store.

Every error raised by the model, its persistence layer and the export
boundary derives from :class:`SemanticModelError` so callers (the CLI in
particular) can catch one type.
"""

from __future__ import annotations


class SemanticModelError(Exception):
    """Base class for all semantic model errors."""


class ModelNotFoundError(SemanticModelError, FileNotFoundError):
    """Raised when the manifest document is absent at load time."""

    def __init__(self, path: str) -> None:
        super().__init__(f"Semantic model manifest not found: {path}")
        self.path = path


class EntityNotFoundError(SemanticModelError):
    """Raised when a manifest reference points at a missing entity document."""

    def __init__(self, path: str) -> None:
        super().__init__(f"Entity document not found: {path}")
        self.path = path


class MalformedDocumentError(SemanticModelError):
    """Raised when a manifest or entity document fails to parse."""

    def __init__(self, path: str, reason: str) -> None:
        super().__init__(f"Malformed document {path}: {reason}")
        self.path = path
        self.reason = reason


class DocumentWriteError(SemanticModelError):
    """Raised when a manifest or entity document cannot be written."""

    def __init__(self, path: str, reason: str) -> None:
        super().__init__(f"Cannot write document {path}: {reason}")
        self.path = path
        self.reason = reason


class DuplicateIdentityError(SemanticModelError):
    """Raised by ``add_*`` when the model rejects duplicate identities."""

    def __init__(self, kind: str, schema: str, name: str) -> None:
        super().__init__(f"Duplicate {kind} identity: [{schema}].[{name}]")
        self.kind = kind
        self.schema = schema
        self.name = name


class UnsupportedFormatError(SemanticModelError, ValueError):
    """Raised when an export format name is not registered."""

    def __init__(self, format_name: str, available: list[str]) -> None:
        choices = ", ".join(available) or "(none)"
        super().__init__(
            f"The file type '{format_name}' is not supported. "
            f"Available: {choices}"
        )
        self.format_name = format_name
