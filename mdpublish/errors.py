"""Exceptions raised while publishing. Any of them aborts the whole run."""

from __future__ import annotations


class PublishError(Exception):
    """Base class for fatal publishing errors."""


class DocumentReadError(PublishError):
    """A source document could not be read."""

    def __init__(self, path: str, referenced_by: str | None, cause: OSError):
        self.path = path
        self.referenced_by = referenced_by
        self.cause = cause
        where = f" (referenced from {referenced_by})" if referenced_by else ""
        super().__init__(f"cannot read {path}{where}: {cause.strerror or cause}")


class RenderError(PublishError):
    """The renderer, sanitizer or template engine failed."""


class AssetPolicyError(PublishError):
    """An asset tree entry is not a regular file."""
