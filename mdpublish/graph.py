"""Discover every markdown document reachable from a set of roots."""

from __future__ import annotations

import logging
import os
import posixpath
import re
from collections import deque
from datetime import datetime, timezone
from typing import Deque, Dict, Iterable, List, Optional, Tuple

from mdpublish.config import PublishOptions
from mdpublish.errors import DocumentReadError

logger = logging.getLogger(__name__)

# bare filename-like tokens ending in .md; link display text in brackets and
# the surrounding parentheses of a link target are not part of a token
REFERENCE_RE = re.compile(rb"[^\s()\[\]<>\"'`*|]+\.md(?!\w)")


class Document:
    """A markdown source file, read once at discovery time."""

    def __init__(self, path: str, content: bytes, modified_at: datetime):
        self.path = path
        self.directory, self.basename = posixpath.split(path)
        self.content = content
        self.modified_at = modified_at

    def __repr__(self) -> str:
        return f"Document({self.path!r})"


def normalize_path(path: str) -> str:
    return posixpath.normpath(path.replace(os.sep, "/"))


def resolve_reference(directory: str, token: str) -> str:
    """Resolve a reference token against the referencing document's directory."""
    if not directory:
        return normalize_path(token)
    return normalize_path(directory + "/" + token)


def find_references(content: bytes) -> List[str]:
    tokens = []
    for match in REFERENCE_RE.finditer(content):
        token = os.fsdecode(match.group(0))
        if "://" in token:
            continue
        tokens.append(token)
    return tokens


def read_document(path: str, referenced_by: Optional[str] = None) -> Document:
    try:
        with open(path, "rb") as f:
            content = f.read()
            mtime = os.fstat(f.fileno()).st_mtime
    except OSError as exc:
        raise DocumentReadError(path, referenced_by, exc) from exc
    return Document(path, content, datetime.fromtimestamp(mtime, tz=timezone.utc))


def discover(root_paths: Iterable[str], options: PublishOptions) -> List[Document]:
    """Return the transitive closure of documents referenced from ``root_paths``.

    The worklist is processed first in, first out; a path already seen is
    skipped, which makes cycles and repeated references harmless. The result
    is always sorted by source path, regardless of discovery order, so that
    output and log order are reproducible.
    """
    if not options.quiet:
        logger.info("reading input...")

    worklist: Deque[Tuple[str, Optional[str]]] = deque(
        (normalize_path(p), None) for p in root_paths
    )
    documents: Dict[str, Document] = {}

    while worklist:
        path, referenced_by = worklist.popleft()
        if path in documents:
            continue

        document = read_document(path, referenced_by)
        documents[path] = document

        for token in find_references(document.content):
            worklist.append((resolve_reference(document.directory, token), path))

        if not options.quiet:
            logger.info("found markdown: %s", document.basename)

    return [documents[p] for p in sorted(documents)]
