"""Map markdown source paths to their published HTML paths."""

from __future__ import annotations

import posixpath
import re

MARKUP_EXT = ".md"
OUTPUT_EXT = ".html"
ROOT_DOCUMENT = "readme.md"
INDEX_DOCUMENT = "index.md"

_UPPER_RUN_RE = re.compile(r"[A-Z]+")


def is_markup_path(path: str) -> bool:
    return len(path) > len(MARKUP_EXT) and path.endswith(MARKUP_EXT)


def html_path(source_path: str) -> str:
    """Return the destination path for ``source_path``.

    Only the filename changes: ALLCAPS runs are lowercased, ``readme.md``
    becomes ``index.md``, underscores become hyphens and ``.md`` becomes
    ``.html``. Anything without the ``.md`` extension is returned as is.
    """
    if not is_markup_path(source_path):
        return source_path

    directory, filename = posixpath.split(source_path)

    name = _UPPER_RUN_RE.sub(lambda m: m.group(0).lower(), filename)
    if name == ROOT_DOCUMENT:
        name = INDEX_DOCUMENT
    name = name.replace("_", "-")
    name = name[: -len(MARKUP_EXT)] + OUTPUT_EXT

    if not directory:
        return name
    return posixpath.normpath(posixpath.join(directory, name))
