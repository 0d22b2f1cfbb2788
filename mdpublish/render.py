"""Turn one markdown document into a published HTML page.

Markdown is rendered with Python-Markdown, cleaned with nh3, links to other
markdown documents are pointed at their HTML names, and the result is wrapped
in a Jinja2 page template before going through the checksum gate.
"""

from __future__ import annotations

import logging
import posixpath
import re
from datetime import datetime
from pathlib import Path
from typing import Dict, List, Tuple, Union
from xml.etree.ElementTree import Element

import jinja2
import markdown
import nh3
from markdown.extensions import Extension
from markdown.preprocessors import Preprocessor
from markdown.treeprocessors import Treeprocessor
from markupsafe import Markup

from mdpublish.config import PublishOptions
from mdpublish.errors import RenderError
from mdpublish.graph import Document
from mdpublish.paths import html_path
from mdpublish.pool import run_jobs
from mdpublish.writer import PathLocks, destination_key, write_if_changed

logger = logging.getLogger(__name__)

HREF_RE = re.compile(r'href="([^"]+\.md)"')

LIST_MARKER_RE = re.compile(r"^(?:[-+*]|\d+[.)])\s+")
HEADING_RE = re.compile(r"^#{1,6}(?:\s|$)")
FENCE_RE = re.compile(r"^(`{3,}|~{3,})")
QUOTE_RE = re.compile(r"^>")


# -- markdown extensions --
class BlockSpacingPreprocessor(Preprocessor):
    """Let lists, headings, fences and quotes start right after a paragraph line.

    Python-Markdown only recognizes those blocks after a blank line, so one is
    inserted where a block starts directly below paragraph text.
    """

    def run(self, lines: List[str]) -> List[str]:
        out: List[str] = []
        prev = "blank"
        fence = ""
        for line in lines:
            fence_match = FENCE_RE.match(line)
            if fence:
                if fence_match and fence_match.group(1).startswith(fence):
                    fence = ""
                    prev = "block"
                out.append(line)
                continue

            if not line.strip():
                kind = "blank"
            elif fence_match:
                kind = "fence"
                fence = fence_match.group(1)
            elif LIST_MARKER_RE.match(line):
                kind = "list"
            elif QUOTE_RE.match(line):
                kind = "quote"
            elif HEADING_RE.match(line):
                kind = "heading"
            elif prev in ("list", "quote"):
                # lazy continuation of the open item
                kind = prev
            else:
                kind = "para"

            if prev == "para" and kind in ("fence", "list", "quote", "heading"):
                out.append("")
            out.append(line)
            prev = "block" if kind in ("fence", "heading") else kind
        return out


def is_relative_link(href: str) -> bool:
    if href.startswith("#"):
        return True
    if href.startswith("/") and not href.startswith("//"):
        return True
    return href.startswith("./") or href.startswith("../")


class TargetBlankTreeprocessor(Treeprocessor):
    """Open every non-relative link in a new browsing context."""

    def run(self, root: Element) -> None:
        for anchor in root.iter("a"):
            href = anchor.get("href")
            if href and not is_relative_link(href):
                anchor.set("target", "_blank")


class PublishExtension(Extension):
    def extendMarkdown(self, md: markdown.Markdown) -> None:
        # after whitespace normalization (30), before fenced code (25) and raw html (20)
        md.preprocessors.register(BlockSpacingPreprocessor(md), "block_spacing", 27)
        md.treeprocessors.register(TargetBlankTreeprocessor(md), "target_blank", 0)


def render_markdown(text: str) -> str:
    """Render markdown to unsanitized HTML."""
    md = markdown.Markdown(
        extensions=[
            "extra",
            "sane_lists",
            "toc",
            "pymdownx.magiclink",
            "pymdownx.tilde",
            PublishExtension(),
        ]
    )
    return md.convert(text)


# -- sanitizing --
_CODE_CLASS_RE = re.compile(r"^language-[a-zA-Z0-9]+$")

SANITIZE_ATTRIBUTES = {tag: set(attrs) for tag, attrs in nh3.ALLOWED_ATTRIBUTES.items()}
SANITIZE_ATTRIBUTES["*"] = SANITIZE_ATTRIBUTES.get("*", set()) | {"dir", "id", "lang", "title"}
SANITIZE_ATTRIBUTES["code"] = SANITIZE_ATTRIBUTES.get("code", set()) | {"class"}

# the renderer's new-context target, and nothing else, survives on links
SANITIZE_ATTRIBUTE_VALUES = {"a": {"target": {"_blank"}}}


def _filter_attribute(element: str, attribute: str, value: str) -> Union[str, None]:
    if attribute == "class":
        return value if _CODE_CLASS_RE.match(value) else None
    return value


def sanitize_html(unsafe: str) -> str:
    return nh3.clean(
        unsafe,
        attributes=SANITIZE_ATTRIBUTES,
        tag_attribute_values=SANITIZE_ATTRIBUTE_VALUES,
        attribute_filter=_filter_attribute,
        link_rel="nofollow noopener",
    )


# -- links --
def rewrite_links(html: str) -> str:
    """Point ``href="x.md"`` links at the published name of ``x.md``."""

    def _repl(match: re.Match[str]) -> str:
        target = match.group(1)
        if "://" in target:
            return match.group(0)
        return f'href="{html_path(target)}"'

    return HREF_RE.sub(_repl, html)


# -- template --
def load_template(path: Union[str, Path]) -> jinja2.Template:
    template_path = Path(path)
    env = jinja2.Environment(
        loader=jinja2.FileSystemLoader(str(template_path.parent)),
        autoescape=True,
        undefined=jinja2.StrictUndefined,
        keep_trailing_newline=True,
    )
    try:
        return env.get_template(template_path.name)
    except jinja2.TemplateError as exc:
        raise RenderError(f"cannot load template {path}: {exc}") from exc


def render_page(template: jinja2.Template, body: str, modified_at: datetime) -> bytes:
    """Wrap an already sanitized body; the template must not escape it again."""
    try:
        page = template.render(body=Markup(body), date_modified=modified_at)
    except jinja2.TemplateError as exc:
        raise RenderError(f"cannot render template {template.name}: {exc}") from exc
    return page.encode("utf-8")


# -- pipeline --
def destination_for(document: Document, options: PublishOptions) -> Path:
    dest = html_path(document.path)
    if options.destdir:
        return Path(options.destdir) / posixpath.basename(dest)
    return Path(dest)


def process_document(
    document: Document,
    template: jinja2.Template,
    options: PublishOptions,
    locks: PathLocks,
) -> Tuple[bool, bytes]:
    """Render, sanitize, relink and template one document, then write it if it changed.

    Bytes that are not UTF-8 are published as U+FFFD rather than failing the run.
    """
    text = document.content.decode("utf-8", errors="replace")

    try:
        body = rewrite_links(sanitize_html(render_markdown(text)))
        page = render_page(template, body, document.modified_at)
    except RenderError as exc:
        raise RenderError(f"{document.path}: {exc}") from exc
    except Exception as exc:
        raise RenderError(f"{document.path}: {type(exc).__name__}: {exc}") from exc

    return write_if_changed(page, destination_for(document, options), options, locks)


def process_documents(
    documents: List[Document],
    template: jinja2.Template,
    options: PublishOptions,
    locks: PathLocks,
) -> List[Tuple[bool, bytes]]:
    """Publish every document, on up to ``options.jobs`` workers.

    Documents sharing a destination (flattened basenames) run in one job in
    input order, so the last one in sorted order wins even on a pool.
    """
    if not options.quiet:
        logger.info("generating html...")

    groups: Dict[str, List[int]] = {}
    for index, document in enumerate(documents):
        key = destination_key(destination_for(document, options))
        groups.setdefault(key, []).append(index)

    def _run_group(indices: List[int]) -> List[Tuple[int, Tuple[bool, bytes]]]:
        return [(i, process_document(documents[i], template, options, locks)) for i in indices]

    results: List[Tuple[bool, bytes]] = [(False, b"")] * len(documents)
    for group in run_jobs(_run_group, list(groups.values()), options.jobs):
        for index, result in group:
            results[index] = result
    return results
