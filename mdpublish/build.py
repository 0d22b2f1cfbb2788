"""One publishing run: pages first, then assets."""

from __future__ import annotations

import logging
from typing import Iterable, List, Tuple

from mdpublish.assets import sync_assets
from mdpublish.config import PublishOptions
from mdpublish.graph import discover
from mdpublish.render import load_template, process_documents
from mdpublish.writer import PathLocks

logger = logging.getLogger(__name__)


class BuildReport:
    """How many outputs a run produced and how many it actually rewrote."""

    def __init__(self, pages: List[Tuple[bool, bytes]], assets: List[Tuple[bool, bytes]]):
        self.pages = len(pages)
        self.pages_written = sum(1 for written, _ in pages if written)
        self.assets = len(assets)
        self.assets_written = sum(1 for written, _ in assets if written)

    @property
    def written(self) -> int:
        return self.pages_written + self.assets_written

    def __str__(self) -> str:
        return (
            f"{self.pages} pages ({self.pages_written} written), "
            f"{self.assets} assets ({self.assets_written} written)"
        )


def publish(root_paths: Iterable[str], options: PublishOptions) -> BuildReport:
    """Publish every document reachable from ``root_paths`` and mirror the asset tree.

    The first error aborts the run; outputs already written stay in place.
    """
    template = load_template(options.tmplfile)
    locks = PathLocks()

    documents = discover(root_paths, options)
    pages = process_documents(documents, template, options, locks)

    assets: List[Tuple[bool, bytes]] = []
    if options.assetdir:
        assets = sync_assets(options.assetdir, options.asset_destination, options, locks)

    report = BuildReport(pages, assets)
    if not options.quiet:
        logger.info("done: %s", report)
    return report
