"""Command line entry point: ``md-publish [-destdir dir] [-assetdir dir] [-tmplfile file] md [md ...]``."""

from __future__ import annotations

import argparse
import logging
from typing import List, Optional

from mdpublish.build import publish
from mdpublish.config import DEFAULT_TEMPLATE, PublishOptions
from mdpublish.errors import PublishError


def _positive_int(value: str) -> int:
    number = int(value)
    if number < 1:
        raise argparse.ArgumentTypeError(f"must be at least 1, got {value}")
    return number


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        prog="md-publish",
        description="Publish markdown documents, and every document they reference, as HTML.",
    )
    parser.add_argument("documents", nargs="+", metavar="md", help="Root markdown documents")
    parser.add_argument(
        "-destdir", "--destdir",
        default="",
        help="Destination directory for output files (flattened, basename only)",
    )
    parser.add_argument(
        "-assetdir", "--assetdir",
        default="",
        help="Asset source directory, mirrored under the destination directory",
    )
    parser.add_argument(
        "-tmplfile", "--tmplfile",
        default=DEFAULT_TEMPLATE,
        help=f"HTML template (default: {DEFAULT_TEMPLATE})",
    )
    parser.add_argument(
        "-quiet", "--quiet",
        action="store_true",
        help="Hide detailed log output",
    )
    parser.add_argument(
        "-jobs", "--jobs",
        type=_positive_int,
        default=1,
        help="Number of files processed in parallel (default: 1)",
    )
    return parser.parse_args(argv)


def configure_logging() -> None:
    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s %(message)s",
        datefmt="%Y/%m/%d %H:%M:%S",
    )


def main(argv: Optional[List[str]] = None) -> None:
    args = parse_args(argv)
    options = PublishOptions.from_args(args)
    configure_logging()

    try:
        publish(args.documents, options)
    except (PublishError, OSError) as exc:
        raise SystemExit(f"md-publish: {exc}") from exc


if __name__ == "__main__":
    main()
