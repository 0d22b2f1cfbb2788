"""Run options, built once from the command line and passed to every step."""

from __future__ import annotations

import argparse
from typing import Optional

DEFAULT_TEMPLATE = "template.html"


class PublishOptions:
    """Settings for one publishing run.

    - destdir: flatten every generated page into this directory (basename only)
    - assetdir: mirror this tree under destdir
    - tmplfile: page template
    - quiet: suppress informational log lines
    - jobs: worker pool size; 1 processes everything sequentially
    """

    def __init__(
        self,
        destdir: Optional[str] = None,
        assetdir: Optional[str] = None,
        tmplfile: str = DEFAULT_TEMPLATE,
        quiet: bool = False,
        jobs: int = 1,
    ):
        if jobs < 1:
            raise ValueError(f"jobs must be at least 1, got {jobs}")
        self.destdir = destdir or None
        self.assetdir = assetdir or None
        self.tmplfile = tmplfile
        self.quiet = quiet
        self.jobs = jobs

    @classmethod
    def from_args(cls, args: argparse.Namespace) -> "PublishOptions":
        return cls(
            destdir=args.destdir,
            assetdir=args.assetdir,
            tmplfile=args.tmplfile,
            quiet=args.quiet,
            jobs=args.jobs,
        )

    @property
    def asset_destination(self) -> str:
        # without -destdir assets land in the working directory
        return self.destdir or "."

    def __repr__(self) -> str:
        return (
            f"PublishOptions(destdir={self.destdir!r}, assetdir={self.assetdir!r}, "
            f"tmplfile={self.tmplfile!r}, quiet={self.quiet!r}, jobs={self.jobs!r})"
        )
