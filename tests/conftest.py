from __future__ import annotations

from pathlib import Path

import pytest

from mdpublish.config import PublishOptions


@pytest.fixture
def template_file(tmp_path: Path) -> Path:
    path = tmp_path / "templates" / "page.html"
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(
        "<html><body>{{ body }}<footer>{{ date_modified.year }}</footer></body></html>\n",
        encoding="utf-8",
    )
    return path


@pytest.fixture
def quiet_options() -> PublishOptions:
    return PublishOptions(quiet=True)
