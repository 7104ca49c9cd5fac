"""Shared fixtures."""

import itertools
import shutil
from datetime import datetime, timezone
from pathlib import Path
from typing import Dict

import pytest

from migrate_publish.models.transform import Author, PathMatcher, TransformResult

GIT_AVAILABLE = shutil.which('git') is not None


@pytest.fixture
def make_workdir(tmp_path):
    """Create a workdir populated with the given files."""
    counter = itertools.count()

    def _make(files: Dict[str, str]) -> Path:
        root = tmp_path / f'workdir{next(counter)}'
        root.mkdir(parents=True)
        for name, content in files.items():
            path = root / name
            path.parent.mkdir(parents=True, exist_ok=True)
            path.write_text(content, encoding='utf-8')
        return root

    return _make


@pytest.fixture
def make_result(make_workdir):
    """Create a transform result over a fresh workdir."""

    def _make(
        origin_ref: str,
        files: Dict[str, str],
        summary: str = None,
        excluded=(),
        author: Author = None,
        timestamp: datetime = None,
    ) -> TransformResult:
        return TransformResult(
            origin_ref=origin_ref,
            author=author or Author(name='Foo Bar', email='foo@bar.com'),
            timestamp=timestamp or datetime(2017, 12, 1, 17, 33, 30, tzinfo=timezone.utc),
            summary=summary or f'Migrate {origin_ref}',
            path=make_workdir(files),
            excluded_destination_paths=PathMatcher.of(*excluded),
        )

    return _make
