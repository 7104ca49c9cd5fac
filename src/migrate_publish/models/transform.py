"""Transform result models: one computed migration unit ready to publish."""

import re
from datetime import datetime, timezone
from fnmatch import fnmatchcase
from pathlib import Path
from typing import Iterator, Tuple

from pydantic import BaseModel, ConfigDict, Field, field_validator

_AUTHOR_RE = re.compile(r'^\s*(?P<name>[^<]*?)\s*<(?P<email>[^>]*)>\s*$')


class Author(BaseModel):
    """Author of a change, rendered as ``Name <email>``."""

    model_config = ConfigDict(frozen=True)

    name: str = Field(..., description='Author name')
    email: str = Field(default='', description='Author email')

    @classmethod
    def parse(cls, value: str) -> 'Author':
        """Parse ``Name <email>``.

        Raises:
            ValueError: If the string is not in that form
        """
        match = _AUTHOR_RE.match(value)
        if not match or not match.group('name'):
            raise ValueError(f'Author must be in the form "Name <email>": {value!r}')
        return cls(name=match.group('name'), email=match.group('email'))

    def __str__(self) -> str:
        return f'{self.name} <{self.email}>'


class PathMatcher(BaseModel):
    """Glob patterns over ``/``-separated paths relative to a tree root.

    Patterns use fnmatch semantics, so ``*`` also crosses directories:
    ``docs/*`` matches ``docs/a/b.md``.
    """

    model_config = ConfigDict(frozen=True)

    patterns: Tuple[str, ...] = Field(default=(), description='Glob patterns')

    @classmethod
    def empty(cls) -> 'PathMatcher':
        return cls()

    @classmethod
    def of(cls, *patterns: str) -> 'PathMatcher':
        return cls(patterns=tuple(patterns))

    def matches(self, path: str) -> bool:
        return any(fnmatchcase(path, pattern) for pattern in self.patterns)

    def __bool__(self) -> bool:
        return bool(self.patterns)


def iter_files(root: Path) -> Iterator[Tuple[str, Path]]:
    """Yield ``(relative posix path, absolute path)`` for every file under root."""
    for path in sorted(root.rglob('*')):
        if path.is_file():
            yield path.relative_to(root).as_posix(), path


class TransformResult(BaseModel):
    """Immutable description of one migrated change."""

    model_config = ConfigDict(frozen=True)

    origin_ref: str = Field(..., description='Origin reference of the change')
    author: Author = Field(..., description='Change author')
    timestamp: datetime = Field(..., description='Change timestamp')
    summary: str = Field(..., description='Change description')
    path: Path = Field(..., description='Workdir holding the final file contents')
    excluded_destination_paths: PathMatcher = Field(
        default_factory=PathMatcher.empty,
        description='Destination paths the publish must leave untouched',
    )

    @field_validator('origin_ref')
    @classmethod
    def validate_origin_ref(cls, v):
        """Origin references are single-line, non-empty strings.

        Surrounding whitespace would not survive being read back from a
        commit trailer, so it is rejected rather than stored.
        """
        if not v.strip() or '\n' in v or '\r' in v:
            raise ValueError('origin_ref must be a non-empty single line')
        if v != v.strip():
            raise ValueError('origin_ref must not have leading or trailing whitespace')
        return v

    @field_validator('timestamp')
    @classmethod
    def validate_timestamp(cls, v):
        """Treat naive timestamps as UTC."""
        if v.tzinfo is None:
            return v.replace(tzinfo=timezone.utc)
        return v

    def files(self) -> Iterator[Tuple[str, Path]]:
        """Workdir files, excluding paths the destination must not touch."""
        for relative, absolute in iter_files(self.path):
            if not self.excluded_destination_paths.matches(relative):
                yield relative, absolute
