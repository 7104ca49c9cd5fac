"""Data models for review records and transform results."""

from .change import (
    AbandonInput,
    AccountInfo,
    ChangeInfo,
    ChangesQuery,
    ChangeStatus,
    RestoreInput,
)
from .project import ListProjectsInput, ProjectInfo
from .transform import Author, PathMatcher, TransformResult

__all__ = [
    'AbandonInput',
    'AccountInfo',
    'ChangeInfo',
    'ChangesQuery',
    'ChangeStatus',
    'RestoreInput',
    'ListProjectsInput',
    'ProjectInfo',
    'Author',
    'PathMatcher',
    'TransformResult',
]
