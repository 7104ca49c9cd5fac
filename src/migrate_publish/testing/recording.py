"""Destination that records publishes instead of writing them."""

from datetime import datetime
from types import MappingProxyType
from typing import List, Mapping, Optional

from ..destination.base import Destination
from ..models.transform import Author, PathMatcher, TransformResult, iter_files


class ProcessedChange:
    """A transform result plus the workdir contents captured at publish time."""

    def __init__(self, transform_result: TransformResult, workdir: Mapping[str, str]):
        self.transform_result = transform_result
        self._workdir = MappingProxyType(dict(workdir))

    @property
    def timestamp(self) -> datetime:
        return self.transform_result.timestamp

    @property
    def origin_ref(self) -> str:
        return self.transform_result.origin_ref

    @property
    def author(self) -> Author:
        return self.transform_result.author

    @property
    def summary(self) -> str:
        return self.transform_result.summary

    @property
    def excluded_destination_paths(self) -> PathMatcher:
        return self.transform_result.excluded_destination_paths

    @property
    def workdir(self) -> Mapping[str, str]:
        return self._workdir

    def num_files(self) -> int:
        return len(self._workdir)

    def get_content(self, file_name: str) -> str:
        try:
            return self._workdir[file_name]
        except KeyError:
            raise KeyError(f'Cannot find content for {file_name}') from None

    def file_present(self, file_name: str) -> bool:
        return file_name in self._workdir

    def __repr__(self) -> str:
        return (
            f'ProcessedChange(timestamp={self.timestamp!r}, '
            f'origin_ref={self.origin_ref!r}, summary={self.summary!r}, '
            f'workdir={dict(self._workdir)!r})'
        )


class RecordingDestination(Destination):
    """Keeps every processed change in ``processed``; writes nothing.

    Each instance owns its own list, so tests hold the destination itself as
    the handle to what was published.
    """

    def __init__(self):
        self.processed: List[ProcessedChange] = []

    def process(self, transform_result: TransformResult) -> None:
        workdir = {
            relative: path.read_text(encoding='utf-8', errors='replace')
            for relative, path in iter_files(transform_result.path)
        }
        self.processed.append(ProcessedChange(transform_result, workdir))

    def get_previous_ref(self, label_name: str) -> Optional[str]:
        if not self.processed:
            return None
        return self.processed[-1].origin_ref
