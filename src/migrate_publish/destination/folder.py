"""Local folder destination with staged snapshots."""

import json
import os
import shutil
import tempfile
import uuid
from pathlib import Path
from typing import Any, Dict, Optional

from loguru import logger

from ..config.config import DestinationConfig
from ..models.transform import TransformResult, iter_files
from .base import Destination, DestinationError

CURRENT_LINK = 'current'
SNAPSHOTS_DIR = 'snapshots'


class FolderDestination(Destination):
    """Publishes transform results as snapshots of a local folder.

    A folder has no atomic multi-file commit, so every publish stages a
    complete snapshot under ``snapshots/`` and then switches the ``current``
    symlink to it with a single rename. Readers only ever see ``current``.
    Each snapshot has a JSON sidecar holding its labels and parent snapshot.
    """

    def __init__(self, root: str, label_name: str = 'GitOrigin-RevId'):
        """Initialize folder destination.

        Args:
            root: Destination root directory
            label_name: Label recording the origin reference of each snapshot
        """
        self.root = Path(root).absolute()
        self.label_name = label_name
        self.logger = logger.bind(component='FolderDestination')

    @classmethod
    def from_config(cls, config: DestinationConfig) -> 'FolderDestination':
        return cls(config.path, label_name=config.label_name)

    @property
    def snapshots(self) -> Path:
        return self.root / SNAPSHOTS_DIR

    @property
    def current_path(self) -> Path:
        """Directory readers should use; follows the latest publish."""
        return self.root / CURRENT_LINK

    def _current_id(self) -> Optional[str]:
        link = self.current_path
        if not link.is_symlink():
            return None
        return Path(os.readlink(link)).name

    def _metadata_path(self, snapshot_id: str) -> Path:
        return self.snapshots / f'{snapshot_id}.json'

    def _load_metadata(self, snapshot_id: str) -> Dict[str, Any]:
        try:
            with open(self._metadata_path(snapshot_id), 'r', encoding='utf-8') as f:
                return json.load(f)
        except (OSError, ValueError) as e:
            raise DestinationError(
                f'Cannot read metadata of snapshot {snapshot_id}: {e}'
            ) from e

    def process(self, transform_result: TransformResult) -> None:
        """Stage a snapshot of the workdir and make it current.

        Raises:
            DestinationError: If staging or switching fails; ``current`` is
                unchanged
        """
        origin_ref = transform_result.origin_ref
        self.logger.info(f'Publishing {origin_ref} to {self.root}')

        snapshot_id = uuid.uuid4().hex
        snapshot_dir = self.snapshots / snapshot_id
        staging_dir: Optional[Path] = None

        try:
            self.snapshots.mkdir(parents=True, exist_ok=True)
            parent_id = self._current_id()
            staging_dir = Path(tempfile.mkdtemp(prefix='.staging-', dir=self.snapshots))

            excluded = transform_result.excluded_destination_paths
            if parent_id and excluded:
                for relative, path in iter_files(self.snapshots / parent_id):
                    if excluded.matches(relative):
                        self._copy(path, staging_dir / relative)

            for relative, path in transform_result.files():
                self._copy(path, staging_dir / relative)

            metadata = {
                'labels': {self.label_name: origin_ref},
                'author': str(transform_result.author),
                'summary': transform_result.summary,
                'timestamp': transform_result.timestamp.isoformat(),
                'parent': parent_id,
            }
            self._write_json(self._metadata_path(snapshot_id), metadata)
            os.rename(staging_dir, snapshot_dir)
            staging_dir = None

            self._switch_current(snapshot_id)
        except OSError as e:
            self._discard(staging_dir, snapshot_id)
            self.logger.error(f'Publish of {origin_ref} failed: {e}')
            raise DestinationError(
                f'Failed to publish {origin_ref} to {self.root}: {e}',
                origin_ref=origin_ref,
            ) from e

        self.logger.info(f'Published {origin_ref} as snapshot {snapshot_id}')

    @staticmethod
    def _copy(source: Path, target: Path) -> None:
        target.parent.mkdir(parents=True, exist_ok=True)
        shutil.copy2(source, target)

    @staticmethod
    def _write_json(path: Path, data: Dict[str, Any]) -> None:
        temp_path = path.with_name(path.name + '.tmp')
        with open(temp_path, 'w', encoding='utf-8') as f:
            json.dump(data, f, indent=2)
        os.replace(temp_path, path)

    def _switch_current(self, snapshot_id: str) -> None:
        temp_link = self.root / f'.{CURRENT_LINK}.tmp'
        if temp_link.is_symlink() or temp_link.exists():
            temp_link.unlink()
        os.symlink(os.path.join(SNAPSHOTS_DIR, snapshot_id), temp_link)
        os.replace(temp_link, self.current_path)

    def _discard(self, staging_dir: Optional[Path], snapshot_id: str) -> None:
        if self._current_id() == snapshot_id:
            return
        for path in (staging_dir, self.snapshots / snapshot_id):
            if path is not None and path.exists():
                shutil.rmtree(path, ignore_errors=True)
        metadata_path = self._metadata_path(snapshot_id)
        if metadata_path.exists():
            metadata_path.unlink()

    def get_previous_ref(self, label_name: str) -> Optional[str]:
        """Walk snapshots from ``current`` back to the first carrying the label."""
        snapshot_id = self._current_id()
        while snapshot_id:
            metadata = self._load_metadata(snapshot_id)
            labels = metadata.get('labels', {})
            if label_name in labels:
                return labels[label_name]
            snapshot_id = metadata.get('parent')
        return None
