"""Publish destinations."""

from ..config.config import DestinationConfig
from .base import Destination, DestinationError
from .folder import FolderDestination
from .git import GitDestination


def create_destination(config: DestinationConfig) -> Destination:
    """Create the destination described by configuration."""
    if config.type == 'folder':
        return FolderDestination.from_config(config)
    return GitDestination.from_config(config)


__all__ = [
    'Destination',
    'DestinationError',
    'FolderDestination',
    'GitDestination',
    'create_destination',
]
