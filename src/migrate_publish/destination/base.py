"""Destination contract implemented by every publish target."""

from abc import ABC, abstractmethod
from typing import Optional

from ..models.transform import TransformResult


class DestinationError(Exception):
    """A publish could not be applied; the destination kept its prior state."""

    def __init__(self, message: str, origin_ref: Optional[str] = None):
        """Initialize destination error.

        Args:
            message: Error message
            origin_ref: Origin reference of the change being published
        """
        super().__init__(message)
        self.origin_ref = origin_ref


class Destination(ABC):
    """Publish target for transform results.

    Implementations assume a single writer for the duration of ``process()``;
    callers serialize concurrent publishes to the same destination.
    """

    @abstractmethod
    def process(self, transform_result: TransformResult) -> None:
        """Make the workdir contents the destination's new state.

        Paths matched by the result's excluded destination paths are left as
        they are. The publish is labelled with the origin reference so that a
        later run can resume after it. Either the destination is fully
        updated or it is left unchanged.

        Raises:
            DestinationError: If the publish could not be applied
        """

    @abstractmethod
    def get_previous_ref(self, label_name: str) -> Optional[str]:
        """Origin reference of the most recent publish carrying ``label_name``.

        Returns:
            The recorded origin reference, or None if nothing was published
        """


def format_message(summary: str, labels: dict) -> str:
    """Render a change description followed by ``Label: value`` trailers."""
    body = summary.rstrip('\n')
    trailers = '\n'.join(f'{name}: {value}' for name, value in labels.items())
    return f'{body}\n\n{trailers}\n'
