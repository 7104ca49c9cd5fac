"""Test doubles for the review client and destinations."""

from .recording import ProcessedChange, RecordingDestination
from .transport import MockTransport, check_request

__all__ = ['ProcessedChange', 'RecordingDestination', 'MockTransport', 'check_request']
