"""Publish coordination."""

from .coordinator import PublishCoordinator, PublishSummary

__all__ = ['PublishCoordinator', 'PublishSummary']
