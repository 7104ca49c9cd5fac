"""Migration Publish

Publish stage of a source migration pipeline: delivers computed workdir
snapshots to a destination, records origin references for incremental
resumption, and manages the resulting Gerrit review changes.
"""

__version__ = '0.1.0'
__author__ = 'Migration Tooling Team'
__email__ = 'team@example.com'

from .cli.main import main

__all__ = ['main']
