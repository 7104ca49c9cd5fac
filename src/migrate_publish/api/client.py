"""Gerrit REST API client."""

from abc import ABC, abstractmethod
from typing import Dict, List, Optional
from urllib.parse import quote

from loguru import logger

from ..config.config import GerritConfig
from ..models.change import AbandonInput, ChangeInfo, ChangesQuery, RestoreInput
from ..models.project import ListProjectsInput, ProjectInfo
from . import codec
from .credentials import (
    CredentialStore,
    FileCredentialStore,
    GitCredentialHelper,
    StaticCredentialStore,
)
from .exceptions import check_response
from .executor import HttpTransport, RequestExecutor, RequestsTransport


class CodeReviewApi(ABC):
    """Review operations the publish stage relies on."""

    @abstractmethod
    def get_changes(self, query: ChangesQuery) -> List[ChangeInfo]:
        """Search changes."""

    @abstractmethod
    def abandon_change(
        self, change_id: str, abandon_input: Optional[AbandonInput] = None
    ) -> ChangeInfo:
        """Abandon a change and return its new snapshot."""

    @abstractmethod
    def restore_change(
        self, change_id: str, restore_input: Optional[RestoreInput] = None
    ) -> ChangeInfo:
        """Restore an abandoned change and return its new snapshot."""

    @abstractmethod
    def list_projects(self, options: ListProjectsInput) -> Dict[str, ProjectInfo]:
        """List projects keyed by name."""


def _change_path(change_id: str, *segments: str) -> str:
    return '/'.join(['changes', quote(change_id, safe='~'), *segments])


class GerritApi(CodeReviewApi):
    """Gerrit client composing request execution, decoding and error checks.

    The client keeps no state between calls; concurrent calls are safe as long
    as the transport is.
    """

    def __init__(self, executor: RequestExecutor):
        """Initialize Gerrit client.

        Args:
            executor: Request executor bound to a Gerrit host
        """
        self.executor = executor
        self.logger = logger.bind(component='GerritApi')

    @classmethod
    def from_config(
        cls, config: GerritConfig, transport: Optional[HttpTransport] = None
    ) -> 'GerritApi':
        """Create a client from configuration.

        Args:
            config: Gerrit configuration
            transport: Transport override, e.g. for tests

        Returns:
            Configured Gerrit client
        """
        store: Optional[CredentialStore] = None
        if config.username and config.password:
            store = StaticCredentialStore(
                config.username, config.password.get_secret_value()
            )
        elif config.credentials_file:
            store = FileCredentialStore(config.credentials_file)
        elif config.use_git_credential_helper:
            store = GitCredentialHelper()

        executor = RequestExecutor(
            config.url,
            transport=transport or RequestsTransport(timeout=config.timeout),
            credential_store=store,
        )
        logger.info(f'Initialized Gerrit client for {executor.base_url}')
        return cls(executor)

    def _call(self, method: str, path: str, response_type, params=None, body=None):
        response = self.executor.execute(method, path, params=params, body=body)
        url = self.executor.build_url(path, params)
        check_response(method, url, response.status_code, response.content)
        return codec.decode(response.content, response_type)

    def get_changes(self, query: ChangesQuery) -> List[ChangeInfo]:
        """Search changes.

        Args:
            query: Search expression and paging options

        Returns:
            Matching changes; empty when nothing matches

        Raises:
            GerritApiError: For non-success responses
            GerritDecodeError: If the response is not a list of changes
        """
        changes = self._call(
            'GET', 'changes/', List[ChangeInfo], params=query.as_params()
        )
        self.logger.debug(f'Query {query.query!r} returned {len(changes)} changes')
        return changes

    def get_change(self, change_id: str) -> ChangeInfo:
        """Fetch a single change.

        Args:
            change_id: Any identifier Gerrit accepts for a change

        Returns:
            Current change snapshot
        """
        return self._call('GET', _change_path(change_id), ChangeInfo)

    def abandon_change(
        self, change_id: str, abandon_input: Optional[AbandonInput] = None
    ) -> ChangeInfo:
        """Abandon a change.

        Args:
            change_id: Change identifier
            abandon_input: Optional abandon comment

        Returns:
            Change snapshot reported by the server
        """
        body = None
        if abandon_input is not None and abandon_input.message is not None:
            body = codec.encode(abandon_input)
        change = self._call(
            'POST', _change_path(change_id, 'abandon'), ChangeInfo, body=body
        )
        self.logger.info(f'Abandoned change {change.id}: status {change.status}')
        return change

    def restore_change(
        self, change_id: str, restore_input: Optional[RestoreInput] = None
    ) -> ChangeInfo:
        """Restore an abandoned change.

        Args:
            change_id: Change identifier
            restore_input: Optional restore comment

        Returns:
            Change snapshot reported by the server
        """
        body = None
        if restore_input is not None and restore_input.message is not None:
            body = codec.encode(restore_input)
        change = self._call(
            'POST', _change_path(change_id, 'restore'), ChangeInfo, body=body
        )
        self.logger.info(f'Restored change {change.id}: status {change.status}')
        return change

    def list_projects(self, options: ListProjectsInput) -> Dict[str, ProjectInfo]:
        """List projects.

        Args:
            options: Limit, regex and prefix filters

        Returns:
            Projects keyed by raw project name
        """
        return self._call(
            'GET', 'projects/', Dict[str, ProjectInfo], params=options.as_params()
        )

    def close(self):
        """Close the underlying transport."""
        self.executor.close()

    def __enter__(self):
        """Context manager entry."""
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        """Context manager exit."""
        self.close()
