"""HTTP request execution against a Gerrit host."""

import base64
from abc import ABC, abstractmethod
from typing import Any, Dict, Optional
from urllib.parse import urlencode, urljoin, urlsplit

import requests
from loguru import logger
from pydantic import BaseModel, Field

from .credentials import CredentialStore
from .exceptions import GerritTransportError

USER_AGENT = 'migrate-publish/0.1.0'


class HttpResponse(BaseModel):
    """Raw HTTP response as seen by the executor."""

    status_code: int
    content: bytes = b''
    headers: Dict[str, str] = Field(default_factory=dict)

    @property
    def success(self) -> bool:
        return 200 <= self.status_code < 300


class HttpTransport(ABC):
    """Sends one HTTP request and returns the raw response."""

    @abstractmethod
    def send(
        self,
        method: str,
        url: str,
        headers: Dict[str, str],
        body: Optional[bytes] = None,
    ) -> HttpResponse:
        """Send a request.

        Raises:
            GerritTransportError: On connection or network failures
        """

    def close(self) -> None:
        """Release transport resources."""


class RequestsTransport(HttpTransport):
    """Production transport backed by ``requests.Session``."""

    def __init__(self, timeout: int = 30):
        """Initialize transport.

        Args:
            timeout: Request timeout in seconds
        """
        self.timeout = timeout
        self.session = requests.Session()
        self.logger = logger.bind(component='RequestsTransport')

    def send(
        self,
        method: str,
        url: str,
        headers: Dict[str, str],
        body: Optional[bytes] = None,
    ) -> HttpResponse:
        try:
            response = self.session.request(
                method, url, headers=headers, data=body, timeout=self.timeout
            )
        except requests.RequestException as e:
            self.logger.error(f'Network error during {method} {url}: {e}')
            raise GerritTransportError(
                f'Network error: {e}', method=method, url=url
            ) from e

        return HttpResponse(
            status_code=response.status_code,
            content=response.content,
            headers=dict(response.headers),
        )

    def close(self) -> None:
        self.session.close()


class RequestExecutor:
    """Issues authenticated requests relative to the Gerrit REST root."""

    def __init__(
        self,
        url: str,
        transport: Optional[HttpTransport] = None,
        credential_store: Optional[CredentialStore] = None,
    ):
        """Initialize request executor.

        Args:
            url: Gerrit URL; only scheme and host are used as the REST root
            transport: Transport used to send requests
            credential_store: Store resolving credentials per host

        Raises:
            ValueError: If the URL is not http or https
        """
        parts = urlsplit(url)
        if parts.scheme not in ('http', 'https') or not parts.hostname:
            raise ValueError(f'Gerrit URL must be http(s)://host[/path]: {url}')

        host = parts.hostname
        if parts.port:
            host = f'{host}:{parts.port}'
        self.base_url = f'{parts.scheme}://{host}'
        self.transport = transport or RequestsTransport()
        self.credential_store = credential_store
        self.logger = logger.bind(component='RequestExecutor')

    def build_url(self, path: str, params: Optional[Dict[str, Any]] = None) -> str:
        """Build full request URL from a REST path and query parameters.

        Args:
            path: REST path such as ``changes/``
            params: Query parameters; None values are omitted

        Returns:
            Full request URL
        """
        url = urljoin(self.base_url + '/', path.lstrip('/'))
        query = {k: v for k, v in (params or {}).items() if v is not None}
        if query:
            url = f'{url}?{urlencode(query)}'
        return url

    def _headers(self, url: str, has_body: bool) -> Dict[str, str]:
        headers = {'Accept': 'application/json', 'User-Agent': USER_AGENT}
        if has_body:
            headers['Content-Type'] = 'application/json; charset=UTF-8'

        if self.credential_store is not None:
            credentials = self.credential_store.resolve(url)
            if credentials is not None:
                token = f'{credentials.username}:{credentials.password.get_secret_value()}'
                encoded = base64.b64encode(token.encode('utf-8')).decode('ascii')
                headers['Authorization'] = f'Basic {encoded}'
        return headers

    def execute(
        self,
        method: str,
        path: str,
        params: Optional[Dict[str, Any]] = None,
        body: Optional[bytes] = None,
    ) -> HttpResponse:
        """Execute a request and return the raw response, whatever its status.

        Args:
            method: HTTP method
            path: REST path relative to the root
            params: Query parameters
            body: Request body

        Returns:
            Raw HTTP response
        """
        url = self.build_url(path, params)
        headers = self._headers(url, body is not None)
        self.logger.debug(f'{method} {url}')
        return self.transport.send(method, url, headers, body)

    def close(self) -> None:
        self.transport.close()
