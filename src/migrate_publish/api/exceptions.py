"""Gerrit API exceptions and response classification."""

from typing import Optional


class GerritError(Exception):
    """Base exception for code review client errors."""


class GerritTransportError(GerritError):
    """Connection or network failure while talking to Gerrit."""

    def __init__(
        self,
        message: str,
        method: Optional[str] = None,
        url: Optional[str] = None,
    ):
        """Initialize transport error.

        Args:
            message: Error message
            method: HTTP method of the failed request
            url: URL of the failed request
        """
        super().__init__(message)
        self.method = method
        self.url = url


class GerritApiError(GerritError):
    """Non-success HTTP response from the Gerrit REST API."""

    def __init__(
        self,
        message: str,
        exit_code: int,
        body: str = '',
        method: Optional[str] = None,
        url: Optional[str] = None,
    ):
        """Initialize Gerrit API error.

        Args:
            message: Error message
            exit_code: HTTP status code returned by the server
            body: Raw response body
            method: HTTP method of the failed request
            url: URL of the failed request
        """
        super().__init__(message)
        self.exit_code = exit_code
        self.body = body
        self.method = method
        self.url = url


class GerritDecodeError(GerritError):
    """Response body could not be decoded into the expected records."""

    def __init__(self, message: str, content: str = ''):
        """Initialize decode error.

        Args:
            message: Error message
            content: Offending response text (possibly truncated)
        """
        super().__init__(message)
        self.content = content


class CredentialError(GerritError):
    """Credentials could not be resolved from the configured store."""


def check_response(method: str, url: str, status: int, content: bytes) -> None:
    """Raise GerritApiError for any status outside the 2xx range.

    Args:
        method: HTTP method of the request
        url: Full request URL
        status: HTTP status code
        content: Raw response body

    Raises:
        GerritApiError: If the status is not a success
    """
    if 200 <= status < 300:
        return

    body = content.decode('utf-8', errors='replace')
    raise GerritApiError(
        f'{method} {url} failed with HTTP {status}: {body}',
        exit_code=status,
        body=body,
        method=method,
        url=url,
    )
