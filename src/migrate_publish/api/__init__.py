"""Gerrit REST API client."""

from .client import CodeReviewApi, GerritApi
from .exceptions import (
    CredentialError,
    GerritApiError,
    GerritDecodeError,
    GerritError,
    GerritTransportError,
)
from .executor import HttpResponse, HttpTransport, RequestExecutor, RequestsTransport

__all__ = [
    'CodeReviewApi',
    'GerritApi',
    'CredentialError',
    'GerritApiError',
    'GerritDecodeError',
    'GerritError',
    'GerritTransportError',
    'HttpResponse',
    'HttpTransport',
    'RequestExecutor',
    'RequestsTransport',
]
