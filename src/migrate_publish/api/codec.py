"""Codec for Gerrit's XSSI-protected JSON responses."""

from functools import lru_cache
from typing import Any, Type, TypeVar

from pydantic import BaseModel, TypeAdapter, ValidationError

from .exceptions import GerritDecodeError

# Gerrit prepends this line to every JSON response to block script inclusion.
XSSI_PREFIX = ")]}'"

T = TypeVar('T')


def strip_envelope(content: bytes) -> str:
    """Return the JSON text of a response, without the XSSI prefix line.

    Args:
        content: Raw response body

    Returns:
        JSON text ready to be parsed

    Raises:
        GerritDecodeError: If the body is not valid UTF-8
    """
    try:
        text = content.decode('utf-8')
    except UnicodeDecodeError as e:
        raise GerritDecodeError(f'Response is not valid UTF-8: {e}') from e

    first_line, _, rest = text.partition('\n')
    if first_line.rstrip('\r') == XSSI_PREFIX:
        return rest
    return text


@lru_cache(maxsize=None)
def _adapter(type_: Any) -> TypeAdapter:
    return TypeAdapter(type_)


def decode(content: bytes, type_: Type[T]) -> T:
    """Decode a Gerrit response body into typed records.

    Args:
        content: Raw response body, with or without the XSSI prefix
        type_: Target type, e.g. ``List[ChangeInfo]``

    Returns:
        Validated records

    Raises:
        GerritDecodeError: If the JSON is malformed or has an unexpected shape
    """
    text = strip_envelope(content)
    try:
        return _adapter(type_).validate_json(text)
    except ValidationError as e:
        raise GerritDecodeError(
            f'Cannot decode response as {getattr(type_, "__name__", type_)}: {e}',
            content=text[:500],
        ) from e


def encode(model: BaseModel) -> bytes:
    """Serialize a request body, omitting unset optional fields."""
    return model.model_dump_json(exclude_none=True, by_alias=True).encode('utf-8')
