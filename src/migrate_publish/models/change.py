"""Gerrit change models."""

from datetime import datetime, timezone
from enum import Enum
from typing import FrozenSet, Optional

from pydantic import BaseModel, ConfigDict, Field, field_serializer, field_validator

# Gerrit timestamps are UTC with nanosecond precision: 2017-12-01 17:33:30.000000000
GERRIT_TIMESTAMP_FORMAT = '%Y-%m-%d %H:%M:%S.%f'


def parse_timestamp(value: str) -> datetime:
    """Parse a Gerrit timestamp, truncating nanoseconds to microseconds."""
    date_part, _, fraction = value.strip().partition('.')
    text = f'{date_part}.{(fraction or "0")[:6]}'
    return datetime.strptime(text, GERRIT_TIMESTAMP_FORMAT).replace(
        tzinfo=timezone.utc
    )


class ChangeStatus(str, Enum):
    """Change status.

    Values the server may add later decode into a pseudo-member carrying the
    raw string, so they survive a decode/encode cycle.
    """

    NEW = 'NEW'
    MERGED = 'MERGED'
    ABANDONED = 'ABANDONED'
    DRAFT = 'DRAFT'

    @classmethod
    def _missing_(cls, value):
        if not isinstance(value, str):
            return None
        member = str.__new__(cls, value)
        member._name_ = value
        member._value_ = value
        return member

    def __str__(self) -> str:
        return self.value


class AccountInfo(BaseModel):
    """Gerrit account reference."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    account_id: int = Field(..., alias='_account_id', description='Account ID')
    name: Optional[str] = Field(default=None, description='Full name')
    email: Optional[str] = Field(default=None, description='Preferred email')
    username: Optional[str] = Field(default=None, description='User name')


class ChangeInfo(BaseModel):
    """Read-only snapshot of a Gerrit change."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    id: str = Field(..., description='Change ID as project~branch~Change-Id')
    project: str = Field(..., description='Project name')
    branch: str = Field(..., description='Destination branch')
    change_id: Optional[str] = Field(default=None, description='Change-Id footer')
    subject: Optional[str] = Field(default=None, description='Commit subject')
    status: ChangeStatus = Field(..., description='Change status')
    number: Optional[int] = Field(
        default=None, alias='_number', description='Legacy numeric ID'
    )
    owner: Optional[AccountInfo] = Field(default=None, description='Change owner')
    mergeable: Optional[bool] = Field(default=None, description='Change is mergeable')
    insertions: int = Field(default=0, description='Inserted lines')
    deletions: int = Field(default=0, description='Deleted lines')
    submit_type: Optional[str] = Field(default=None, description='Submit type')
    created: Optional[datetime] = Field(default=None, description='Creation time')
    updated: Optional[datetime] = Field(default=None, description='Last update time')
    hashtags: FrozenSet[str] = Field(default_factory=frozenset, description='Hashtags')

    @field_validator('status', mode='plain')
    @classmethod
    def validate_status(cls, v):
        """Keep unknown statuses instead of rejecting them."""
        if isinstance(v, str):
            return ChangeStatus(v)
        raise ValueError(f'Change status must be a string, got {type(v).__name__}')

    @field_serializer('status')
    def serialize_status(self, v: ChangeStatus) -> str:
        return str(v)

    @field_validator('created', 'updated', mode='before')
    @classmethod
    def validate_timestamp(cls, v):
        """Parse Gerrit's space separated nanosecond timestamps."""
        if isinstance(v, str):
            return parse_timestamp(v)
        return v


class ChangesQuery(BaseModel):
    """Parameters of a change search."""

    model_config = ConfigDict(frozen=True)

    query: str = Field(..., description='Gerrit search expression')
    limit: Optional[int] = Field(default=None, description='Maximum results')
    start: Optional[int] = Field(default=None, description='Results to skip')

    def with_limit(self, limit: int) -> 'ChangesQuery':
        return self.model_copy(update={'limit': limit})

    def with_start(self, start: int) -> 'ChangesQuery':
        return self.model_copy(update={'start': start})

    def as_params(self) -> dict:
        return {'q': self.query, 'n': self.limit, 'S': self.start}


class AbandonInput(BaseModel):
    """Body of an abandon request."""

    model_config = ConfigDict(frozen=True)

    message: Optional[str] = Field(default=None, description='Abandon comment')

    @classmethod
    def create_without_comment(cls) -> 'AbandonInput':
        return cls()

    @classmethod
    def create(cls, message: str) -> 'AbandonInput':
        return cls(message=message)


class RestoreInput(BaseModel):
    """Body of a restore request."""

    model_config = ConfigDict(frozen=True)

    message: Optional[str] = Field(default=None, description='Restore comment')

    @classmethod
    def create_without_comment(cls) -> 'RestoreInput':
        return cls()

    @classmethod
    def create(cls, message: str) -> 'RestoreInput':
        return cls(message=message)
