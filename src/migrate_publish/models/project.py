"""Gerrit project models."""

from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class ProjectInfo(BaseModel):
    """Snapshot of a Gerrit project as returned by the project listing."""

    model_config = ConfigDict(frozen=True)

    id: str = Field(..., description='URL-escaped project name')
    name: Optional[str] = Field(default=None, description='Project name')
    parent: Optional[str] = Field(default=None, description='Parent project')
    description: Optional[str] = Field(default=None, description='Description')
    state: Optional[str] = Field(default=None, description='ACTIVE, READ_ONLY or HIDDEN')


class ListProjectsInput(BaseModel):
    """Parameters of a project listing."""

    model_config = ConfigDict(frozen=True)

    limit: Optional[int] = Field(default=None, description='Maximum results')
    regex: Optional[str] = Field(default=None, description='Name regex')
    prefix: Optional[str] = Field(default=None, description='Name prefix')

    def with_limit(self, limit: int) -> 'ListProjectsInput':
        return self.model_copy(update={'limit': limit})

    def with_regex(self, regex: str) -> 'ListProjectsInput':
        return self.model_copy(update={'regex': regex})

    def with_prefix(self, prefix: str) -> 'ListProjectsInput':
        return self.model_copy(update={'prefix': prefix})

    def as_params(self) -> dict:
        return {'n': self.limit, 'r': self.regex, 'p': self.prefix}
