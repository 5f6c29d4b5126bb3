"""Wire models for Bitbucket JSON bodies and their mapping to domain models."""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, Field

from bbrepolist.exceptions import InvalidResponseError
from bbrepolist.models import AuthenticatedUser, RepoPage, Repository


class RepositoryPayload(BaseModel):
    """Repository object as returned by ``GET /repositories/{workspace}``."""
    name: str | None = None
    slug: str | None = None
    created_on: datetime | None = None
    updated_on: datetime | None = None
    open_pull_requests_count: int | None = Field(default=None, ge=0)

    def to_domain(self) -> Repository:
        return Repository(
            name=self.name or "",
            created_on=self.created_on,
            last_updated_on=self.updated_on,
            open_pull_requests_count=self.open_pull_requests_count,
            slug=self.slug,
        )


class RepoPagePayload(BaseModel):
    """Paginated envelope: ``{"values": [...], "next": "<url>"}``."""
    values: list[RepositoryPayload | None] | None = None
    next: str | None = None

    def to_domain(self) -> RepoPage:
        repositories: list[Repository] = []
        for index, item in enumerate(self.values or []):
            if item is None:
                raise InvalidResponseError(
                    f"Repository page contains a null entry at index {index}"
                )
            try:
                repositories.append(item.to_domain())
            except ValueError as exc:
                raise InvalidResponseError(
                    f"Repository page entry {index} is invalid: {exc}"
                ) from exc
        return RepoPage(values=repositories, next=self.next)


class UserPayload(BaseModel):
    """Body of ``GET /user``."""
    uuid: str | None = None
    display_name: str | None = None
    nickname: str | None = None
    account_id: str | None = None

    def to_domain(self) -> AuthenticatedUser:
        try:
            return AuthenticatedUser(uuid=self.uuid or "", display_name=self.display_name)
        except ValueError as exc:
            raise InvalidResponseError(f"Bitbucket user response is invalid: {exc}") from exc


class PullRequestSummaryPayload(BaseModel):
    """Pull request listing reduced to its ``size`` (total matching items)."""
    size: int | None = Field(default=None, ge=0)
