"""Data models for bbrepolist."""

from __future__ import annotations

from datetime import UTC, datetime

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    computed_field,
    field_validator,
    model_validator,
)

NOT_AVAILABLE = "<N/A>"


def full_months_between(start: datetime, end: datetime) -> int:
    """Number of whole calendar months from *start* to *end* (never negative)."""
    if end <= start:
        return 0
    months = (end.year - start.year) * 12 + end.month - start.month
    if end.day < start.day:
        months -= 1
    return max(months, 0)


def _as_utc(value: datetime | None) -> datetime | None:
    if value is not None and value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value


class Repository(BaseModel):
    """A Bitbucket repository as listed in a workspace."""
    model_config = ConfigDict(frozen=True)

    name: str
    created_on: datetime | None = None
    last_updated_on: datetime | None = None
    open_pull_requests_count: int | None = Field(default=None, ge=0)
    slug: str | None = None

    @field_validator("name")
    @classmethod
    def _validate_name(cls, value: str) -> str:
        stripped = value.strip()
        if not stripped:
            raise ValueError("Repository name cannot be empty")
        return stripped

    @field_validator("slug")
    @classmethod
    def _normalize_slug(cls, value: str | None) -> str | None:
        if value is None:
            return None
        return value.strip() or None

    @field_validator("created_on", "last_updated_on")
    @classmethod
    def _assume_utc(cls, value: datetime | None) -> datetime | None:
        return _as_utc(value)

    @computed_field  # type: ignore[prop-decorator]
    @property
    def can_calculate_inactivity_timing(self) -> bool:
        return self.created_on is not None and self.last_updated_on is not None

    @computed_field  # type: ignore[prop-decorator]
    @property
    def months_without_activity(self) -> int:
        if not self.can_calculate_inactivity_timing:
            return 0
        return full_months_between(self.last_updated_on, datetime.now(UTC))  # type: ignore[arg-type]

    def with_open_pull_requests_count(self, count: int) -> Repository:
        """Return a copy of this repository carrying *count* open pull requests."""
        if count < 0:
            raise ValueError(f"Open pull request count cannot be negative: {count}")
        return self.model_copy(update={"open_pull_requests_count": count})


class RepoPage(BaseModel):
    """One page of the workspace repository listing."""
    model_config = ConfigDict(frozen=True)

    values: list[Repository] = []
    next: str | None = None


class FilterPattern(BaseModel):
    """Optional case-insensitive repository name filter.

    The phrase is stripped on construction and a blank phrase is stored as
    ``None``, so "no phrase" and "blank phrase" behave identically: every
    repository matches and :attr:`has_filter` is ``False``.
    """
    model_config = ConfigDict(frozen=True)

    phrase: str | None = None

    @field_validator("phrase")
    @classmethod
    def _normalize_phrase(cls, value: str | None) -> str | None:
        if value is None:
            return None
        return value.strip() or None

    @classmethod
    def from_phrase(cls, phrase: str | None) -> FilterPattern:
        return cls(phrase=phrase)

    @property
    def has_filter(self) -> bool:
        return self.phrase is not None

    def matches(self, repository: Repository) -> bool:
        if self.phrase is None:
            return True
        return self.phrase.lower() in repository.name.lower()


class RepoLoadProgress(BaseModel):
    """Immutable progress snapshot emitted while repositories are loading."""
    model_config = ConfigDict(frozen=True)

    seen: int = Field(ge=0)
    matched: int = Field(ge=0)
    is_loading_pull_request_statistics: bool = False
    pull_request_statistics_loaded: int = Field(default=0, ge=0)
    pull_request_statistics_total: int = Field(default=0, ge=0)

    @model_validator(mode="after")
    def _check_consistency(self) -> RepoLoadProgress:
        if self.matched > self.seen:
            raise ValueError(
                f"matched ({self.matched}) cannot exceed seen ({self.seen})"
            )
        if self.pull_request_statistics_loaded > self.pull_request_statistics_total:
            raise ValueError(
                f"loaded ({self.pull_request_statistics_loaded}) cannot exceed "
                f"total ({self.pull_request_statistics_total})"
            )
        return self


class AuthenticatedUser(BaseModel):
    """The Bitbucket account the configured credentials belong to."""
    model_config = ConfigDict(frozen=True)

    uuid: str
    display_name: str = NOT_AVAILABLE

    @field_validator("uuid")
    @classmethod
    def _validate_uuid(cls, value: str) -> str:
        stripped = value.strip()
        if not stripped:
            raise ValueError("User uuid cannot be empty")
        return stripped

    @field_validator("display_name", mode="before")
    @classmethod
    def _default_display_name(cls, value: object) -> object:
        if value is None or (isinstance(value, str) and not value.strip()):
            return NOT_AVAILABLE
        return value


class AbandonedRepositoryRow(BaseModel):
    """A repository that has been inactive for longer than the threshold."""
    repository: Repository
    last_activity_on: datetime
    months_without_activity: int = Field(ge=0)


class RepositoryReportData(BaseModel):
    """Everything the PDF report needs."""
    workspace: str
    filter_phrase: str | None = None
    abandoned_months_threshold: int = Field(ge=1)
    generated_at: datetime
    repositories: list[Repository] = []

    @field_validator("workspace")
    @classmethod
    def _validate_workspace(cls, value: str) -> str:
        stripped = value.strip()
        if not stripped:
            raise ValueError("Workspace cannot be empty")
        return stripped

    @field_validator("filter_phrase")
    @classmethod
    def _normalize_filter(cls, value: str | None) -> str | None:
        if value is None:
            return None
        return value.strip() or None
