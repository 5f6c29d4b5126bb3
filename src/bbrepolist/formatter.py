"""Terminal output formatting for repository listings."""

from __future__ import annotations

import json
from collections.abc import Sequence
from datetime import UTC, datetime

import click

from bbrepolist.models import (
    AbandonedRepositoryRow,
    FilterPattern,
    RepoLoadProgress,
    Repository,
    full_months_between,
)

MISSING = "-"


def _format_date(value: datetime | None) -> str:
    return value.strftime("%Y-%m-%d") if value is not None else MISSING


def _format_count(value: int | None) -> str:
    return str(value) if value is not None else MISSING


def sort_repositories_by_name(repositories: Sequence[Repository]) -> list[Repository]:
    """Case-insensitive sort by repository name."""
    return sorted(repositories, key=lambda r: r.name.casefold())


def repositories_with_open_pull_requests(
    repositories: Sequence[Repository],
) -> list[Repository]:
    """Repositories with at least one open PR, busiest first."""
    with_prs = [r for r in repositories if (r.open_pull_requests_count or 0) > 0]
    return sorted(
        with_prs,
        key=lambda r: (-(r.open_pull_requests_count or 0), r.name.casefold()),
    )


def find_abandoned_repositories(
    repositories: Sequence[Repository],
    threshold_months: int,
    now: datetime | None = None,
) -> list[AbandonedRepositoryRow]:
    """Repositories inactive for more than *threshold_months*.

    Last activity is the last update, or the creation date when the
    repository was never updated. Repositories with neither are skipped.
    """
    reference = now if now is not None else datetime.now(UTC)
    rows: list[AbandonedRepositoryRow] = []
    for repository in repositories:
        last_activity_on = repository.last_updated_on or repository.created_on
        if last_activity_on is None:
            continue
        months = full_months_between(last_activity_on, reference)
        if months > threshold_months:
            rows.append(AbandonedRepositoryRow(
                repository=repository,
                last_activity_on=last_activity_on,
                months_without_activity=months,
            ))
    return sorted(
        rows,
        key=lambda row: (-row.months_without_activity, row.repository.name.casefold()),
    )


def render_table(headers: Sequence[str], rows: Sequence[Sequence[str]]) -> str:
    """Render a plain-text table with a styled header row."""
    widths = [len(h) for h in headers]
    for row in rows:
        for i, cell in enumerate(row):
            widths[i] = max(widths[i], len(cell))

    def line(cells: Sequence[str]) -> str:
        return "| " + " | ".join(c.ljust(w) for c, w in zip(cells, widths)) + " |"

    separator = "+-" + "-+-".join("-" * w for w in widths) + "-+"
    header = "| " + " | ".join(
        click.style(h.ljust(w), fg="green", bold=True) for h, w in zip(headers, widths)
    ) + " |"

    lines = [separator, header, separator]
    lines.extend(line(row) for row in rows)
    lines.append(separator)
    return "\n".join(lines)


def format_repositories_table(repositories: Sequence[Repository]) -> str:
    rows = [
        [
            str(i),
            r.name,
            _format_date(r.created_on),
            _format_date(r.last_updated_on),
            _format_count(r.open_pull_requests_count),
        ]
        for i, r in enumerate(repositories, 1)
    ]
    return render_table(
        ["#", "Repository name", "Created on", "Last updated", "Open pull requests"],
        rows,
    )


def format_open_pull_requests_table(repositories: Sequence[Repository]) -> str:
    rows = [
        [str(i), r.name, _format_count(r.open_pull_requests_count)]
        for i, r in enumerate(repositories, 1)
    ]
    return render_table(["#", "Repository name", "Open pull requests"], rows)


def format_abandoned_table(rows: Sequence[AbandonedRepositoryRow]) -> str:
    table_rows = [
        [
            str(i),
            row.repository.name,
            _format_date(row.repository.created_on),
            _format_date(row.last_activity_on),
            str(row.months_without_activity),
        ]
        for i, row in enumerate(rows, 1)
    ]
    return render_table(
        ["#", "Repository name", "Created on", "Last activity on", "Months inactive"],
        table_rows,
    )


def format_filter_info(filter_pattern: FilterPattern) -> str:
    if filter_pattern.has_filter:
        phrase = click.style(f'"{filter_pattern.phrase}"', fg="yellow")
        return f"Filter: contains {phrase}"
    return "Filter: (none) - showing all repositories"


def format_progress(progress: RepoLoadProgress) -> str:
    text = f"Loading... seen: {progress.seen}, matched: {progress.matched}"
    if progress.is_loading_pull_request_statistics:
        text += (
            f", open PRs: {progress.pull_request_statistics_loaded}"
            f"/{progress.pull_request_statistics_total}"
        )
    return text


def format_results(
    workspace: str,
    repositories: Sequence[Repository],
    abandoned_months_threshold: int,
    now: datetime | None = None,
) -> str:
    """Format every results section; *repositories* should already be sorted."""
    lines: list[str] = [
        f"Workspace: {click.style(workspace, fg='green')}",
        f"Results: {click.style(str(len(repositories)), fg='green')} (sorted by name)",
        "",
        format_repositories_table(repositories),
    ]

    with_prs = repositories_with_open_pull_requests(repositories)
    if with_prs:
        lines.append("")
        lines.append(click.style("Repositories with open pull requests", bold=True))
        lines.append(format_open_pull_requests_table(with_prs))

    abandoned = find_abandoned_repositories(repositories, abandoned_months_threshold, now)
    if abandoned:
        lines.append("")
        lines.append(
            click.style("Abandoned repositories", bold=True)
            + f" (more than {abandoned_months_threshold} months without activity)"
        )
        lines.append(format_abandoned_table(abandoned))

    return "\n".join(lines)


def format_json(repositories: Sequence[Repository]) -> str:
    """Format repositories as a JSON array."""
    return json.dumps(
        [r.model_dump(mode="json") for r in repositories],
        indent=2,
    )
