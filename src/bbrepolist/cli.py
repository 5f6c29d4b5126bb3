"""Click-based CLI for bbrepolist."""

from __future__ import annotations

import asyncio
import logging
import sys
from datetime import datetime

import click

from bbrepolist.bitbucket_client import create_client
from bbrepolist.config import BitbucketConfig, PdfConfig, load_config
from bbrepolist.exceptions import (
    BBRepoListError,
    BitbucketAPIError,
    ConfigError,
    InvalidResponseError,
)
from bbrepolist.formatter import (
    format_filter_info,
    format_json,
    format_progress,
    format_results,
    sort_repositories_by_name,
)
from bbrepolist.models import FilterPattern, RepoLoadProgress, Repository, RepositoryReportData
from bbrepolist.report import render_pdf_report
from bbrepolist.service import RepositoryService

logger = logging.getLogger(__name__)


def _stdin_is_interactive() -> bool:
    return sys.stdin.isatty()


def _echo_progress(progress: RepoLoadProgress) -> None:
    click.echo("\r" + format_progress(progress), nl=False, err=True)


async def _load_repositories(
    config: BitbucketConfig,
    filter_pattern: FilterPattern,
    quiet: bool,
) -> list[Repository] | None:
    """Authenticate, then load repositories. Returns None when auth fails."""
    async with create_client(config) as client:
        try:
            user = await client.auth_self_check()
        except (BitbucketAPIError, InvalidResponseError) as exc:
            click.echo(f"{click.style('Auth failed:', fg='red')} {exc}", err=True)
            return None

        if not quiet:
            click.echo(
                f"{click.style('Auth OK', fg='green')} as "
                f"{click.style(user.display_name, bold=True)}"
            )
            click.echo(f"UUID: {user.uuid}\n")
            click.echo(format_filter_info(filter_pattern) + "\n")

        service = RepositoryService(client, config)
        repositories = await service.get_repositories(
            filter_pattern, progress=None if quiet else _echo_progress
        )
        if not quiet:
            click.echo("", err=True)
        return repositories


def _write_pdf(
    pdf: PdfConfig,
    config: BitbucketConfig,
    filter_pattern: FilterPattern,
    repositories: list[Repository],
    err: bool = False,
) -> None:
    report_data = RepositoryReportData(
        workspace=config.workspace,
        filter_phrase=filter_pattern.phrase,
        abandoned_months_threshold=config.abandoned_months_threshold,
        generated_at=datetime.now().astimezone(),
        repositories=repositories,
    )
    path = render_pdf_report(report_data, pdf.resolve_output_path())
    click.echo(f"PDF report saved: {path}", err=err)


@click.group()
@click.version_option(package_name="bbrepolist")
def main() -> None:
    """bbrepolist - list and report on Bitbucket workspace repositories."""


@main.command("list")
@click.option("--filter", "-f", "phrase", default=None,
              help="Repository name phrase (contains, case-insensitive); "
                   "prompted for on a terminal when omitted")
@click.option("--workspace", default=None, help="Bitbucket workspace")
@click.option("--email", envvar="BITBUCKET_EMAIL", default=None,
              help="Account email used for API token auth")
@click.option("--token", envvar="BITBUCKET_API_TOKEN", default=None,
              help="Bitbucket API token")
@click.option("--config", "config_path", default=None, help="Config file path")
@click.option("--pr-stats/--no-pr-stats", default=None,
              help="Load open pull request counts")
@click.option("--pdf/--no-pdf", "pdf_enabled", default=None, help="Write a PDF report")
@click.option("--pdf-output", default=None, help="PDF report path")
@click.option("--json", "output_json", is_flag=True, help="Output as JSON")
@click.option("--verbose", "-v", is_flag=True, help="Enable debug logging")
def list_repositories(
    phrase: str | None,
    workspace: str | None,
    email: str | None,
    token: str | None,
    config_path: str | None,
    pr_stats: bool | None,
    pdf_enabled: bool | None,
    pdf_output: str | None,
    output_json: bool,
    verbose: bool,
) -> None:
    """List the repositories of a Bitbucket workspace."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(levelname)s: %(name)s: %(message)s",
    )

    try:
        config = load_config(config_path)
        overrides: dict[str, object] = {
            key: value
            for key, value in (
                ("workspace", workspace),
                ("auth_email", email),
                ("auth_api_token", token),
                ("load_open_pull_requests_statistics", pr_stats),
            )
            if value is not None and value != ""
        }
        bitbucket = BitbucketConfig(**{**config.bitbucket.model_dump(), **overrides})
        pdf_overrides: dict[str, object] = {}
        if pdf_enabled is not None:
            pdf_overrides["enabled"] = pdf_enabled
        if pdf_output:
            pdf_overrides["output_path"] = pdf_output
        pdf = PdfConfig(**{**config.pdf.model_dump(), **pdf_overrides})
    except (ConfigError, ValueError) as exc:
        click.echo(f"Error: {exc}", err=True)
        sys.exit(1)

    missing = bitbucket.missing_fields()
    if missing:
        click.echo(
            f"Error: missing Bitbucket settings: {', '.join(missing)}. "
            "Use --workspace/--email/--token, BBREPOLIST_* variables or a config file.",
            err=True,
        )
        sys.exit(1)

    if not output_json:
        click.echo(click.style("Bitbucket Repository List", fg="green", bold=True))
        if phrase is None and _stdin_is_interactive():
            phrase = click.prompt(
                "Search phrase (empty = all)", default="", show_default=False
            )

    filter_pattern = FilterPattern.from_phrase(phrase)

    try:
        repositories = asyncio.run(
            _load_repositories(bitbucket, filter_pattern, quiet=output_json)
        )
    except BBRepoListError as exc:
        logger.debug("Repository loading failed", exc_info=True)
        click.echo(f"Error: {exc}", err=True)
        sys.exit(1)

    if repositories is None:
        sys.exit(1)

    sorted_repositories = sort_repositories_by_name(repositories)

    if output_json:
        click.echo(format_json(sorted_repositories))
    else:
        click.echo(format_results(
            bitbucket.workspace,
            sorted_repositories,
            bitbucket.abandoned_months_threshold,
        ))

    if pdf.enabled:
        _write_pdf(pdf, bitbucket, filter_pattern, sorted_repositories, err=output_json)

    if not output_json:
        click.echo(click.style("\nDone.", fg="green", bold=True))
