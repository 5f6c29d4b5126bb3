"""PDF report rendering with reportlab."""

from __future__ import annotations

import logging
from pathlib import Path
from urllib.parse import quote
from xml.sax.saxutils import escape

from reportlab.lib import colors
from reportlab.lib.pagesizes import A4, landscape
from reportlab.lib.styles import ParagraphStyle, getSampleStyleSheet
from reportlab.pdfgen.canvas import Canvas
from reportlab.platypus import Paragraph, SimpleDocTemplate, Spacer, Table, TableStyle
from reportlab.platypus.flowables import Flowable

from bbrepolist.formatter import (
    MISSING,
    find_abandoned_repositories,
    repositories_with_open_pull_requests,
)
from bbrepolist.models import RepositoryReportData

logger = logging.getLogger(__name__)

_BITBUCKET_WEB_URL = "https://bitbucket.org"
_HEADER_BACKGROUND = colors.HexColor("#1f2937")
_HEADER_TEXT = colors.HexColor("#f9fafb")
_LINK_COLOR = "#1e40af"
_MARGIN = 18


def build_repository_url(workspace: str, slug: str | None) -> str | None:
    """Browser URL for a repository, or None without a workspace and slug."""
    if not workspace or not workspace.strip() or not slug or not slug.strip():
        return None
    return (
        f"{_BITBUCKET_WEB_URL}/{quote(workspace.strip(), safe='')}"
        f"/{quote(slug.strip(), safe='')}"
    )


def build_pull_requests_url(workspace: str, slug: str | None) -> str | None:
    repository_url = build_repository_url(workspace, slug)
    if repository_url is None:
        return None
    return f"{repository_url}/pull-requests/"


class _ReportStyles:
    def __init__(self) -> None:
        sample = getSampleStyleSheet()
        self.title = ParagraphStyle("ReportTitle", parent=sample["Title"], fontSize=16,
                                    alignment=0, spaceAfter=4)
        self.meta = ParagraphStyle("ReportMeta", parent=sample["Normal"], fontSize=9)
        self.section = ParagraphStyle("ReportSection", parent=sample["Heading2"], fontSize=12,
                                      spaceBefore=10, spaceAfter=4)
        self.cell = ParagraphStyle("ReportCell", parent=sample["Normal"], fontSize=8)
        self.header_cell = ParagraphStyle("ReportHeaderCell", parent=self.cell,
                                          fontName="Helvetica-Bold", fontSize=9,
                                          textColor=_HEADER_TEXT)
        self.muted = ParagraphStyle("ReportMuted", parent=self.meta, textColor=colors.grey)


def _text(value: str, style: ParagraphStyle) -> Paragraph:
    return Paragraph(escape(value), style)


def _link(value: str, url: str | None, style: ParagraphStyle) -> Paragraph:
    if url is None:
        return _text(value, style)
    return Paragraph(
        f'<link href="{escape(url)}" color="{_LINK_COLOR}"><u>{escape(value)}</u></link>',
        style,
    )


def _table(
    headers: list[str],
    rows: list[list[Paragraph]],
    col_widths: list[float],
    styles: _ReportStyles,
) -> Table:
    data: list[list[Paragraph]] = [[_text(h, styles.header_cell) for h in headers], *rows]
    table = Table(data, colWidths=col_widths, repeatRows=1)
    table.setStyle(TableStyle([
        ("BACKGROUND", (0, 0), (-1, 0), _HEADER_BACKGROUND),
        ("GRID", (0, 0), (-1, -1), 0.75, colors.black),
        ("VALIGN", (0, 0), (-1, -1), "MIDDLE"),
        ("LEFTPADDING", (0, 0), (-1, -1), 6),
        ("RIGHTPADDING", (0, 0), (-1, -1), 6),
        ("TOPPADDING", (0, 0), (-1, -1), 4),
        ("BOTTOMPADDING", (0, 0), (-1, -1), 4),
    ]))
    return table


def _columns(width: float, weights: list[float]) -> list[float]:
    index_width = 26.0
    remaining = width - index_width
    total = sum(weights)
    return [index_width, *(remaining * w / total for w in weights)]


def build_report_story(data: RepositoryReportData, width: float) -> list[Flowable]:
    """Flowables for the report header and its three sections."""
    styles = _ReportStyles()
    workspace = data.workspace
    story: list[Flowable] = [
        _text("Bitbucket Repository Report", styles.title),
        _text(f"Generated: {data.generated_at:%Y-%m-%d %H:%M:%S %z}".rstrip(), styles.meta),
        _text(f"Workspace: {workspace}", styles.meta),
        _text(f"Filter: {data.filter_phrase or '(none)'}", styles.meta),
        _text(f"Results: {len(data.repositories)}", styles.meta),
        Spacer(1, 8),
        _text("Repositories", styles.section),
    ]

    if not data.repositories:
        story.append(_text("No repositories found.", styles.muted))
    else:
        rows = []
        for i, repo in enumerate(data.repositories, 1):
            open_prs = (
                str(repo.open_pull_requests_count)
                if repo.open_pull_requests_count is not None else MISSING
            )
            pr_url = (
                build_pull_requests_url(workspace, repo.slug)
                if repo.open_pull_requests_count is not None else None
            )
            rows.append([
                _text(str(i), styles.cell),
                _link(repo.name, build_repository_url(workspace, repo.slug), styles.cell),
                _text(f"{repo.created_on:%Y-%m-%d}" if repo.created_on else MISSING, styles.cell),
                _text(
                    f"{repo.last_updated_on:%Y-%m-%d}" if repo.last_updated_on else MISSING,
                    styles.cell,
                ),
                _link(open_prs, pr_url, styles.cell),
            ])
        story.append(_table(
            ["#", "Repository", "Created on", "Last updated", "Open PRs"],
            rows,
            _columns(width, [3.0, 1.1, 1.1, 1.0]),
            styles,
        ))

    with_prs = repositories_with_open_pull_requests(data.repositories)
    if with_prs:
        story.append(_text("Repositories with open pull requests", styles.section))
        rows = [
            [
                _text(str(i), styles.cell),
                _link(repo.name, build_repository_url(workspace, repo.slug), styles.cell),
                _link(
                    str(repo.open_pull_requests_count),
                    build_pull_requests_url(workspace, repo.slug),
                    styles.cell,
                ),
            ]
            for i, repo in enumerate(with_prs, 1)
        ]
        story.append(_table(
            ["#", "Repository", "Open PRs"], rows, _columns(width, [3.0, 1.0]), styles,
        ))

    threshold = data.abandoned_months_threshold
    abandoned = find_abandoned_repositories(data.repositories, threshold, data.generated_at)
    if abandoned:
        story.append(_text(
            f"Abandoned repositories (more than {threshold} months inactive)", styles.section,
        ))
        rows = [
            [
                _text(str(i), styles.cell),
                _link(
                    row.repository.name,
                    build_repository_url(workspace, row.repository.slug),
                    styles.cell,
                ),
                _text(
                    f"{row.repository.created_on:%Y-%m-%d}"
                    if row.repository.created_on else MISSING,
                    styles.cell,
                ),
                _text(f"{row.last_activity_on:%Y-%m-%d}", styles.cell),
                _text(str(row.months_without_activity), styles.cell),
            ]
            for i, row in enumerate(abandoned, 1)
        ]
        story.append(_table(
            ["#", "Repository", "Created on", "Last activity on", "Months inactive"],
            rows,
            _columns(width, [3.0, 1.1, 1.1, 1.0]),
            styles,
        ))

    return story


def _draw_page_number(canvas: Canvas, doc: SimpleDocTemplate) -> None:
    canvas.saveState()
    canvas.setFont("Helvetica", 8)
    page_width, _ = doc.pagesize
    canvas.drawRightString(page_width - _MARGIN, _MARGIN / 2, f"Page {doc.page}")
    canvas.restoreState()


def render_pdf_report(data: RepositoryReportData, output_path: str | Path) -> Path:
    """Write the repository report to *output_path*, creating parent directories."""
    path = Path(output_path)
    path.parent.mkdir(parents=True, exist_ok=True)

    doc = SimpleDocTemplate(
        str(path),
        pagesize=landscape(A4),
        leftMargin=_MARGIN,
        rightMargin=_MARGIN,
        topMargin=_MARGIN,
        bottomMargin=_MARGIN,
        title="Bitbucket Repository Report",
    )
    story = build_report_story(data, doc.width)
    doc.build(story, onFirstPage=_draw_page_number, onLaterPages=_draw_page_number)
    logger.info("PDF report written to %s", path)
    return path
