"""Export helpers: bundle-to-report bridging, filenames and text rendering."""

from __future__ import annotations

import re
from typing import TYPE_CHECKING

from src.microtasks.paginator import (
    DetailBlock,
    Heading,
    KeyValueLine,
    PageLayout,
    ReportDocument,
    ReportMetadata,
    Table,
    WrappedParagraph,
    paginate,
)

if TYPE_CHECKING:
    from src.microtasks.bundle import ExportBundle

PAGE_SEPARATOR = "\f"
_NON_ALNUM = re.compile(r"[^a-z0-9]+")


def export_filename(assignment_name: str | None, suffix: str) -> str:
    """Build ``<slug>-<suffix>`` from an assignment name.

    Examples:
        >>> export_filename("Lab 1: Loops!", "bundle.json")
        'lab-1-loops-bundle.json'
        >>> export_filename("", "microtasks.txt")
        'microtasks-microtasks.txt'
    """
    slug = _NON_ALNUM.sub("-", (assignment_name or "microtasks").lower()).strip("-")
    return f"{slug or 'microtasks'}-{suffix}"


def report_metadata_from_bundle(bundle: ExportBundle) -> ReportMetadata:
    context = bundle.request_context
    output = bundle.microtasks_output
    reasoning = None
    if output is not None and output.uac_metadata is not None:
        reasoning = output.uac_metadata.pedagogical_reasoning
    return ReportMetadata(
        exported_at=bundle.exported_at,
        course_name=context.course.name,
        course_code=context.course.code,
        assignment_name=context.assignment.name,
        dials_summary=context.dials.summary_line(),
        pedagogical_reasoning=reasoning,
    )


def paginate_bundle(bundle: ExportBundle, layout: PageLayout | None = None) -> ReportDocument:
    """Paginate the microtasks of an export bundle."""
    tasks = bundle.microtasks_output.tasks if bundle.microtasks_output else []
    return paginate(report_metadata_from_bundle(bundle), tasks, layout)


def render_text(document: ReportDocument, layout: PageLayout | None = None) -> str:
    """Render a report as plain text, one form feed between pages."""
    margin_x = (layout or PageLayout()).margin_x
    rendered_pages = []
    for page in document.pages:
        lines: list[str] = []
        for block in page.blocks:
            if isinstance(block, Heading):
                lines.extend(["", block.text, "=" * len(block.text)])
            elif isinstance(block, KeyValueLine):
                lines.append(block.text)
            elif isinstance(block, WrappedParagraph):
                lines.extend(line.text for line in block.lines)
            elif isinstance(block, Table):
                lines.extend(_render_table(block))
            elif isinstance(block, DetailBlock):
                if block.heading:
                    lines.extend(["", block.heading])
                lines.extend(
                    ("    " if line.x > margin_x else "  ") + line.text for line in block.lines
                )
        rendered_pages.append("\n".join(lines).strip("\n") + f"\n\n-- page {page.number} --\n")
    return PAGE_SEPARATOR.join(rendered_pages)


def _render_table(table: Table) -> list[str]:
    rows = [table.header, *table.rows]
    widths = [max(len(row[i]) for row in rows) for i in range(len(table.header))]
    rendered = []
    for index, row in enumerate(rows):
        rendered.append(" | ".join(cell.ljust(width) for cell, width in zip(row, widths, strict=True)))
        if index == 0:
            rendered.append("-+-".join("-" * width for width in widths))
    return rendered


__all__ = [
    "PAGE_SEPARATOR",
    "export_filename",
    "paginate_bundle",
    "render_text",
    "report_metadata_from_bundle",
]
