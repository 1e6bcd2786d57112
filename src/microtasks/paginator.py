"""Report pagination for microtask exports.

Lays out export metadata and a microtask list into fixed-size pages of
positioned blocks. Positions are in points on an A4 page, measured from
the top edge, with text width estimated from an average glyph width.

Build order:
1. Cover: title, export time, course, assignment, dial summary.
2. Summary table, one row per task.
3. Optional pedagogical reasoning, followed by a page break.
4. Task details, one DetailBlock per task and page.

Tables and headings are placed whole. Paragraphs and detail lines break
across pages one wrapped line at a time.
"""

from __future__ import annotations

import math
import textwrap
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Annotated, Literal

from pydantic import BaseModel, ConfigDict, Field

if TYPE_CHECKING:
    from collections.abc import Iterator, Sequence

    from src.microtasks.models import MicrotaskRecord

REPORT_TITLE = "Margati Microtasks Export"
TABLE_HEADER = ("#", "Phase", "Title", "Time", "Weight")


class PageLayout(BaseModel):
    """Page geometry and typographic steps, in points."""

    model_config = ConfigDict(frozen=True)

    width: float = 595.28
    height: float = 841.89
    margin_x: float = 40.0
    margin_top: float = 48.0
    glyph_width_ratio: float = 0.5

    title_size: float = 16.0
    title_gap: float = 18.0
    meta_size: float = 10.0
    meta_step: float = 16.0
    table_offset: float = 86.0

    table_font_size: float = 9.0
    table_line_height: float = 11.0
    table_cell_padding: float = 6.0
    # None marks the flexible title column
    table_column_widths: tuple[float | None, ...] = (28.0, 86.0, None, 48.0, 56.0)

    section_gap: float = 26.0
    section_reserve: float = 30.0
    heading_size: float = 11.0
    heading_step: float = 16.0
    body_size: float = 9.0
    body_step: float = 12.0
    line_step: float = 14.0
    task_reserve: float = 100.0
    task_gap: float = 22.0
    bullet_indent: float = 12.0

    @property
    def content_width(self) -> float:
        return self.width - self.margin_x * 2

    @property
    def bottom(self) -> float:
        return self.height - self.margin_top

    def chars_per_line(self, font_size: float, width: float | None = None) -> int:
        """How many average glyphs fit on a line of ``width`` points."""
        width = self.content_width if width is None else width
        return max(1, int(width / (font_size * self.glyph_width_ratio)))

    def column_widths(self) -> tuple[float, ...]:
        fixed = sum(w for w in self.table_column_widths if w is not None)
        flexible = max(self.content_width - fixed, self.table_font_size)
        return tuple(flexible if w is None else w for w in self.table_column_widths)


class _Block(BaseModel):
    model_config = ConfigDict(frozen=True)


class PlacedLine(_Block):
    text: str
    x: float
    y: float


class Heading(_Block):
    kind: Literal["heading"] = "heading"
    text: str
    x: float
    y: float
    font_size: float


class KeyValueLine(_Block):
    kind: Literal["key_value"] = "key_value"
    label: str
    value: str
    x: float
    y: float
    font_size: float

    @property
    def text(self) -> str:
        return f"{self.label}: {self.value}"


class Table(_Block):
    kind: Literal["table"] = "table"
    header: tuple[str, ...]
    rows: tuple[tuple[str, ...], ...]
    column_widths: tuple[float, ...]
    x: float
    y: float
    height: float
    font_size: float


class WrappedParagraph(_Block):
    kind: Literal["paragraph"] = "paragraph"
    lines: tuple[PlacedLine, ...]
    font_size: float


class DetailBlock(_Block):
    """The part of one task's details that falls on one page.

    ``heading`` is None on the pages a long task continues onto.
    """

    kind: Literal["detail"] = "detail"
    sequence_id: int
    heading: str | None
    lines: tuple[PlacedLine, ...]
    y: float
    continued: bool = False


ReportBlock = Annotated[
    Heading | KeyValueLine | Table | WrappedParagraph | DetailBlock,
    Field(discriminator="kind"),
]


class ReportPage(_Block):
    number: int
    blocks: tuple[ReportBlock, ...]


class ReportDocument(_Block):
    """Paginated report, built once per export."""

    pages: tuple[ReportPage, ...]

    @property
    def page_count(self) -> int:
        return len(self.pages)

    def detail_blocks(self) -> Iterator[tuple[int, DetailBlock]]:
        """Yield ``(page_number, block)`` for every detail block in order."""
        for page in self.pages:
            for block in page.blocks:
                if isinstance(block, DetailBlock):
                    yield page.number, block

    def detail_sequence_ids(self) -> list[int]:
        """Task ids in the order their details start."""
        return [block.sequence_id for _, block in self.detail_blocks() if not block.continued]


class ReportMetadata(BaseModel):
    """Cover information of a report."""

    title: str = REPORT_TITLE
    exported_at: str
    course_name: str = ""
    course_code: str = ""
    assignment_name: str = ""
    dials_summary: str = ""
    pedagogical_reasoning: str | None = None


def format_weight(value: object) -> str:
    """One decimal place for finite numbers, the raw text for anything else."""
    if isinstance(value, int | float) and not isinstance(value, bool) and math.isfinite(value):
        return f"{value:.1f}"
    return str(value)


def format_minutes(value: object) -> str:
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)


def wrap_text(text: str, width: int) -> list[str]:
    """Wrap ``text`` to ``width`` characters; blank text yields no lines."""
    if not text or not text.strip():
        return []
    return textwrap.wrap(text.strip(), width=width)


def task_detail_lines(task: MicrotaskRecord) -> list[tuple[str, bool]]:
    """Detail lines of a task as ``(text, is_breakdown_item)`` pairs.

    Optional fields that are missing or empty produce no line.
    """
    lines: list[tuple[str, bool]] = [
        (f"Phase: {task.work_phase}", False),
        (
            f"{format_minutes(task.estimated_minutes)} min · "
            f"{format_weight(task.weight_percentage)}%",
            False,
        ),
    ]
    if task.source_pointer:
        lines.append((f"Source: {task.source_pointer}", False))
    if task.hierarchy is not None and task.hierarchy.type:
        requires = len(task.hierarchy.requires or [])
        suffix = f" (requires {requires})" if requires > 0 else ""
        lines.append((f"Hierarchy: {task.hierarchy.type}{suffix}", False))
    if task.concepts:
        lines.append((f"Concepts: {', '.join(task.concepts)}", False))
    if task.scaffold_tip:
        lines.append((f"Scaffold tip: {task.scaffold_tip}", False))
    if task.decomposed_details:
        lines.append(("Breakdown:", False))
        for detail in task.decomposed_details:
            lines.append((f"• {detail.title}. {detail.description}", True))
    return lines


@dataclass
class _DetailDraft:
    sequence_id: int
    heading: str | None
    y: float
    continued: bool = False
    lines: list[PlacedLine] = field(default_factory=list)


class _PageCursor:
    """Mutable layout state while a document is being built."""

    def __init__(self, layout: PageLayout) -> None:
        self.layout = layout
        self.pages: list[list[ReportBlock]] = [[]]
        self.y = layout.margin_top
        self._detail: _DetailDraft | None = None

    @property
    def at_top(self) -> bool:
        return self.y <= self.layout.margin_top

    def fits(self, height: float) -> bool:
        return self.y + height <= self.layout.bottom

    def ensure(self, height: float) -> None:
        # A unit taller than a whole page is placed on a fresh page anyway
        if not self.fits(height) and not self.at_top:
            self.new_page()

    def new_page(self) -> None:
        open_detail = self._detail
        self._flush_detail()
        self.pages.append([])
        self.y = self.layout.margin_top
        if open_detail is not None:
            self._detail = _DetailDraft(
                sequence_id=open_detail.sequence_id,
                heading=None,
                y=self.y,
                continued=True,
            )

    def add(self, block: ReportBlock) -> None:
        self.pages[-1].append(block)

    def heading(self, text: str, font_size: float, step: float) -> None:
        self.ensure(step)
        self.add(Heading(text=text, x=self.layout.margin_x, y=self.y, font_size=font_size))
        self.y += step

    def key_value(self, label: str, value: str) -> None:
        layout = self.layout
        self.ensure(layout.meta_step)
        self.add(
            KeyValueLine(
                label=label,
                value=value,
                x=layout.margin_x,
                y=self.y,
                font_size=layout.meta_size,
            )
        )
        self.y += layout.meta_step

    def paragraph(self, text: str, font_size: float, step: float) -> None:
        layout = self.layout
        current: list[PlacedLine] = []
        for line in wrap_text(text, layout.chars_per_line(font_size)):
            if not self.fits(step) and not self.at_top:
                if current:
                    self.add(WrappedParagraph(lines=tuple(current), font_size=font_size))
                    current = []
                self.new_page()
            current.append(PlacedLine(text=line, x=layout.margin_x, y=self.y))
            self.y += step
        if current:
            self.add(WrappedParagraph(lines=tuple(current), font_size=font_size))

    def table(self, header: tuple[str, ...], rows: list[tuple[str, ...]]) -> None:
        layout = self.layout
        widths = layout.column_widths()
        height = _table_height([header, *rows], widths, layout)
        self.ensure(height)
        self.add(
            Table(
                header=header,
                rows=tuple(rows),
                column_widths=widths,
                x=layout.margin_x,
                y=self.y,
                height=height,
                font_size=layout.table_font_size,
            )
        )
        self.y += height

    def begin_detail(self, sequence_id: int, heading: str) -> None:
        self.ensure(self.layout.task_reserve)
        self._detail = _DetailDraft(sequence_id=sequence_id, heading=heading, y=self.y)
        self.y += self.layout.line_step

    def detail_line(self, text: str, *, indent: float = 0.0) -> None:
        layout = self.layout
        width = layout.content_width - indent
        for line in wrap_text(text, layout.chars_per_line(layout.body_size, width)):
            self.ensure(layout.body_step)
            if self._detail is not None:
                self._detail.lines.append(PlacedLine(text=line, x=layout.margin_x + indent, y=self.y))
            self.y += layout.body_step

    def end_detail(self) -> None:
        self._flush_detail()
        self.y += self.layout.task_gap

    def _flush_detail(self) -> None:
        draft = self._detail
        if draft is None:
            return
        self._detail = None
        self.add(
            DetailBlock(
                sequence_id=draft.sequence_id,
                heading=draft.heading,
                lines=tuple(draft.lines),
                y=draft.y,
                continued=draft.continued,
            )
        )

    def document(self) -> ReportDocument:
        self._flush_detail()
        return ReportDocument(
            pages=tuple(
                ReportPage(number=index + 1, blocks=tuple(blocks))
                for index, blocks in enumerate(self.pages)
            )
        )


def _table_height(
    rows: Sequence[tuple[str, ...]],
    widths: tuple[float, ...],
    layout: PageLayout,
) -> float:
    padding = layout.table_cell_padding
    height = 0.0
    for row in rows:
        line_count = 1
        for cell, width in zip(row, widths, strict=False):
            chars = layout.chars_per_line(layout.table_font_size, width - padding * 2)
            line_count = max(line_count, len(wrap_text(cell, chars)))
        height += line_count * layout.table_line_height + padding * 2
    return height


def summary_row(task: MicrotaskRecord) -> tuple[str, ...]:
    return (
        str(task.sequence_id),
        task.work_phase,
        task.title,
        f"{format_minutes(task.estimated_minutes)}m",
        f"{format_weight(task.weight_percentage)}%",
    )


def paginate(
    metadata: ReportMetadata,
    tasks: Sequence[MicrotaskRecord],
    layout: PageLayout | None = None,
) -> ReportDocument:
    """Lay out a report for ``tasks`` in their given order.

    Never raises for missing optional task fields; an empty task list
    produces a cover and an empty summary table only.
    """
    layout = layout or PageLayout()
    cursor = _PageCursor(layout)

    # Cover
    cursor.heading(metadata.title, layout.title_size, layout.title_gap)
    cursor.key_value("Exported", metadata.exported_at)
    cursor.key_value("Course", f"{metadata.course_name} ({metadata.course_code})")
    cursor.key_value("Assignment", metadata.assignment_name)
    if metadata.dials_summary:
        cursor.paragraph(metadata.dials_summary, layout.meta_size, layout.body_step)
    cursor.y = max(cursor.y + layout.body_step, layout.margin_top + layout.table_offset)

    cursor.table(TABLE_HEADER, [summary_row(task) for task in tasks])

    reasoning = (metadata.pedagogical_reasoning or "").strip()
    if reasoning:
        cursor.y += layout.section_gap
        cursor.heading("Pedagogical reasoning", layout.heading_size, layout.heading_step)
        cursor.paragraph(reasoning, layout.body_size, layout.body_step)
        if tasks:
            cursor.new_page()

    if tasks:
        if not cursor.at_top:
            cursor.y += layout.section_gap
        cursor.ensure(layout.section_reserve)
        cursor.heading("Task details", 12.0, layout.line_step)

        for task in tasks:
            cursor.begin_detail(task.sequence_id, f"Task {task.sequence_id} — {task.title}")
            for text, is_item in task_detail_lines(task):
                if is_item:
                    cursor.ensure(layout.line_step)
                    cursor.detail_line(text, indent=layout.bullet_indent)
                else:
                    cursor.detail_line(text)
            cursor.end_detail()

    return cursor.document()


__all__ = [
    "REPORT_TITLE",
    "TABLE_HEADER",
    "DetailBlock",
    "Heading",
    "KeyValueLine",
    "PageLayout",
    "PlacedLine",
    "ReportBlock",
    "ReportDocument",
    "ReportMetadata",
    "ReportPage",
    "Table",
    "WrappedParagraph",
    "format_weight",
    "paginate",
    "summary_row",
    "task_detail_lines",
]
