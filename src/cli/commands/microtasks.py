"""Microtask generation and export commands."""

import asyncio
from pathlib import Path
from typing import TYPE_CHECKING, Annotated, Optional

import typer
from rich.table import Table

from src.cli.utils import console

if TYPE_CHECKING:
    from pydantic import ValidationError as SchemaValidationError

    from src.microtasks import ExportBundle, MicrotaskRequest

DEFAULT_OUT = Path(".")


def microtasks(
    description: Annotated[
        str,
        typer.Option("--description", help="Assignment description (plain text or HTML)"),
    ] = "",
    course_name: Annotated[str, typer.Option("--course-name")] = "Demo Course",
    course_code: Annotated[str, typer.Option("--course-code")] = "DEMO 101",
    assignment_name: Annotated[str, typer.Option("--assignment-name", "-n")] = "Demo Assignment",
    ef: Annotated[Optional[str], typer.Option("--ef", help="high | moderate | low")] = None,  # noqa: UP007
    processing: Annotated[
        Optional[str],  # noqa: UP007
        typer.Option("--processing", help="standard | high_friction | literal"),
    ] = None,
    tone: Annotated[
        Optional[str],  # noqa: UP007
        typer.Option("--tone", help="challenger | reassuring | objective"),
    ] = None,
    profile: Annotated[
        Optional[Path],  # noqa: UP007
        typer.Option("--profile", "-p", exists=True, dir_okay=False, help="Profile saved by 'calibrate'"),
    ] = None,
    file: Annotated[
        Optional[Path],  # noqa: UP007
        typer.Option(
            "--file", "-f", exists=True, dir_okay=False, help="Attach an assignment file (under 20 MB)"
        ),
    ] = None,
    out: Annotated[Path, typer.Option("--out", "-o", file_okay=False, help="Output directory")] = DEFAULT_OUT,
) -> None:
    """Generate a microtask breakdown and export it.

    Writes ``<assignment>-bundle.json`` and ``<assignment>-microtasks.txt``
    to the output directory.

    Examples:
        margati microtasks --description "Write a loop that sums 1..10" -n "Lab 1"
        margati microtasks --description "Essay outline" --profile profile.json -o exports
        margati microtasks --file brief.pdf -n "Essay 2"
    """
    from pydantic import ValidationError as SchemaValidationError

    from src.calibration import NeuroMetrics
    from src.exceptions import MargatiError
    from src.microtasks import MicrotaskRequest, read_attachment
    from src.settings import get_settings

    settings = get_settings()
    dials: dict[str, str] = {}
    if profile is not None:
        try:
            saved = NeuroMetrics.model_validate_json(profile.read_bytes())
        except SchemaValidationError as e:
            _print_errors("Invalid profile", e)
            raise typer.Exit(1) from None
        dials.update(
            ef_capacity=saved.ef_capacity,
            processing_style=saved.processing_style,
            coach_tone=saved.coach_tone,
        )
    for key, value in (("ef_capacity", ef), ("processing_style", processing), ("coach_tone", tone)):
        if value:
            dials[key] = value

    try:
        request = MicrotaskRequest(
            course_name=course_name,
            course_code=course_code,
            assignment_name=assignment_name,
            description=description,
            academic_level=settings.academic_level,
            support_level=settings.support_level,
            **dials,
        )
    except SchemaValidationError as e:
        _print_errors("Invalid dials", e)
        raise typer.Exit(1) from None

    try:
        if file is not None:
            attachment = read_attachment(file, request.assignment_id)
            request.files = [attachment] if attachment is not None else None
        bundle = asyncio.run(_generate(request))
    except MargatiError as e:
        console.print(f"[red]{e}[/red]")
        raise typer.Exit(1) from None

    _show_tasks(bundle)
    _write_artifacts(bundle, out)


def export(
    bundle_path: Annotated[Path, typer.Argument(exists=True, dir_okay=False, help="Saved bundle JSON")],
    out: Annotated[Path, typer.Option("--out", "-o", file_okay=False, help="Output directory")] = DEFAULT_OUT,
) -> None:
    """Re-render the report of a saved export bundle.

    Examples:
        margati export lab-1-bundle.json -o exports
    """
    from pydantic import ValidationError as SchemaValidationError

    from src.microtasks import bundle_from_json, export_filename, paginate_bundle, render_text

    try:
        bundle = bundle_from_json(bundle_path.read_bytes())
    except SchemaValidationError as e:
        console.print(f"[red]Not an export bundle: {e.error_count()} errors[/red]")
        raise typer.Exit(1) from None

    out.mkdir(parents=True, exist_ok=True)
    document = paginate_bundle(bundle)
    report_path = out / export_filename(bundle.request_context.assignment.name, "microtasks.txt")
    report_path.write_text(render_text(document), encoding="utf-8")
    console.print(f"[green]Report written to {report_path}[/green] ({document.page_count} pages)")


async def _generate(request: "MicrotaskRequest") -> "ExportBundle":
    from src.client import MargatiClient
    from src.microtasks import build_export_bundle, build_request_context

    client = MargatiClient()
    with console.status("[bold green]Generating microtasks..."):
        response, raw = await client.generate_microtasks(request)
    context = build_request_context(request, client.base_url)
    return build_export_bundle(context, raw, response.microtasks_output)


def _show_tasks(bundle: "ExportBundle") -> None:
    from src.microtasks import format_weight

    output = bundle.microtasks_output
    tasks = output.tasks if output else []
    if not tasks:
        console.print("[yellow]No microtasks were returned.[/yellow]")
        return

    table = Table(title=f"Microtasks: {bundle.request_context.assignment.name}")
    table.add_column("#", justify="right", style="cyan")
    table.add_column("Phase", style="magenta")
    table.add_column("Title")
    table.add_column("Time", justify="right")
    table.add_column("Weight", justify="right")
    for task in tasks:
        table.add_row(
            str(task.sequence_id),
            task.work_phase,
            task.title,
            f"{task.estimated_minutes} min",
            format_weight(task.weight_percentage),
        )
    console.print(table)

    if output.uac_metadata and output.uac_metadata.total_estimated_minutes is not None:
        console.print(f"[dim]Total: {output.uac_metadata.total_estimated_minutes} min[/dim]")


def _write_artifacts(bundle: "ExportBundle", out: Path) -> None:
    from src.microtasks import bundle_to_json, export_filename, paginate_bundle, render_text

    out.mkdir(parents=True, exist_ok=True)
    name = bundle.request_context.assignment.name

    bundle_path = out / export_filename(name, "bundle.json")
    bundle_path.write_text(bundle_to_json(bundle), encoding="utf-8")

    document = paginate_bundle(bundle)
    report_path = out / export_filename(name, "microtasks.txt")
    report_path.write_text(render_text(document), encoding="utf-8")

    console.print(f"[green]Bundle written to {bundle_path}[/green]")
    console.print(f"[green]Report written to {report_path}[/green] ({document.page_count} pages)")


def _print_errors(title: str, error: "SchemaValidationError") -> None:
    console.print(f"[red]{title}: {error.error_count()} errors[/red]")
    for detail in error.errors():
        console.print(f"  [dim]{'.'.join(str(p) for p in detail['loc'])}: {detail['msg']}[/dim]")
