"""Export bundle for a generated microtask breakdown.

The bundle captures everything needed to reproduce or audit a generation:
the request context (course, assignment, attachment metadata and dials),
the raw backend response and the parsed microtask output.
"""

from __future__ import annotations

from datetime import UTC, datetime
from typing import TYPE_CHECKING, Any

from pydantic import BaseModel, Field

from src.calibration.events import CoachTone, EfCapacity, ProcessingStyle
from src.microtasks.models import MicrotasksOutput

if TYPE_CHECKING:
    from src.microtasks.models import MicrotaskRequest

APP_NAME = "margati-microtasks-engine"
APP_VIEW = "microtasks-sandbox"


class AppInfo(BaseModel):
    name: str = APP_NAME
    view: str = APP_VIEW


class CourseRef(BaseModel):
    id: str
    name: str
    code: str


class AttachmentInfo(BaseModel):
    """Metadata of an attached file; the content itself is not exported."""

    filename: str
    mime_type: str
    base64_present: bool
    base64_size_chars: int = 0


class AssignmentRef(BaseModel):
    id: str
    name: str
    description_html: str = ""
    attachment: AttachmentInfo | None = None


class CalibrationDials(BaseModel):
    """Dial values a breakdown was generated with."""

    academic_level: str
    support_level: str
    ef_capacity: EfCapacity
    processing_style: ProcessingStyle
    coach_tone: CoachTone

    def summary_line(self) -> str:
        return (
            f"Dials: academic_level={self.academic_level} · support_level={self.support_level}"
            f" · ef={self.ef_capacity} · processing={self.processing_style} · tone={self.coach_tone}"
        )


class RequestContext(BaseModel):
    api_base_url: str
    course: CourseRef
    assignment: AssignmentRef
    dials: CalibrationDials


class ExportBundle(BaseModel):
    """Everything exported for one microtask generation."""

    exported_at: str
    app: AppInfo = Field(default_factory=AppInfo)
    request_context: RequestContext
    response_context: dict[str, Any] | None = None
    microtasks_output: MicrotasksOutput | None = None


def utc_timestamp(moment: datetime | None = None) -> str:
    """ISO-8601 UTC timestamp with millisecond precision and a ``Z`` suffix."""
    moment = moment or datetime.now(UTC)
    return moment.astimezone(UTC).isoformat(timespec="milliseconds").replace("+00:00", "Z")


def build_request_context(request: MicrotaskRequest, api_base_url: str) -> RequestContext:
    """Describe a generation request for export."""
    attachment = None
    if request.files:
        first = request.files[0]
        attachment = AttachmentInfo(
            filename=first.filename,
            mime_type=first.mime_type,
            base64_present=bool(first.data),
            base64_size_chars=len(first.data),
        )

    return RequestContext(
        api_base_url=api_base_url,
        course=CourseRef(id=request.course_id, name=request.course_name, code=request.course_code),
        assignment=AssignmentRef(
            id=request.assignment_id,
            name=request.assignment_name,
            description_html=request.description,
            attachment=attachment,
        ),
        dials=CalibrationDials(
            academic_level=request.academic_level,
            support_level=request.support_level,
            ef_capacity=request.ef_capacity,
            processing_style=request.processing_style,
            coach_tone=request.coach_tone,
        ),
    )


def build_export_bundle(
    request_context: RequestContext,
    response: dict[str, Any] | None,
    output: MicrotasksOutput | None,
    *,
    exported_at: datetime | None = None,
) -> ExportBundle:
    """Assemble an export bundle.

    Args:
        request_context: What was asked for.
        response: Raw JSON body returned by the backend, stored unchanged.
        output: Parsed microtask output (usually ``response["microtasks_output"]``).
        exported_at: Export time; defaults to now.
    """
    return ExportBundle(
        exported_at=utc_timestamp(exported_at),
        app=AppInfo(name=APP_NAME, view=APP_VIEW),
        request_context=request_context,
        response_context=response,
        microtasks_output=output,
    )


def bundle_to_json(bundle: ExportBundle) -> str:
    """Serialize a bundle with two-space indentation.

    Optional fields the backend never sent stay absent rather than
    appearing as ``null``.
    """
    return bundle.model_dump_json(indent=2, exclude_unset=True)


def bundle_from_json(data: str | bytes) -> ExportBundle:
    return ExportBundle.model_validate_json(data)


__all__ = [
    "APP_NAME",
    "APP_VIEW",
    "AppInfo",
    "AssignmentRef",
    "AttachmentInfo",
    "CalibrationDials",
    "CourseRef",
    "ExportBundle",
    "RequestContext",
    "build_export_bundle",
    "build_request_context",
    "bundle_from_json",
    "bundle_to_json",
    "utc_timestamp",
]
