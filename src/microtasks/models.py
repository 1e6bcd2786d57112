"""Microtask wire schemas.

Pydantic schemas for the single-assignment course-plan request and the
microtask breakdown it returns. Records are immutable once received and
keep unknown fields, so an export carries everything the backend sent.
"""

from __future__ import annotations

import base64
import mimetypes
from pathlib import Path
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from src.calibration.events import CoachTone, EfCapacity, ProcessingStyle
from src.exceptions import ValidationError

MAX_ATTACHMENT_BYTES = 20 * 1024 * 1024


class _WireModel(BaseModel):
    model_config = ConfigDict(frozen=True, extra="allow")


class MicrotaskDetail(_WireModel):
    """One breakdown step of a microtask."""

    title: str = ""
    description: str = ""


class TaskHierarchy(_WireModel):
    """Dependency information of a microtask."""

    type: str | None = None
    requires: list[int] | None = None


class MicrotaskRecord(_WireModel):
    """One atomic unit of a generated task breakdown."""

    sequence_id: int
    title: str = ""
    description: str = ""
    work_phase: str = ""
    estimated_minutes: int | float = 0
    # Kept as sent when the backend gives a non-numeric weight
    weight_percentage: int | float | str | None = None
    concepts: list[str] | None = None
    source_pointer: str | None = None
    rationale: str | None = None
    scaffold_tip: str | None = None
    hierarchy: TaskHierarchy | None = None
    decomposed_details: list[MicrotaskDetail] | None = None


class UacMetadata(_WireModel):
    total_estimated_minutes: int | float | None = None
    pedagogical_reasoning: str | None = None


class MicrotasksOutput(_WireModel):
    """Generated breakdown: metadata plus ordered microtasks."""

    uac_metadata: UacMetadata | None = None
    microtasks: list[MicrotaskRecord] | None = None

    @property
    def tasks(self) -> list[MicrotaskRecord]:
        return list(self.microtasks or [])


class MicrotasksApiResponse(_WireModel):
    """Response of ``POST /course-plan/single-assignment``."""

    status: str | None = None
    request_id: str | None = None
    partner_id: str | None = None
    course_id: str | None = None
    assignment_id: str | None = None
    llm_model: str | None = None
    llm_cost: float | None = None
    generated_at: str | None = None
    microtasks_output: MicrotasksOutput | None = None


class AssignmentFile(BaseModel):
    """An already-encoded assignment attachment."""

    assignment_id: str
    mime_type: str = "application/octet-stream"
    data: str = Field(description="Base64-encoded file content")
    uri: str | None = None
    filename: str


class MicrotaskRequest(BaseModel):
    """Request body for single-assignment microtask generation."""

    course_id: str = "demo-course"
    course_name: str = "Demo Course"
    course_code: str = "DEMO 101"
    assignment_id: str = "demo-assignment"
    assignment_name: str = "Demo Assignment"
    description: str = ""
    due_at: str | None = None
    points: float | None = None
    estimated_time_hint: str | None = None
    concepts: list[str] = Field(default_factory=list)
    rubric_text: str | None = None
    files: list[AssignmentFile] | None = None
    support_level: str = "HIGH"
    academic_level: str = "high_school"
    ef_capacity: EfCapacity = "moderate"
    processing_style: ProcessingStyle = "standard"
    coach_tone: CoachTone = "reassuring"

    def validate_content(self) -> None:
        """Require a description or at least one attachment.

        Raises:
            ValidationError: If the request has neither.
        """
        if not self.description.strip() and not self.files:
            raise ValidationError("Please add a description or attach a file.")

    def to_payload(self) -> dict[str, Any]:
        return self.model_dump(mode="json")


def read_attachment(path: Path, assignment_id: str) -> AssignmentFile | None:
    """Encode a local file as an assignment attachment.

    The MIME type is guessed from the file name. An empty file gives no
    attachment.

    Raises:
        ValidationError: If the file is larger than 20 MB.
    """
    if path.stat().st_size > MAX_ATTACHMENT_BYTES:
        raise ValidationError("File too large. Please upload a file under 20 MB.")
    content = path.read_bytes()
    if not content:
        return None
    mime_type, _ = mimetypes.guess_type(path.name)
    return AssignmentFile(
        assignment_id=assignment_id,
        mime_type=mime_type or "application/octet-stream",
        data=base64.b64encode(content).decode("ascii"),
        filename=path.name,
    )


__all__ = [
    "MAX_ATTACHMENT_BYTES",
    "AssignmentFile",
    "MicrotaskDetail",
    "MicrotaskRecord",
    "MicrotaskRequest",
    "MicrotasksApiResponse",
    "MicrotasksOutput",
    "TaskHierarchy",
    "UacMetadata",
    "read_attachment",
]
