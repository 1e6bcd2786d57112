"""Unit tests for microtask export bundles and report rendering."""

import base64
import json
from datetime import UTC, datetime

import pytest

from src.microtasks import (
    MicrotaskRequest,
    MicrotasksApiResponse,
    build_export_bundle,
    build_request_context,
    bundle_from_json,
    bundle_to_json,
    export_filename,
    paginate_bundle,
    render_text,
)
from src.microtasks.models import AssignmentFile

EXPORTED_AT = datetime(2026, 1, 5, 10, 30, 0, 123456, tzinfo=UTC)


@pytest.fixture
def request_model() -> MicrotaskRequest:
    return MicrotaskRequest(
        course_name="Intro to CS",
        course_code="CS 101",
        assignment_name="Lab 1: Loops!",
        description="<p>Sum 1..10</p>",
        ef_capacity="low",
        processing_style="literal",
        coach_tone="objective",
    )


@pytest.fixture
def bundle(request_model, microtasks_response):
    response = MicrotasksApiResponse.model_validate(microtasks_response)
    context = build_request_context(request_model, "http://backend.test")
    return build_export_bundle(
        context,
        microtasks_response,
        response.microtasks_output,
        exported_at=EXPORTED_AT,
    )


class TestRequest:
    """Tests for MicrotaskRequest."""

    def test_requires_description_or_file(self):
        from src.exceptions import ValidationError

        with pytest.raises(ValidationError, match="Please add a description or attach a file."):
            MicrotaskRequest(description="   ").validate_content()

    def test_file_alone_is_enough(self):
        request = MicrotaskRequest(
            files=[AssignmentFile(assignment_id="a1", data="aGVsbG8=", filename="lab.pdf")]
        )
        request.validate_content()

    def test_payload_shape(self, request_model):
        payload = request_model.to_payload()
        assert payload["assignment_name"] == "Lab 1: Loops!"
        assert payload["ef_capacity"] == "low"
        assert payload["support_level"] == "HIGH"
        assert payload["academic_level"] == "high_school"
        assert payload["files"] is None


class TestBundle:
    """Tests for building and serializing export bundles."""

    def test_bundle_fields(self, bundle):
        assert bundle.exported_at == "2026-01-05T10:30:00.123Z"
        assert bundle.app.name == "margati-microtasks-engine"
        assert bundle.app.view == "microtasks-sandbox"
        assert bundle.request_context.api_base_url == "http://backend.test"
        assert bundle.request_context.course.code == "CS 101"
        assert bundle.request_context.assignment.description_html == "<p>Sum 1..10</p>"
        assert bundle.request_context.assignment.attachment is None

    def test_dials_summary_line(self, bundle):
        assert bundle.request_context.dials.summary_line() == (
            "Dials: academic_level=high_school · support_level=HIGH"
            " · ef=low · processing=literal · tone=objective"
        )

    def test_raw_response_kept_unchanged(self, bundle, microtasks_response):
        data = json.loads(bundle_to_json(bundle))
        assert data["response_context"] == microtasks_response

    def test_unknown_task_fields_survive(self, bundle):
        data = json.loads(bundle_to_json(bundle))
        first = data["microtasks_output"]["microtasks"][0]
        assert first["confidence"] == 0.9

    def test_absent_optional_fields_not_serialized(self, bundle):
        data = json.loads(bundle_to_json(bundle))
        second = data["microtasks_output"]["microtasks"][1]
        assert "scaffold_tip" not in second
        assert second["weight_percentage"] == "TBD"

    def test_json_round_trip(self, bundle):
        restored = bundle_from_json(bundle_to_json(bundle))
        assert restored == bundle

    def test_json_is_indented(self, bundle):
        assert bundle_to_json(bundle).startswith('{\n  "exported_at"')

    def test_attachment_metadata_without_content(self, request_model, microtasks_response):
        request = request_model.model_copy(
            update={
                "files": [
                    AssignmentFile(
                        assignment_id="a1",
                        mime_type="application/pdf",
                        data="aGVsbG8=",
                        filename="lab.pdf",
                    )
                ]
            }
        )
        context = build_request_context(request, "http://backend.test")
        attachment = context.assignment.attachment

        assert attachment.filename == "lab.pdf"
        assert attachment.base64_present is True
        assert attachment.base64_size_chars == 8
        assert "aGVsbG8=" not in context.model_dump_json()

class TestReadAttachment:
    """Tests for encoding a local file as an attachment."""

    def test_encodes_file(self, tmp_path):
        from src.microtasks import read_attachment

        brief = tmp_path / "brief.pdf"
        brief.write_bytes(b"%PDF-1.4 hello")

        attachment = read_attachment(brief, "a1")

        assert attachment.assignment_id == "a1"
        assert attachment.filename == "brief.pdf"
        assert attachment.mime_type == "application/pdf"
        assert base64.b64decode(attachment.data) == b"%PDF-1.4 hello"
        assert attachment.uri is None

    def test_unknown_extension_is_octet_stream(self, tmp_path):
        from src.microtasks import read_attachment

        blob = tmp_path / "notes.zzunknown"
        blob.write_bytes(b"\x00\x01")
        assert read_attachment(blob, "a1").mime_type == "application/octet-stream"

    def test_empty_file_gives_no_attachment(self, tmp_path):
        from src.microtasks import read_attachment

        empty = tmp_path / "empty.txt"
        empty.write_bytes(b"")
        assert read_attachment(empty, "a1") is None

    def test_rejects_files_over_limit(self, tmp_path, monkeypatch):
        from src.exceptions import ValidationError
        from src.microtasks import read_attachment

        monkeypatch.setattr("src.microtasks.models.MAX_ATTACHMENT_BYTES", 4)
        big = tmp_path / "big.txt"
        big.write_bytes(b"12345")

        with pytest.raises(ValidationError, match="File too large"):
            read_attachment(big, "a1")

    def test_limit_is_twenty_megabytes(self):
        from src.microtasks import MAX_ATTACHMENT_BYTES

        assert MAX_ATTACHMENT_BYTES == 20 * 1024 * 1024


class TestExportFilename:
    """Tests for export_filename()."""

    @pytest.mark.parametrize(
        ("name", "expected"),
        [
            ("Lab 1: Loops!", "lab-1-loops-bundle.json"),
            ("  Essay  ", "essay-bundle.json"),
            ("", "microtasks-bundle.json"),
            (None, "microtasks-bundle.json"),
            ("!!!", "microtasks-bundle.json"),
        ],
    )
    def test_slug(self, name, expected):
        assert export_filename(name, "bundle.json") == expected


class TestRenderText:
    """Tests for the plain-text report."""

    def test_report_contents(self, bundle):
        text = render_text(paginate_bundle(bundle))

        assert "Margati Microtasks Export" in text
        assert "Course: Intro to CS (CS 101)" in text
        assert "Assignment: Lab 1: Loops!" in text
        assert "ef=low" in text
        assert "Pedagogical reasoning" in text
        assert "Task 1 — Read the prompt" in text
        assert "• Skim. Read headings only." in text
        assert "TBD%" in text

    def test_pages_separated_by_form_feed(self, bundle):
        document = paginate_bundle(bundle)
        text = render_text(document)

        pages = text.split("\f")
        assert len(pages) == document.page_count
        assert pages[-1].rstrip().endswith(f"-- page {document.page_count} --")

    def test_bundle_without_output(self, request_model):
        context = build_request_context(request_model, "http://backend.test")
        bundle = build_export_bundle(context, None, None, exported_at=EXPORTED_AT)

        document = paginate_bundle(bundle)
        assert document.page_count == 1
        assert "Task details" not in render_text(document)
