"""Microtask breakdowns: wire models, export bundles and report pagination."""

from src.microtasks.bundle import (
    CalibrationDials,
    ExportBundle,
    RequestContext,
    build_export_bundle,
    build_request_context,
    bundle_from_json,
    bundle_to_json,
)
from src.microtasks.export import export_filename, paginate_bundle, render_text
from src.microtasks.models import (
    MAX_ATTACHMENT_BYTES,
    AssignmentFile,
    MicrotaskDetail,
    MicrotaskRecord,
    MicrotaskRequest,
    MicrotasksApiResponse,
    MicrotasksOutput,
    read_attachment,
)
from src.microtasks.paginator import (
    PageLayout,
    ReportDocument,
    ReportMetadata,
    format_weight,
    paginate,
)

__all__ = [
    "MAX_ATTACHMENT_BYTES",
    "AssignmentFile",
    "CalibrationDials",
    "ExportBundle",
    "MicrotaskDetail",
    "MicrotaskRecord",
    "MicrotaskRequest",
    "MicrotasksApiResponse",
    "MicrotasksOutput",
    "PageLayout",
    "ReportDocument",
    "ReportMetadata",
    "RequestContext",
    "build_export_bundle",
    "build_request_context",
    "bundle_from_json",
    "bundle_to_json",
    "export_filename",
    "format_weight",
    "paginate",
    "paginate_bundle",
    "read_attachment",
    "render_text",
]
