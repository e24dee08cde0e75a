"""Import and export jobs.

Both run upstream; these operations only start an export and report the
progress of the current import or export.
"""
from typing import Any, Dict

from raindrop_mcp.envelope import Envelope
from raindrop_mcp.normalize import normalize_transfer_status
from raindrop_mcp.registry import MUTATE, READ, Operation, OperationContext
from raindrop_mcp.schemas import OPTIONAL_STRING, STRING, TRANSFER_STATUS, obj, result_schema
from raindrop_mcp.tools.common import get_bool, get_choice, get_int, object_schema

EXPORT_FORMATS = ("csv", "html", "pdf")


def _status_summary(what: str, status) -> str:
    summary = f"{what} status: {status.status}"
    if status.progress is not None:
        summary += f" ({status.progress}%)"
    if status.error:
        summary += f" - {status.error}"
    return summary


async def import_status(args: Dict[str, Any], context: OperationContext) -> Envelope:
    """Report the progress of the current import."""
    payload = await context.gateway.get("/import/status", operation=context.operation)
    status = normalize_transfer_status(payload)
    return Envelope(summary=_status_summary("Import", status), data=status.to_dict())


async def export_bookmarks(args: Dict[str, Any], context: OperationContext) -> Envelope:
    """Start a bookmark export in the requested format."""
    op = context.operation
    export_format = get_choice(args, "format", EXPORT_FORMATS, op)
    body = {
        "format": export_format,
        "collection": get_int(args, "collectionId", op),
        "broken": get_bool(args, "includeBroken", op, default=False),
        "duplicates": get_bool(args, "includeDuplicates", op, default=False),
    }
    payload = await context.gateway.post("/export", body, operation=op)

    url = payload.get("url") if isinstance(payload.get("url"), str) else ""
    summary = f"Export started ({export_format})"
    if url:
        summary += f". Download: {url}"
    return Envelope(summary=summary, data={"format": export_format, "url": url or None})


async def export_status(args: Dict[str, Any], context: OperationContext) -> Envelope:
    """Report the progress of the current export and its download link."""
    payload = await context.gateway.get("/export/status", operation=context.operation)
    status = normalize_transfer_status(payload)
    summary = _status_summary("Export", status)
    if status.url:
        summary += f". Download: {status.url}"
    return Envelope(summary=summary, data=status.to_dict())


OPERATIONS = [
    Operation(
        name="import_status",
        description="Check the progress of the current bookmark import.",
        input_schema=object_schema({}),
        handler=import_status,
        kind=READ,
        output_schema=result_schema(TRANSFER_STATUS),
    ),
    Operation(
        name="export_bookmarks",
        description=(
            "Start an export of bookmarks as csv, html or pdf, for all collections or one. "
            "Poll export_status for the download link."
        ),
        input_schema=object_schema({
            "format": {"type": "string", "enum": list(EXPORT_FORMATS)},
            "collectionId": {"type": "integer", "description": "Export only this collection"},
            "includeBroken": {"type": "boolean", "default": False},
            "includeDuplicates": {"type": "boolean", "default": False},
        }, required=["format"]),
        handler=export_bookmarks,
        kind=MUTATE,
        output_schema=result_schema(obj({"format": STRING, "url": OPTIONAL_STRING}, required=["format"])),
    ),
    Operation(
        name="export_status",
        description="Check the progress of the current export and get its download link.",
        input_schema=object_schema({}),
        handler=export_status,
        kind=READ,
        output_schema=result_schema(TRANSFER_STATUS),
    ),
]
