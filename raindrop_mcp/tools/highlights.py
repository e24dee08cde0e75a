"""Highlight operations.

Highlights are always returned inline: unlike collections and bookmarks
they have no resource URI of their own.
"""
import logging
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Union

from raindrop_mcp.api import require_entity
from raindrop_mcp.envelope import Envelope, deleted
from raindrop_mcp.errors import NotFoundError, ValidationError
from raindrop_mcp.models import HIGHLIGHT_COLORS, BookmarkRef, Highlight
from raindrop_mcp.normalize import item_of, items_of, normalize_color, normalize_highlight, normalize_many
from raindrop_mcp.registry import MUTATE, READ, Operation, OperationContext
from raindrop_mcp.schemas import HIGHLIGHT, STRING, array_of, deleted_data, obj, page_of, result_schema
from raindrop_mcp.tools.common import (
    get_choice,
    get_int,
    get_str,
    object_schema,
    offset_to_page,
    page_info,
    paginated_schema,
    read_pagination,
    require,
)

logger = logging.getLogger(__name__)

SCOPES = ("all", "bookmark", "collection")


@dataclass(frozen=True)
class CreateHighlight:
    bookmark_id: int
    text: str
    note: Optional[str] = None
    color: Optional[str] = None


@dataclass(frozen=True)
class UpdateHighlight:
    id: str
    text: Optional[str] = None
    note: Optional[str] = None
    color: Optional[str] = None


@dataclass(frozen=True)
class DeleteHighlight:
    id: str


HighlightCommand = Union[CreateHighlight, UpdateHighlight, DeleteHighlight]


def _get_highlight_id(args: Dict[str, Any], operation: str) -> Optional[str]:
    # Upstream highlight ids are opaque strings; accept numbers too
    value = args.get("id")
    if value is None or value == "":
        return None
    if isinstance(value, bool) or not isinstance(value, (str, int)):
        raise ValidationError("id must be a string or an integer", operation)
    return str(value)


def decode_highlight_command(args: Dict[str, Any], operation: str = "highlight_manage") -> HighlightCommand:
    """Decode highlight_manage arguments into a command.

    Colors outside the supported set are replaced with yellow rather than
    rejected.

    Raises:
        ValidationError: Unknown operation or a missing required field
    """
    kind = get_choice(args, "operation", ("create", "update", "delete"), operation)

    if kind == "delete":
        return DeleteHighlight(id=require(_get_highlight_id(args, operation), "id is required for delete", operation))

    text = get_str(args, "text", operation)
    note = get_str(args, "note", operation)
    color = get_str(args, "color", operation)
    if color is not None:
        color = normalize_color(color)

    if kind == "create":
        bookmark_id = get_int(args, "bookmarkId", operation)
        require(bookmark_id, "bookmarkId is required for create", operation)
        require(text.strip() if text else None, "text is required for create", operation)
        return CreateHighlight(bookmark_id=bookmark_id, text=text, note=note, color=color or normalize_color(None))

    highlight_id = require(_get_highlight_id(args, operation), "id is required for update", operation)
    if text is not None and not text.strip():
        raise ValidationError("text cannot be empty", operation)
    if text is None and note is None and color is None:
        raise ValidationError("at least one of text, note or color is required for update", operation)
    return UpdateHighlight(id=highlight_id, text=text, note=note, color=color)


def _highlights_envelope(highlights: List[Highlight], summary: str, paging: Dict[str, Any]) -> Envelope:
    return Envelope(
        summary=summary,
        data={"highlights": [h.to_dict() for h in highlights], **paging},
    )


async def highlight_list(args: Dict[str, Any], context: OperationContext) -> Envelope:
    """List highlights on one bookmark, in one collection, or everywhere."""
    op = context.operation
    scope = get_choice(args, "scope", SCOPES, op)
    limit, offset = read_pagination(args, op)
    gateway = context.gateway

    if scope == "bookmark":
        bookmark_id = get_int(args, "bookmarkId", op)
        require(bookmark_id, "bookmarkId is required for scope bookmark", op)
        try:
            payload = await gateway.get(f"/raindrop/{bookmark_id}/highlights", operation=op)
        except NotFoundError:
            # No highlights yet
            logger.debug("%s: no highlights for bookmark %s", op, bookmark_id)
            payload = {}
        highlights = normalize_many(items_of(payload), normalize_highlight, bookmark=BookmarkRef(id=bookmark_id))
        page = highlights[offset:offset + limit]
        return _highlights_envelope(
            page,
            f"Found {len(highlights)} highlights on bookmark {bookmark_id}",
            page_info(len(highlights), limit, offset, len(page)),
        )

    params = {"page": offset_to_page(offset, limit), "perpage": limit}
    if scope == "collection":
        collection_id = get_int(args, "collectionId", op)
        require(collection_id, "collectionId is required for scope collection", op)
        try:
            payload = await gateway.get(f"/highlights/{collection_id}", params=params, operation=op)
        except NotFoundError:
            logger.debug("%s: no highlights in collection %s", op, collection_id)
            payload = {}
        where = f"in collection {collection_id}"
    else:
        payload = await gateway.get("/highlights", params=params, operation=op)
        where = "across all bookmarks"

    highlights = normalize_many(items_of(payload), normalize_highlight)
    return _highlights_envelope(
        highlights,
        f"Found {len(highlights)} highlights {where}",
        {"limit": limit, "offset": offset, "returned": len(highlights), "hasMore": len(highlights) == limit},
    )


async def highlight_manage(args: Dict[str, Any], context: OperationContext) -> Envelope:
    """Create, update or delete a highlight."""
    op = context.operation
    command = decode_highlight_command(args, op)
    gateway = context.gateway

    if isinstance(command, DeleteHighlight):
        await gateway.delete(f"/highlights/{command.id}", operation=op)
        return deleted(f"Highlight {command.id} deleted", id=command.id)

    if isinstance(command, CreateHighlight):
        body = {
            "raindrop": {"$id": command.bookmark_id},
            "text": command.text,
            "note": command.note,
            "color": command.color,
        }
        payload = await gateway.post("/highlights", body, operation=op)
        owner: Optional[BookmarkRef] = BookmarkRef(id=command.bookmark_id)
        verb = "Created"
    else:
        body = {"text": command.text, "note": command.note, "color": command.color}
        payload = await gateway.put(f"/highlights/{command.id}", body, operation=op)
        owner = None
        verb = "Updated"

    highlight = require_entity(normalize_highlight(item_of(payload), owner), "highlight", op)
    return Envelope(
        summary=f"{verb} highlight {highlight.id} ({highlight.color})",
        data={"highlight": highlight.to_dict()},
    )


OPERATIONS = [
    Operation(
        name="highlight_list",
        description=(
            "List highlights. scope=bookmark needs bookmarkId, scope=collection needs "
            "collectionId, scope=all lists highlights across every bookmark."
        ),
        input_schema=paginated_schema({
            "scope": {"type": "string", "enum": list(SCOPES)},
            "bookmarkId": {"type": "integer"},
            "collectionId": {"type": "integer"},
        }, required=["scope"]),
        handler=highlight_list,
        kind=READ,
        output_schema=result_schema(page_of(highlights=array_of(HIGHLIGHT))),
    ),
    Operation(
        name="highlight_manage",
        description=(
            "Create, update, or delete a highlight. create needs bookmarkId and text; update and "
            "delete need id. Unknown colors fall back to yellow."
        ),
        input_schema=object_schema({
            "operation": {"type": "string", "enum": ["create", "update", "delete"]},
            "id": {"type": ["string", "integer"], "description": "Highlight ID (update/delete)"},
            "bookmarkId": {"type": "integer", "description": "Bookmark to highlight (create)"},
            "text": {"type": "string", "description": "Highlighted text"},
            "note": {"type": "string"},
            "color": {
                "type": "string",
                "description": f"Highlight color, one of: {', '.join(HIGHLIGHT_COLORS)} (default yellow)",
            },
        }, required=["operation"]),
        handler=highlight_manage,
        kind=MUTATE,
        output_schema=result_schema({"anyOf": [
            obj({"highlight": HIGHLIGHT}, required=["highlight"]),
            deleted_data(STRING),
        ]}),
    ),
]
