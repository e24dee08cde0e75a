"""Bookmark operations: search, lookup, lifecycle, batch edits and reminders.

Bookmarks are called "raindrops" upstream, so endpoints read
``/raindrop`` and ``/raindrops`` while everything the caller sees says
bookmark.
"""
import asyncio
import logging
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Sequence, Tuple, Union

from raindrop_mcp.api import fetch_bookmark, require_entity
from raindrop_mcp.envelope import Envelope, bookmark_link, deleted
from raindrop_mcp.errors import AggregateError, RaindropError, ValidationError
from raindrop_mcp.models import Bookmark
from raindrop_mcp.normalize import item_of, items_of, normalize_bookmark, normalize_many, unique_tags
from raindrop_mcp.registry import MUTATE, READ, Operation, OperationContext
from raindrop_mcp.schemas import (
    BOOKMARK,
    BOOLEAN,
    INTEGER,
    REMINDER,
    STRING,
    array_of,
    deleted_data,
    obj,
    optional,
    page_of,
    result_schema,
)
from raindrop_mcp.tools.common import (
    DEFAULT_LIMIT,
    MAX_LIMIT,
    get_bool,
    get_choice,
    get_int,
    get_int_list,
    get_str,
    get_str_list,
    object_schema,
    offset_to_page,
    paginated_schema,
    read_pagination,
    require,
)

logger = logging.getLogger(__name__)

SORT_OPTIONS = ("-created", "created", "score", "-sort", "title", "-title", "domain", "-domain")
BATCH_OPERATIONS = ("update", "move", "tag_add", "tag_remove", "delete", "delete_permanent")


# ============================================================================
# Manage commands
# ============================================================================

@dataclass(frozen=True)
class CreateBookmark:
    url: str
    collection_id: int
    title: Optional[str] = None
    excerpt: Optional[str] = None
    note: Optional[str] = None
    tags: Optional[Tuple[str, ...]] = None
    important: Optional[bool] = None


@dataclass(frozen=True)
class UpdateBookmark:
    id: int
    url: Optional[str] = None
    collection_id: Optional[int] = None
    title: Optional[str] = None
    excerpt: Optional[str] = None
    note: Optional[str] = None
    tags: Optional[Tuple[str, ...]] = None
    important: Optional[bool] = None


@dataclass(frozen=True)
class DeleteBookmark:
    id: int


BookmarkCommand = Union[CreateBookmark, UpdateBookmark, DeleteBookmark]


def decode_bookmark_command(args: Dict[str, Any], operation: str = "bookmark_manage") -> BookmarkCommand:
    """Decode bookmark_manage arguments into a command.

    Raises:
        ValidationError: Unknown operation or a missing required field
    """
    kind = get_choice(args, "operation", ("create", "update", "delete"), operation)

    if kind == "delete":
        bookmark_id = get_int(args, "id", operation)
        return DeleteBookmark(id=require(bookmark_id, "id is required for delete", operation))

    tags = get_str_list(args, "tags", operation)
    fields = dict(
        url=get_str(args, "url", operation),
        collection_id=get_int(args, "collectionId", operation),
        title=get_str(args, "title", operation),
        excerpt=get_str(args, "description", operation),
        note=get_str(args, "note", operation),
        tags=tuple(tags) if tags is not None else None,
        important=get_bool(args, "important", operation),
    )

    if kind == "create":
        require(fields["url"], "url is required for create", operation)
        require(fields["collection_id"], "collectionId is required for create", operation)
        return CreateBookmark(**fields)

    bookmark_id = get_int(args, "id", operation)
    require(bookmark_id, "id is required for update", operation)
    if all(value is None for value in fields.values()):
        raise ValidationError("at least one field to change is required for update", operation)
    return UpdateBookmark(id=bookmark_id, **fields)


def _bookmark_body(command: Union[CreateBookmark, UpdateBookmark]) -> Dict[str, Any]:
    body = {
        "link": command.url,
        "title": command.title,
        "excerpt": command.excerpt,
        "note": command.note,
        "tags": list(command.tags) if command.tags is not None else None,
        "important": command.important,
        "collection": {"$id": command.collection_id} if command.collection_id is not None else None,
    }
    if isinstance(command, CreateBookmark):
        # Ask upstream to fetch title, excerpt and cover for the new link
        body["pleaseParse"] = {}
    return body


# ============================================================================
# Search helpers
# ============================================================================

def build_search_query(query: Optional[str], tags: Optional[Sequence[str]]) -> Optional[str]:
    """Combine free text and tag filters into one upstream search string.

    Tags use the upstream ``#tag`` syntax; tags containing spaces are quoted.
    """
    parts = [query.strip()] if query and query.strip() else []
    for tag in tags or []:
        parts.append(f'#"{tag}"' if " " in tag else f"#{tag}")
    return " ".join(parts) or None


def filter_exact_tags(bookmarks: List[Bookmark], tags: Sequence[str]) -> List[Bookmark]:
    """Keep bookmarks carrying every requested tag (case-insensitive exact match)."""
    wanted = {t.lower() for t in tags}
    return [b for b in bookmarks if wanted <= {t.lower() for t in b.tags}]


def _search_page(args: Dict[str, Any], operation: str) -> Tuple[int, int, Dict[str, Any]]:
    """Resolve paging: explicit page/perPage pass through, limit/offset are translated."""
    page = get_int(args, "page", operation, minimum=1)
    per_page = get_int(args, "perPage", operation, minimum=1, maximum=MAX_LIMIT)
    if page is not None or per_page is not None:
        per_page = per_page or DEFAULT_LIMIT
        page = page or 1
        return per_page, (page - 1) * per_page, {"page": page, "perpage": per_page}

    limit, offset = read_pagination(args, operation)
    return limit, offset, {"page": offset_to_page(offset, limit), "perpage": limit}


def _list_envelope(bookmarks: List[Bookmark], total: int, limit: int, offset: int, what: str) -> Envelope:
    return Envelope(
        summary=f"Found {total} {what}" + (f", showing {len(bookmarks)}" if len(bookmarks) != total else ""),
        data={
            "total": total,
            "limit": limit,
            "offset": offset,
            "returned": len(bookmarks),
            "hasMore": offset + len(bookmarks) < total,
        },
        links=tuple(bookmark_link(b) for b in bookmarks),
    )


# ============================================================================
# Handlers
# ============================================================================

async def bookmark_search(args: Dict[str, Any], context: OperationContext) -> Envelope:
    """Search bookmarks by text, tags and filters."""
    op = context.operation
    collection_id = get_int(args, "collectionId", op, default=0)
    tags = get_str_list(args, "tags", op) or []
    sort = get_str(args, "sort", op)
    if sort is not None and sort not in SORT_OPTIONS:
        raise ValidationError(f"Unsupported sort: {sort!r} (expected one of: {', '.join(SORT_OPTIONS)})", op)
    exact = get_bool(args, "exactTagMatch", op, default=False)
    limit, offset, paging = _search_page(args, op)

    params = {
        "search": build_search_query(get_str(args, "query", op), tags),
        "sort": sort,
        "tag": get_str(args, "tag", op),
        "important": get_bool(args, "important", op),
        "duplicates": get_bool(args, "duplicates", op),
        "broken": get_bool(args, "broken", op),
        "highlight": get_bool(args, "highlight", op),
        "domain": get_str(args, "domain", op),
        **paging,
    }
    payload = await context.gateway.get(f"/raindrops/{collection_id}", params=params, operation=op)

    bookmarks = normalize_many(items_of(payload), normalize_bookmark)
    total = payload.get("count") if isinstance(payload.get("count"), int) else len(bookmarks)
    if exact and tags:
        bookmarks = filter_exact_tags(bookmarks, tags)
        total = len(bookmarks)
    return _list_envelope(bookmarks, total, limit, offset, "bookmarks")


async def bookmark_list(args: Dict[str, Any], context: OperationContext) -> Envelope:
    """List the bookmarks of one collection."""
    op = context.operation
    collection_id = get_int(args, "collectionId", op, required=True)
    limit, offset = read_pagination(args, op)
    params = {"page": offset_to_page(offset, limit), "perpage": limit}
    payload = await context.gateway.get(f"/raindrops/{collection_id}", params=params, operation=op)

    bookmarks = normalize_many(items_of(payload), normalize_bookmark)
    total = payload.get("count") if isinstance(payload.get("count"), int) else len(bookmarks)
    return _list_envelope(bookmarks, total, limit, offset, f"bookmarks in collection {collection_id}")


async def bookmark_get(args: Dict[str, Any], context: OperationContext) -> Envelope:
    """Get one bookmark by id."""
    bookmark_id = get_int(args, "id", context.operation, required=True)
    bookmark = await fetch_bookmark(context.gateway, bookmark_id, context.operation)
    return Envelope(
        summary=f"Bookmark: {bookmark.title or bookmark.link} (ID: {bookmark.id})",
        links=(bookmark_link(bookmark),),
    )


async def bookmark_manage(args: Dict[str, Any], context: OperationContext) -> Envelope:
    """Create, update or delete a bookmark."""
    op = context.operation
    command = decode_bookmark_command(args, op)
    gateway = context.gateway

    if isinstance(command, DeleteBookmark):
        await gateway.delete(f"/raindrop/{command.id}", operation=op)
        return deleted(f"Bookmark {command.id} moved to Trash", id=command.id)

    if isinstance(command, CreateBookmark):
        payload = await gateway.post("/raindrop", _bookmark_body(command), operation=op)
        verb = "Created"
    else:
        payload = await gateway.put(f"/raindrop/{command.id}", _bookmark_body(command), operation=op)
        verb = "Updated"

    bookmark = require_entity(normalize_bookmark(item_of(payload)), "bookmark", op)
    return Envelope(
        summary=f"{verb} bookmark: {bookmark.title or bookmark.link} (ID: {bookmark.id})",
        links=(bookmark_link(bookmark),),
    )


# ----------------------------------------------------------------------------
# Batch
# ----------------------------------------------------------------------------

async def _gather_by_id(ids: Sequence[int], make_call, message: str, operation: str) -> Dict[int, Any]:
    """Run one call per id concurrently; all must succeed.

    Returns:
        Results keyed by id

    Raises:
        AggregateError: If any call failed with a classified error
    """
    results = await asyncio.gather(*(make_call(i) for i in ids), return_exceptions=True)
    failures: Dict[int, Exception] = {}
    for bookmark_id, result in zip(ids, results):
        if isinstance(result, RaindropError):
            failures[bookmark_id] = result
        elif isinstance(result, BaseException):
            raise result
    if failures:
        logger.warning("%s: %d of %d calls failed", operation, len(failures), len(ids))
        raise AggregateError(message, failures, operation)
    return dict(zip(ids, results))


def _retag(bookmark: Bookmark, tags: Sequence[str], adding: bool) -> List[str]:
    if adding:
        return unique_tags(list(bookmark.tags) + list(tags))
    removing = set(tags)
    return [t for t in bookmark.tags if t not in removing]


async def _batch_retag(ids: List[int], tags: List[str], adding: bool, context: OperationContext) -> Envelope:
    op = context.operation
    gateway = context.gateway

    current = await _gather_by_id(
        ids, lambda i: fetch_bookmark(gateway, i, op), "Failed to fetch bookmarks before changing tags", op
    )

    changes = {}
    for bookmark_id, bookmark in current.items():
        new_tags = _retag(bookmark, tags, adding)
        if new_tags != list(bookmark.tags):
            changes[bookmark_id] = new_tags

    await _gather_by_id(
        list(changes),
        lambda i: gateway.put(f"/raindrop/{i}", {"tags": changes[i]}, operation=op),
        "Failed to update tags",
        op,
    )

    verb = "Added" if adding else "Removed"
    preposition = "to" if adding else "from"
    return Envelope(
        summary=f"{verb} tags [{', '.join(tags)}] {preposition} {len(ids)} bookmarks ({len(changes)} changed)",
        data={"ids": ids, "tags": tags, "changed": sorted(changes), "unchanged": sorted(set(ids) - set(changes))},
    )


async def bookmark_batch(args: Dict[str, Any], context: OperationContext) -> Envelope:
    """Apply one change to many bookmarks at once."""
    op = context.operation
    kind = get_choice(args, "operation", BATCH_OPERATIONS, op)
    ids = list(dict.fromkeys(require(get_int_list(args, "ids", op), "ids is required", op)))
    gateway = context.gateway

    if kind in ("tag_add", "tag_remove"):
        tags = require(get_str_list(args, "tags", op), f"tags is required for {kind}", op)
        return await _batch_retag(ids, tags, kind == "tag_add", context)

    if kind in ("delete", "delete_permanent"):
        suffix = "/permanent" if kind == "delete_permanent" else ""
        await _gather_by_id(
            ids, lambda i: gateway.delete(f"/raindrop/{i}{suffix}", operation=op), "Failed to delete bookmarks", op
        )
        where = "permanently" if suffix else "to Trash"
        return deleted(f"Deleted {len(ids)} bookmarks {where}", ids=ids, count=len(ids))

    collection_id = get_int(args, "collectionId", op)
    if kind == "move":
        require(collection_id, "collectionId is required for move", op)
        body: Dict[str, Any] = {"ids": ids, "collection": {"$id": collection_id}}
    else:
        important = get_bool(args, "important", op)
        tags = get_str_list(args, "tags", op)
        body = {
            "ids": ids,
            "important": important,
            "tags": tags,
            "collection": {"$id": collection_id} if collection_id is not None else None,
        }
        if important is None and tags is None and collection_id is None:
            raise ValidationError("at least one of important, tags or collectionId is required for update", op)

    payload = await gateway.put("/raindrops/0", body, operation=op)
    modified = payload.get("modified") if isinstance(payload.get("modified"), int) else len(ids)
    verb = "Moved" if kind == "move" else "Updated"
    return Envelope(summary=f"{verb} {modified} bookmarks", data={"ids": ids, "modified": modified})


# ----------------------------------------------------------------------------
# Reminders
# ----------------------------------------------------------------------------

async def bookmark_reminder(args: Dict[str, Any], context: OperationContext) -> Envelope:
    """Set or remove the reminder on a bookmark."""
    op = context.operation
    kind = get_choice(args, "operation", ("set", "remove"), op)
    bookmark_id = get_int(args, "bookmarkId", op)
    require(bookmark_id, f"bookmarkId is required for {kind}", op)

    if kind == "remove":
        await context.gateway.delete(f"/raindrop/{bookmark_id}/reminder", operation=op)
        return Envelope(summary=f"Reminder removed from bookmark {bookmark_id}",
                        data={"bookmarkId": bookmark_id, "removed": True})

    date = require(get_str(args, "date", op), "date is required for set", op)
    body = {"date": date, "note": get_str(args, "note", op)}
    payload = await context.gateway.put(f"/raindrop/{bookmark_id}/reminder", body, operation=op)

    bookmark = normalize_bookmark(item_of(payload))
    links = (bookmark_link(bookmark),) if bookmark is not None else ()
    return Envelope(
        summary=f"Reminder set for bookmark {bookmark_id} on {date}",
        data={"bookmarkId": bookmark_id, "reminder": {"date": date, "note": body["note"] or ""}},
        links=links,
    )


_BOOKMARK_FIELDS = {
    "url": {"type": "string", "description": "Bookmark URL (required for create)"},
    "collectionId": {"type": "integer", "description": "Collection ID (required for create)"},
    "title": {"type": "string"},
    "description": {"type": "string", "description": "Excerpt shown under the title"},
    "note": {"type": "string", "description": "Private note"},
    "tags": {"type": "array", "items": {"type": "string"}, "description": "Tags (replaces existing tags on update)"},
    "important": {"type": "boolean", "description": "Mark as favorite"},
}

BOOKMARK_PAGE_RESULT = result_schema(page_of(), BOOKMARK)

OPERATIONS = [
    Operation(
        name="bookmark_search",
        description=(
            "Search bookmarks with full-text query and filters. Searches all collections unless "
            "collectionId is given. Use exactTagMatch to keep only bookmarks carrying every "
            "requested tag exactly. Page with limit/offset, or page/perPage."
        ),
        input_schema=paginated_schema({
            "query": {"type": "string", "description": "Full-text search query"},
            "collectionId": {"type": "integer", "description": "Collection to search in (0 = all)"},
            "tags": {"type": "array", "items": {"type": "string"}, "description": "Tags to filter by"},
            "tag": {"type": "string", "description": "Single tag filter"},
            "important": {"type": "boolean", "description": "Only favorites"},
            "sort": {"type": "string", "enum": list(SORT_OPTIONS)},
            "domain": {"type": "string", "description": "Only bookmarks from this domain"},
            "duplicates": {"type": "boolean", "description": "Only duplicates"},
            "broken": {"type": "boolean", "description": "Only broken links"},
            "highlight": {"type": "boolean", "description": "Only bookmarks with highlights"},
            "exactTagMatch": {"type": "boolean", "default": False},
            "page": {"type": "integer", "minimum": 1, "description": "Page number (starts at 1)"},
            "perPage": {"type": "integer", "minimum": 1, "maximum": MAX_LIMIT},
        }),
        handler=bookmark_search,
        kind=READ,
        output_schema=BOOKMARK_PAGE_RESULT,
    ),
    Operation(
        name="bookmark_list",
        description="List the bookmarks of one collection.",
        input_schema=paginated_schema(
            {"collectionId": {"type": "integer", "description": "Collection ID (-1 = Unsorted, -99 = Trash)"}},
            required=["collectionId"],
        ),
        handler=bookmark_list,
        kind=READ,
        output_schema=BOOKMARK_PAGE_RESULT,
    ),
    Operation(
        name="bookmark_get",
        description="Get one bookmark by ID, including its highlights and reminder.",
        input_schema=object_schema({"id": {"type": "integer", "description": "Bookmark ID"}}, required=["id"]),
        handler=bookmark_get,
        kind=READ,
        output_schema=result_schema(item=BOOKMARK),
    ),
    Operation(
        name="bookmark_manage",
        description=(
            "Create, update, or delete a bookmark. create needs url and collectionId; "
            "update and delete need id. Delete moves the bookmark to Trash."
        ),
        input_schema=object_schema({
            "operation": {"type": "string", "enum": ["create", "update", "delete"]},
            "id": {"type": "integer", "description": "Bookmark ID (update/delete)"},
            **_BOOKMARK_FIELDS,
        }, required=["operation"]),
        handler=bookmark_manage,
        kind=MUTATE,
        output_schema=result_schema(optional(deleted_data()), BOOKMARK),
    ),
    Operation(
        name="bookmark_batch",
        description=(
            "Apply one change to many bookmarks: update (important/tags/collectionId), move "
            "(collectionId required), tag_add or tag_remove (tags required), delete (to Trash) "
            "or delete_permanent. If any bookmark fails the whole batch is reported as failed."
        ),
        input_schema=object_schema({
            "operation": {"type": "string", "enum": list(BATCH_OPERATIONS)},
            "ids": {"type": "array", "items": {"type": "integer"}, "minItems": 1},
            "collectionId": {"type": "integer"},
            "tags": {"type": "array", "items": {"type": "string"}},
            "important": {"type": "boolean"},
        }, required=["operation", "ids"]),
        handler=bookmark_batch,
        kind=MUTATE,
        output_schema=result_schema(obj({
            "ids": array_of(INTEGER),
            "tags": array_of(STRING),
            "changed": array_of(INTEGER),
            "unchanged": array_of(INTEGER),
            "modified": INTEGER,
            "deleted": BOOLEAN,
            "count": INTEGER,
        }, required=["ids"])),
    ),
    Operation(
        name="bookmark_reminder",
        description="Set or remove a bookmark reminder. set needs bookmarkId and an ISO 8601 date.",
        input_schema=object_schema({
            "operation": {"type": "string", "enum": ["set", "remove"]},
            "bookmarkId": {"type": "integer"},
            "date": {"type": "string", "description": "Reminder date (ISO 8601)"},
            "note": {"type": "string"},
        }, required=["operation", "bookmarkId"]),
        handler=bookmark_reminder,
        kind=MUTATE,
        output_schema=result_schema(obj({
            "bookmarkId": INTEGER,
            "reminder": REMINDER,
            "removed": BOOLEAN,
        }, required=["bookmarkId"]), BOOKMARK),
    ),
]
