"""Collection operations: listing, lookup, lifecycle and maintenance."""
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Union

from raindrop_mcp.api import fetch_collection, require_entity
from raindrop_mcp.envelope import Envelope, collection_link, deleted
from raindrop_mcp.errors import ValidationError
from raindrop_mcp.normalize import item_of, items_of, normalize_collection, normalize_many
from raindrop_mcp.registry import MUTATE, READ, Operation, OperationContext
from raindrop_mcp.schemas import (
    BOOLEAN,
    COLLECTION,
    INTEGER,
    OPTIONAL_STRING,
    STRING,
    array_of,
    deleted_data,
    obj,
    optional,
    page_of,
    result_schema,
)
from raindrop_mcp.tools.common import (
    get_bool,
    get_choice,
    get_int,
    get_int_list,
    get_str,
    get_str_list,
    object_schema,
    page_info,
    paginated_schema,
    read_pagination,
    require,
    slice_page,
)


SHARE_LEVELS = ("view", "edit", "remove")


# ============================================================================
# Manage commands
# ============================================================================

@dataclass(frozen=True)
class CreateCollection:
    title: str
    parent_id: Optional[int] = None
    description: Optional[str] = None
    color: Optional[str] = None
    public: Optional[bool] = None


@dataclass(frozen=True)
class UpdateCollection:
    id: int
    title: Optional[str] = None
    parent_id: Optional[int] = None
    description: Optional[str] = None
    color: Optional[str] = None
    public: Optional[bool] = None


@dataclass(frozen=True)
class DeleteCollection:
    id: int


CollectionCommand = Union[CreateCollection, UpdateCollection, DeleteCollection]


def decode_collection_command(args: Dict[str, Any], operation: str = "collection_manage") -> CollectionCommand:
    """Decode collection_manage arguments into a command, checking required fields.

    Raises:
        ValidationError: Unknown operation or a missing required field
    """
    kind = get_choice(args, "operation", ("create", "update", "delete"), operation)

    if kind == "delete":
        collection_id = get_int(args, "id", operation)
        return DeleteCollection(id=require(collection_id, "id is required for delete", operation))

    fields = dict(
        title=get_str(args, "title", operation),
        parent_id=get_int(args, "parentId", operation),
        description=get_str(args, "description", operation),
        color=get_str(args, "color", operation),
        public=get_bool(args, "public", operation),
    )
    if kind == "create":
        title = fields.pop("title")
        require(title.strip() if title else None, "title is required for create", operation)
        return CreateCollection(title=title, **fields)

    collection_id = get_int(args, "id", operation)
    require(collection_id, "id is required for update", operation)
    if all(value is None for value in fields.values()):
        raise ValidationError("at least one field to change is required for update", operation)
    return UpdateCollection(id=collection_id, **fields)


def _collection_body(command: Union[CreateCollection, UpdateCollection]) -> Dict[str, Any]:
    return {
        "title": command.title,
        "description": command.description,
        "color": command.color,
        "public": command.public,
        "parent": {"$id": command.parent_id} if command.parent_id is not None else None,
    }


# ============================================================================
# Handlers
# ============================================================================

async def collection_list(args: Dict[str, Any], context: OperationContext) -> Envelope:
    """List all collections, or the children of one."""
    op = context.operation
    parent_id = get_int(args, "parentId", op)
    limit, offset = read_pagination(args, op)

    if parent_id is not None:
        payload = await context.gateway.get(f"/collections/{parent_id}/childrens", operation=op)
    else:
        payload = await context.gateway.get("/collections", operation=op)

    collections = normalize_many(items_of(payload), normalize_collection)
    page = slice_page(collections, limit, offset)
    return Envelope(
        summary=f"Found {len(collections)} collections",
        data=page_info(len(collections), limit, offset, len(page)),
        links=tuple(collection_link(c) for c in page),
    )


async def collection_get(args: Dict[str, Any], context: OperationContext) -> Envelope:
    """Get one collection by id."""
    collection_id = get_int(args, "id", context.operation, required=True)
    collection = await fetch_collection(context.gateway, collection_id, context.operation)
    return Envelope(
        summary=f"Collection: {collection.title} (ID: {collection.id}, {collection.count} items)",
        links=(collection_link(collection),),
    )


async def collection_manage(args: Dict[str, Any], context: OperationContext) -> Envelope:
    """Create, update or delete a collection."""
    op = context.operation
    command = decode_collection_command(args, op)
    gateway = context.gateway

    if isinstance(command, DeleteCollection):
        await gateway.delete(f"/collection/{command.id}", operation=op)
        return deleted(f"Collection {command.id} deleted. Its bookmarks were moved to Trash.", id=command.id)

    if isinstance(command, CreateCollection):
        payload = await gateway.post("/collection", _collection_body(command), operation=op)
        verb = "Created"
    else:
        payload = await gateway.put(f"/collection/{command.id}", _collection_body(command), operation=op)
        verb = "Updated"

    collection = require_entity(normalize_collection(item_of(payload)), "collection", op)
    return Envelope(
        summary=f"{verb} collection: {collection.title} (ID: {collection.id})",
        links=(collection_link(collection),),
    )


async def collection_maintenance(args: Dict[str, Any], context: OperationContext) -> Envelope:
    """Merge collections, remove empty ones, or empty the trash."""
    op = context.operation
    kind = get_choice(args, "operation", ("merge", "remove_empty", "empty_trash"), op)
    gateway = context.gateway

    if kind == "merge":
        target_id = get_int(args, "targetId", op)
        require(target_id, "targetId is required for merge", op)
        source_ids: List[int] = require(get_int_list(args, "sourceIds", op), "sourceIds is required for merge", op)
        await gateway.put(f"/collection/{target_id}/merge", {"with": source_ids}, operation=op)
        return Envelope(
            summary=f"Merged {len(source_ids)} collections into collection {target_id}",
            data={"merged": True, "targetId": target_id, "sourceIds": source_ids},
        )

    if kind == "remove_empty":
        payload = await gateway.put("/collections/clean", operation=op)
        count = payload.get("count") if isinstance(payload.get("count"), int) else 0
        return Envelope(summary=f"Removed {count} empty collections", data={"removed": count})

    await gateway.put("/collection/-99/clear", operation=op)
    return Envelope(summary="Trash emptied", data={"emptied": True})


async def collection_share(args: Dict[str, Any], context: OperationContext) -> Envelope:
    """Share a collection with other users and return its share link."""
    op = context.operation
    collection_id = get_int(args, "id", op, required=True)
    level = get_choice(args, "level", SHARE_LEVELS, op)
    emails = get_str_list(args, "emails", op)

    payload = await context.gateway.put(
        f"/collection/{collection_id}/sharing", {"level": level, "emails": emails}, operation=op
    )
    link = payload.get("link") if isinstance(payload.get("link"), str) else ""
    raw_access = payload.get("access")
    access = [a for a in raw_access if isinstance(a, dict)] if isinstance(raw_access, list) else []

    summary = f"Collection {collection_id} shared ({level})"
    if emails:
        summary += f" with {len(emails)} users"
    if link:
        summary += f". Link: {link}"
    return Envelope(
        summary=summary,
        data={"id": collection_id, "level": level, "emails": emails or [], "link": link or None, "access": access},
    )


OPERATIONS = [
    Operation(
        name="collection_list",
        description=(
            "List collections (folders). Omit parentId for all collections, or pass it to list "
            "the children of one collection. Use this to learn the collection structure first."
        ),
        input_schema=paginated_schema({
            "parentId": {"type": "integer", "description": "Parent collection ID to list children of"},
        }),
        handler=collection_list,
        kind=READ,
        output_schema=result_schema(page_of(), COLLECTION),
    ),
    Operation(
        name="collection_get",
        description="Get one collection by ID.",
        input_schema=object_schema(
            {"id": {"type": "integer", "description": "Collection ID"}},
            required=["id"],
        ),
        handler=collection_get,
        kind=READ,
        output_schema=result_schema(item=COLLECTION),
    ),
    Operation(
        name="collection_manage",
        description=(
            "Create, update, or delete a collection. Set operation to create (title required), "
            "update (id required) or delete (id required)."
        ),
        input_schema=object_schema({
            "operation": {"type": "string", "enum": ["create", "update", "delete"]},
            "id": {"type": "integer", "description": "Collection ID (update/delete)"},
            "title": {"type": "string", "description": "Collection title (required for create)"},
            "parentId": {"type": "integer", "description": "Parent collection ID, to nest the collection"},
            "description": {"type": "string"},
            "color": {"type": "string", "description": "Color as a hex string, e.g. #ff0000"},
            "public": {"type": "boolean", "description": "Make the collection publicly viewable"},
        }, required=["operation"]),
        handler=collection_manage,
        kind=MUTATE,
        output_schema=result_schema(optional(deleted_data()), COLLECTION),
    ),
    Operation(
        name="collection_maintenance",
        description=(
            "Collection housekeeping: merge collections into a target (targetId and sourceIds "
            "required), remove empty collections, or empty the trash."
        ),
        input_schema=object_schema({
            "operation": {"type": "string", "enum": ["merge", "remove_empty", "empty_trash"]},
            "targetId": {"type": "integer", "description": "Collection to merge into"},
            "sourceIds": {"type": "array", "items": {"type": "integer"}, "description": "Collections to merge"},
        }, required=["operation"]),
        handler=collection_maintenance,
        kind=MUTATE,
        output_schema=result_schema(obj({
            "merged": BOOLEAN,
            "targetId": INTEGER,
            "sourceIds": array_of(INTEGER),
            "removed": INTEGER,
            "emptied": BOOLEAN,
        })),
    ),
    Operation(
        name="collection_share",
        description=(
            "Share a collection. level is view (read only), edit (add and modify) or remove "
            "(revoke access); pass emails to invite specific users. Returns the share link."
        ),
        input_schema=object_schema({
            "id": {"type": "integer", "description": "Collection ID"},
            "level": {"type": "string", "enum": list(SHARE_LEVELS)},
            "emails": {"type": "array", "items": {"type": "string"}, "description": "Users to share with"},
        }, required=["id", "level"]),
        handler=collection_share,
        kind=MUTATE,
        output_schema=result_schema(obj({
            "id": INTEGER,
            "level": STRING,
            "emails": array_of(STRING),
            "link": OPTIONAL_STRING,
            "access": array_of({"type": "object"}),
        }, required=["id", "level"])),
    ),
]
