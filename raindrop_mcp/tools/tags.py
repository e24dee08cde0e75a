"""Tag operations."""
from dataclasses import dataclass
from typing import Any, Dict, Optional, Tuple, Union

from raindrop_mcp.envelope import Envelope, deleted
from raindrop_mcp.errors import ValidationError
from raindrop_mcp.normalize import items_of, normalize_many, normalize_tag
from raindrop_mcp.registry import MUTATE, READ, Operation, OperationContext
from raindrop_mcp.schemas import BOOLEAN, STRING, TAG, array_of, obj, page_of, result_schema
from raindrop_mcp.tools.common import (
    get_choice,
    get_int,
    get_str,
    get_str_list,
    object_schema,
    page_info,
    paginated_schema,
    read_pagination,
    require,
    slice_page,
)


@dataclass(frozen=True)
class RenameTag:
    tag: str
    new_name: str
    collection_id: Optional[int] = None


@dataclass(frozen=True)
class MergeTags:
    tags: Tuple[str, ...]
    new_name: str
    collection_id: Optional[int] = None


@dataclass(frozen=True)
class DeleteTags:
    tags: Tuple[str, ...]
    collection_id: Optional[int] = None


TagCommand = Union[RenameTag, MergeTags, DeleteTags]


def decode_tag_command(args: Dict[str, Any], operation: str = "tag_manage") -> TagCommand:
    """Decode tag_manage arguments; rename takes exactly one tag."""
    kind = get_choice(args, "operation", ("rename", "merge", "delete"), operation)
    collection_id = get_int(args, "collectionId", operation)
    tags = require(get_str_list(args, "tags", operation), f"tags is required for {kind}", operation)

    if kind == "delete":
        return DeleteTags(tags=tuple(tags), collection_id=collection_id)

    new_name = get_str(args, "newName", operation)
    require(new_name.strip() if new_name else None, f"newName is required for {kind}", operation)
    if kind == "rename":
        if len(tags) != 1:
            raise ValidationError("rename takes exactly one tag; use merge for several", operation)
        return RenameTag(tag=tags[0], new_name=new_name, collection_id=collection_id)
    return MergeTags(tags=tuple(tags), new_name=new_name, collection_id=collection_id)


def _scope(collection_id: Optional[int]) -> str:
    return f"collection {collection_id}" if collection_id else "all collections"


async def tag_list(args: Dict[str, Any], context: OperationContext) -> Envelope:
    """List tags with their bookmark counts."""
    op = context.operation
    collection_id = get_int(args, "collectionId", op)
    limit, offset = read_pagination(args, op)

    payload = await context.gateway.get(f"/tags/{collection_id or 0}", operation=op)
    tags = normalize_many(items_of(payload), normalize_tag, collection_id=collection_id)
    page = slice_page(tags, limit, offset)
    return Envelope(
        summary=f"Found {len(tags)} tags in {_scope(collection_id)}",
        data={"tags": [t.to_dict() for t in page], **page_info(len(tags), limit, offset, len(page))},
    )


async def tag_manage(args: Dict[str, Any], context: OperationContext) -> Envelope:
    """Rename, merge or delete tags."""
    op = context.operation
    command = decode_tag_command(args, op)
    path = f"/tags/{command.collection_id or 0}"

    if isinstance(command, DeleteTags):
        await context.gateway.delete(path, {"tags": list(command.tags)}, operation=op)
        return deleted(
            f"Deleted {len(command.tags)} tags from {_scope(command.collection_id)}: {', '.join(command.tags)}",
            tags=list(command.tags),
        )

    # Rename is a merge of a single tag upstream
    sources = [command.tag] if isinstance(command, RenameTag) else list(command.tags)
    await context.gateway.put(path, {"replace": command.new_name, "tags": sources}, operation=op)

    if isinstance(command, RenameTag):
        summary = f"Renamed tag '{command.tag}' to '{command.new_name}'"
    else:
        summary = f"Merged tags [{', '.join(sources)}] into '{command.new_name}'"
    return Envelope(summary=summary, data={"tags": sources, "newName": command.new_name})


OPERATIONS = [
    Operation(
        name="tag_list",
        description="List tags with their bookmark counts, across all collections or within one.",
        input_schema=paginated_schema({
            "collectionId": {"type": "integer", "description": "Limit to this collection"},
        }),
        handler=tag_list,
        kind=READ,
        output_schema=result_schema(page_of(tags=array_of(TAG))),
    ),
    Operation(
        name="tag_manage",
        description=(
            "Rename a tag (one tag + newName), merge several tags into newName, or delete tags. "
            "Applies to all collections unless collectionId is given."
        ),
        input_schema=object_schema({
            "operation": {"type": "string", "enum": ["rename", "merge", "delete"]},
            "tags": {"type": "array", "items": {"type": "string"}, "minItems": 1},
            "newName": {"type": "string", "description": "Destination tag name (rename/merge)"},
            "collectionId": {"type": "integer"},
        }, required=["operation", "tags"]),
        handler=tag_manage,
        kind=MUTATE,
        output_schema=result_schema(obj({
            "tags": array_of(STRING),
            "newName": STRING,
            "deleted": BOOLEAN,
        }, required=["tags"])),
    ),
]
