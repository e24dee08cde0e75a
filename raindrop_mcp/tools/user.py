"""User profile and statistics."""
from typing import Any, Dict

from raindrop_mcp.api import fetch_user
from raindrop_mcp.envelope import USER_PROFILE_URI, Envelope, ResourceLink
from raindrop_mcp.normalize import normalize_stats
from raindrop_mcp.registry import READ, Operation, OperationContext
from raindrop_mcp.schemas import INTEGER, OPTIONAL_INTEGER, USER, array_of, obj, result_schema
from raindrop_mcp.tools.common import get_int, object_schema


async def user_profile(args: Dict[str, Any], context: OperationContext) -> Envelope:
    """Get the profile of the token's account."""
    user = await fetch_user(context.gateway, context.operation)
    plan = "Pro" if user.pro else "Free"
    return Envelope(
        summary=f"User: {user.full_name or user.email} ({plan})",
        links=(ResourceLink(uri=USER_PROFILE_URI, payload={"profile": user.to_dict()}),),
    )


async def user_statistics(args: Dict[str, Any], context: OperationContext) -> Envelope:
    """Bookmark counts per system collection, for the account or one collection."""
    op = context.operation
    collection_id = get_int(args, "collectionId", op)

    if collection_id is not None:
        payload = await context.gateway.get(f"/collection/{collection_id}/stats", operation=op)
        stats = normalize_stats(payload.get("stats", payload.get("items")))
        where = f"collection {collection_id}"
    else:
        payload = await context.gateway.get("/user/stats", operation=op)
        stats = normalize_stats(payload.get("items"))
        where = "your account"

    return Envelope(
        summary=f"Statistics for {where}: {len(stats.counts)} entries",
        data={"collectionId": collection_id, **stats.to_dict()},
    )


OPERATIONS = [
    Operation(
        name="user_profile",
        description="Get the profile of the account the access token belongs to.",
        input_schema=object_schema({}),
        handler=user_profile,
        kind=READ,
        output_schema=result_schema(item=obj({"profile": USER}, required=["profile"])),
    ),
    Operation(
        name="user_statistics",
        description=(
            "Bookmark counts per system collection (0 = all, -1 = Unsorted, -99 = Trash), "
            "for the whole account or for one collection."
        ),
        input_schema=object_schema({"collectionId": {"type": "integer"}}),
        handler=user_statistics,
        kind=READ,
        output_schema=result_schema(obj({
            "collectionId": OPTIONAL_INTEGER,
            "counts": array_of(obj({"collectionId": INTEGER, "count": INTEGER})),
        }, required=["counts"])),
    ),
]
