"""Single-entity reads shared by the operation registry and the resource router."""
from typing import Any, Optional

from raindrop_mcp.errors import ValidationError
from raindrop_mcp.gateway import Gateway
from raindrop_mcp.models import Bookmark, Collection, User
from raindrop_mcp.normalize import item_of, normalize_bookmark, normalize_collection, normalize_user


def require_entity(entity: Optional[Any], what: str, operation: str) -> Any:
    """Turn a normalizer's None into a ValidationError."""
    if entity is None:
        raise ValidationError(f"Raindrop.io returned an invalid {what} (required fields missing)", operation)
    return entity


async def fetch_collection(gateway: Gateway, collection_id: int, operation: str = "collection_get") -> Collection:
    payload = await gateway.get(f"/collection/{collection_id}", operation=operation)
    return require_entity(normalize_collection(item_of(payload)), "collection", operation)


async def fetch_bookmark(gateway: Gateway, bookmark_id: int, operation: str = "bookmark_get") -> Bookmark:
    payload = await gateway.get(f"/raindrop/{bookmark_id}", operation=operation)
    return require_entity(normalize_bookmark(item_of(payload)), "bookmark", operation)


async def fetch_user(gateway: Gateway, operation: str = "user_profile") -> User:
    payload = await gateway.get("/user", operation=operation)
    return require_entity(normalize_user(payload.get("user")), "user", operation)
