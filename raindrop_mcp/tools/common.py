"""Input-contract helpers shared by the operation modules.

Arguments arrive as loosely-typed JSON. These helpers read one field each,
raising ValidationError naming the field, so every handler fails before
touching the network when its input is bad.
"""
from typing import Any, Dict, List, Optional, Sequence, Tuple

from raindrop_mcp.errors import ValidationError


DEFAULT_LIMIT = 25
MAX_LIMIT = 100

LIMIT_PROPERTY = {
    "type": "integer",
    "minimum": 1,
    "maximum": MAX_LIMIT,
    "default": DEFAULT_LIMIT,
    "description": f"Maximum number of items to return (1-{MAX_LIMIT}, default {DEFAULT_LIMIT})",
}
OFFSET_PROPERTY = {
    "type": "integer",
    "minimum": 0,
    "default": 0,
    "description": "Number of items to skip (default 0)",
}


def object_schema(properties: Dict[str, Any], required: Sequence[str] = ()) -> Dict[str, Any]:
    schema: Dict[str, Any] = {"type": "object", "properties": properties}
    if required:
        schema["required"] = list(required)
    return schema


def paginated_schema(properties: Dict[str, Any], required: Sequence[str] = ()) -> Dict[str, Any]:
    """Object schema with the standard limit/offset fields added."""
    return object_schema({**properties, "limit": LIMIT_PROPERTY, "offset": OFFSET_PROPERTY}, required)


# ============================================================================
# Field readers
# ============================================================================

def get_int(args: Dict[str, Any], key: str, operation: str, required: bool = False,
            minimum: Optional[int] = None, maximum: Optional[int] = None,
            default: Optional[int] = None) -> Optional[int]:
    value = args.get(key)
    if value is None:
        if required:
            raise ValidationError(f"{key} is required", operation)
        return default
    if isinstance(value, bool) or not isinstance(value, (int, float)) or int(value) != value:
        # Clients sometimes send ids as strings
        if isinstance(value, str) and value.strip().lstrip("-").isdigit():
            value = int(value.strip())
        else:
            raise ValidationError(f"{key} must be an integer", operation)
    value = int(value)
    if minimum is not None and value < minimum:
        raise ValidationError(f"{key} must be >= {minimum}", operation)
    if maximum is not None and value > maximum:
        raise ValidationError(f"{key} must be <= {maximum}", operation)
    return value


def get_str(args: Dict[str, Any], key: str, operation: str, required: bool = False) -> Optional[str]:
    value = args.get(key)
    if value is None:
        if required:
            raise ValidationError(f"{key} is required", operation)
        return None
    if not isinstance(value, str):
        raise ValidationError(f"{key} must be a string", operation)
    return value


def get_bool(args: Dict[str, Any], key: str, operation: str, default: Optional[bool] = None) -> Optional[bool]:
    value = args.get(key)
    if value is None:
        return default
    if not isinstance(value, bool):
        raise ValidationError(f"{key} must be a boolean", operation)
    return value


def get_str_list(args: Dict[str, Any], key: str, operation: str) -> Optional[List[str]]:
    value = args.get(key)
    if value is None:
        return None
    if not isinstance(value, list) or not all(isinstance(v, str) for v in value):
        raise ValidationError(f"{key} must be a list of strings", operation)
    return list(value)


def get_int_list(args: Dict[str, Any], key: str, operation: str) -> Optional[List[int]]:
    value = args.get(key)
    if value is None:
        return None
    if not isinstance(value, list):
        raise ValidationError(f"{key} must be a list of integers", operation)
    return [get_int({key: v}, key, operation, required=True) for v in value]


def get_choice(args: Dict[str, Any], key: str, choices: Sequence[str], operation: str) -> str:
    value = args.get(key)
    if value is None:
        raise ValidationError(f"{key} is required (one of: {', '.join(choices)})", operation)
    if value not in choices:
        raise ValidationError(f"Unsupported {key}: {value!r} (expected one of: {', '.join(choices)})", operation)
    return value


def require(value: Any, message: str, operation: str) -> Any:
    """Return value, or raise ValidationError(message) if it is None or empty."""
    if value is None or value == "" or value == []:
        raise ValidationError(message, operation)
    return value


# ============================================================================
# Pagination
# ============================================================================

def read_pagination(args: Dict[str, Any], operation: str) -> Tuple[int, int]:
    """Return (limit, offset) with defaults applied and bounds checked."""
    limit = get_int(args, "limit", operation, minimum=1, maximum=MAX_LIMIT, default=DEFAULT_LIMIT)
    offset = get_int(args, "offset", operation, minimum=0, default=0)
    return limit, offset


def offset_to_page(offset: int, limit: int) -> int:
    """Translate an item offset into the 1-indexed page holding it.

    offset=50, limit=25 -> page 3.
    """
    return offset // limit + 1


def slice_page(items: List[Any], limit: int, offset: int) -> List[Any]:
    """Client-side pagination for lists the upstream returns in full."""
    return items[offset:offset + limit]


def page_info(total: int, limit: int, offset: int, returned: int) -> Dict[str, Any]:
    return {
        "total": total,
        "limit": limit,
        "offset": offset,
        "returned": returned,
        "hasMore": offset + returned < total,
    }
