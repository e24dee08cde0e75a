"""Operation modules, one per resource family."""
from raindrop_mcp.gateway import Gateway
from raindrop_mcp.registry import OperationRegistry
from raindrop_mcp.tools import bookmarks, collections, diagnostics, highlights, tags, transfer, user

ALL_OPERATIONS = [
    *diagnostics.OPERATIONS,
    *collections.OPERATIONS,
    *bookmarks.OPERATIONS,
    *tags.OPERATIONS,
    *highlights.OPERATIONS,
    *user.OPERATIONS,
    *transfer.OPERATIONS,
]


def build_registry(gateway: Gateway) -> OperationRegistry:
    """Create a registry holding every operation, bound to one gateway."""
    return OperationRegistry(gateway, ALL_OPERATIONS)
