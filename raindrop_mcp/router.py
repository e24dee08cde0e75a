"""Read-only resources addressed by URI.

Entity resources are resolved by prefix plus a trailing numeric id and are
fetched through the same gateway/normalizer path as the get operations.
The router keeps no state besides the pre-rendered diagnostics document.
"""
import logging
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Dict, List, Optional

from raindrop_mcp.api import fetch_bookmark, fetch_collection, fetch_user
from raindrop_mcp.envelope import (
    BOOKMARK_URI,
    COLLECTION_URI,
    DIAGNOSTICS_URI,
    JSON_MIME,
    USER_PROFILE_URI,
    to_json,
)
from raindrop_mcp.errors import NotFoundError, ValidationError
from raindrop_mcp.gateway import Gateway

logger = logging.getLogger(__name__)

BOOKMARK_ALIAS_URI = "mcp://bookmark/{id}"


@dataclass(frozen=True)
class ResourceDescriptor:
    uri: str
    name: str
    description: str
    mime_type: str = JSON_MIME
    templated: bool = False


@dataclass(frozen=True)
class ResourceContent:
    uri: str
    text: str
    mime_type: str = JSON_MIME


def parse_id(uri: str, prefix: str) -> int:
    """Parse the trailing numeric segment of ``uri`` after ``prefix``.

    Raises:
        ValidationError: If the segment is empty or not an integer
    """
    segment = uri[len(prefix):].strip("/")
    digits = segment[1:] if segment.startswith("-") else segment
    if not digits.isdigit():
        raise ValidationError(f"Invalid resource id in {uri!r}: expected an integer", "read_resource")
    return int(segment)


class ResourceRouter:
    """Resolves resource URIs to rendered JSON payloads."""

    def __init__(self, gateway: Gateway, diagnostics: Optional[Dict[str, Any]] = None):
        """
        Args:
            gateway: Shared API gateway
            diagnostics: Pre-rendered diagnostics document (served as-is)
        """
        self.gateway = gateway
        self._diagnostics = to_json(diagnostics) if diagnostics is not None else None

        self._static: Dict[str, Callable[[], Awaitable[str]]] = {
            USER_PROFILE_URI: self._read_profile,
        }
        if self._diagnostics is not None:
            self._static[DIAGNOSTICS_URI] = self._read_diagnostics

        self._templates: Dict[str, Callable[[int], Awaitable[str]]] = {
            COLLECTION_URI.split("{")[0]: self._read_collection,
            BOOKMARK_URI.split("{")[0]: self._read_bookmark,
            BOOKMARK_ALIAS_URI.split("{")[0]: self._read_bookmark,
        }

    def list(self) -> List[ResourceDescriptor]:
        descriptors = [
            ResourceDescriptor(
                uri=USER_PROFILE_URI,
                name="User profile",
                description="Profile of the account the access token belongs to",
            ),
        ]
        if self._diagnostics is not None:
            descriptors.append(ResourceDescriptor(
                uri=DIAGNOSTICS_URI,
                name="Server diagnostics",
                description="Version, runtime and enabled operations of this server",
            ))
        descriptors.extend([
            ResourceDescriptor(
                uri=COLLECTION_URI,
                name="Collection",
                description="A Raindrop.io collection by ID",
                templated=True,
            ),
            ResourceDescriptor(
                uri=BOOKMARK_URI,
                name="Bookmark",
                description="A Raindrop.io bookmark by ID (also available as mcp://bookmark/{id})",
                templated=True,
            ),
        ])
        return descriptors

    async def read(self, uri: str) -> ResourceContent:
        """Resolve and render one resource.

        Raises:
            ValidationError: Recognized prefix but malformed id
            NotFoundError: Unknown URI, or the entity does not exist upstream
        """
        uri = str(uri)
        reader = self._static.get(uri)
        if reader is not None:
            return ResourceContent(uri=uri, text=await reader())

        for prefix, template_reader in self._templates.items():
            if uri.startswith(prefix):
                entity_id = parse_id(uri, prefix)
                logger.debug("Reading %s", uri)
                return ResourceContent(uri=uri, text=await template_reader(entity_id))

        raise NotFoundError(f"Unknown resource: {uri}", "read_resource")

    async def _read_profile(self) -> str:
        user = await fetch_user(self.gateway, "read_resource")
        return to_json({"profile": user.to_dict()})

    async def _read_diagnostics(self) -> str:
        return self._diagnostics

    async def _read_collection(self, collection_id: int) -> str:
        collection = await fetch_collection(self.gateway, collection_id, "read_resource")
        return to_json({"collection": collection.to_dict()})

    async def _read_bookmark(self, bookmark_id: int) -> str:
        bookmark = await fetch_bookmark(self.gateway, bookmark_id, "read_resource")
        return to_json({"bookmark": bookmark.to_dict()})
