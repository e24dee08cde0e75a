"""Uniform result envelope returned by every operation handler."""
import json
from dataclasses import dataclass
from typing import Any, Dict, List, Tuple, Union

from mcp.types import EmbeddedResource, TextContent, TextResourceContents


JSON_MIME = "application/json"

COLLECTION_URI = "mcp://collection/{id}"
BOOKMARK_URI = "mcp://raindrop/{id}"
USER_PROFILE_URI = "mcp://user/profile"
DIAGNOSTICS_URI = "diagnostics://server"


def to_json(data: Any) -> str:
    return json.dumps(data, indent=2, ensure_ascii=False)


@dataclass(frozen=True)
class ResourceLink:
    """Pointer to a separately addressable resource, with its payload inlined."""
    uri: str
    payload: Any
    mime_type: str = JSON_MIME


@dataclass(frozen=True)
class Envelope:
    """What every handler returns, whatever the entity type.

    Attributes:
        summary: One human-readable line
        data: JSON-serializable result (None when the links say it all)
        links: Resources the result points to
    """
    summary: str
    data: Any = None
    links: Tuple[ResourceLink, ...] = ()

    def to_content(self) -> List[Union[TextContent, EmbeddedResource]]:
        """Render the envelope as MCP content blocks."""
        content: List[Union[TextContent, EmbeddedResource]] = [
            TextContent(type="text", text=self.summary)
        ]
        if self.data is not None:
            content.append(TextContent(type="text", text=to_json(self.data)))
        for link in self.links:
            content.append(EmbeddedResource(
                type="resource",
                resource=TextResourceContents(
                    uri=link.uri,
                    mimeType=link.mime_type,
                    text=to_json(link.payload),
                ),
            ))
        return content

    def to_structured(self) -> Dict[str, Any]:
        """Render the envelope as structured tool output."""
        return {
            "summary": self.summary,
            "data": self.data,
            "resources": [{"uri": link.uri, "item": link.payload} for link in self.links],
        }


def collection_link(collection) -> ResourceLink:
    return ResourceLink(uri=COLLECTION_URI.format(id=collection.id), payload=collection.to_dict())


def bookmark_link(bookmark) -> ResourceLink:
    return ResourceLink(uri=BOOKMARK_URI.format(id=bookmark.id), payload=bookmark.to_dict())


def deleted(summary: str, **details: Any) -> Envelope:
    """Envelope for a successful delete: a flag, since no entity is left."""
    return Envelope(summary=summary, data={"deleted": True, **details})
