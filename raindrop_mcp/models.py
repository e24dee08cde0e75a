"""Canonical entity shapes produced by the normalizer.

These are transient values: built fresh for each call and never cached.
``to_dict`` gives the JSON shape handed to MCP clients.
"""
from dataclasses import dataclass, field
from typing import Any, Dict, Optional, Tuple


HIGHLIGHT_COLORS = (
    "blue", "brown", "cyan", "gray", "green", "indigo",
    "orange", "pink", "purple", "red", "teal", "yellow",
)
DEFAULT_HIGHLIGHT_COLOR = "yellow"


@dataclass(frozen=True)
class Access:
    level: int = 0
    draggable: bool = False

    def to_dict(self) -> Dict[str, Any]:
        return {"level": self.level, "draggable": self.draggable}


@dataclass(frozen=True)
class Collection:
    id: int
    title: str
    description: str = ""
    color: Optional[str] = None
    count: int = 0
    parent: Optional[int] = None  # None = top level; 0 is a real id
    created: str = ""
    last_update: str = ""
    expanded: bool = False
    public: bool = False
    access: Access = field(default_factory=Access)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "title": self.title,
            "description": self.description,
            "color": self.color,
            "count": self.count,
            "parent": self.parent,
            "created": self.created,
            "lastUpdate": self.last_update,
            "expanded": self.expanded,
            "public": self.public,
            "access": self.access.to_dict(),
        }


@dataclass(frozen=True)
class Reminder:
    date: str
    note: str = ""

    def to_dict(self) -> Dict[str, Any]:
        return {"date": self.date, "note": self.note}


@dataclass(frozen=True)
class BookmarkRef:
    """Back-reference from a highlight to the bookmark that owns it."""
    id: int
    title: str = ""
    link: str = ""
    collection_id: Optional[int] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "title": self.title,
            "link": self.link,
            "collectionId": self.collection_id,
        }


@dataclass(frozen=True)
class Highlight:
    # Raindrop highlight ids are opaque strings; numeric ids are kept in decimal form
    id: str
    text: str
    note: str = ""
    color: str = DEFAULT_HIGHLIGHT_COLOR
    created: str = ""
    last_update: str = ""
    bookmark: Optional[BookmarkRef] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "text": self.text,
            "note": self.note,
            "color": self.color,
            "created": self.created,
            "lastUpdate": self.last_update,
            "bookmark": self.bookmark.to_dict() if self.bookmark else None,
        }


@dataclass(frozen=True)
class Bookmark:
    id: int
    link: str
    title: str = ""
    excerpt: str = ""
    note: str = ""
    tags: Tuple[str, ...] = ()
    important: bool = False
    collection_id: Optional[int] = None
    domain: str = ""
    type: str = "link"
    created: str = ""
    last_update: str = ""
    reminder: Optional[Reminder] = None
    highlights: Tuple[Highlight, ...] = ()

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "link": self.link,
            "title": self.title,
            "excerpt": self.excerpt,
            "note": self.note,
            "tags": list(self.tags),
            "important": self.important,
            "collectionId": self.collection_id,
            "domain": self.domain,
            "type": self.type,
            "created": self.created,
            "lastUpdate": self.last_update,
            "reminder": self.reminder.to_dict() if self.reminder else None,
            "highlights": [h.to_dict() for h in self.highlights],
        }

    def ref(self) -> BookmarkRef:
        """Back-reference used when normalizing this bookmark's highlights."""
        return BookmarkRef(id=self.id, title=self.title, link=self.link, collection_id=self.collection_id)


@dataclass(frozen=True)
class Tag:
    name: str
    count: int = 0
    collection_id: Optional[int] = None

    def to_dict(self) -> Dict[str, Any]:
        return {"name": self.name, "count": self.count, "collectionId": self.collection_id}


@dataclass(frozen=True)
class User:
    id: int
    email: str = ""
    full_name: str = ""
    pro: bool = False
    pro_expire: str = ""
    registered: str = ""

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "email": self.email,
            "fullName": self.full_name,
            "pro": self.pro,
            "proExpire": self.pro_expire,
            "registered": self.registered,
        }


@dataclass(frozen=True)
class Stats:
    """Bookmark counts keyed by collection id (0 = all, -1 = unsorted, -99 = trash)."""
    counts: Tuple[Tuple[int, int], ...] = ()

    def to_dict(self) -> Dict[str, Any]:
        return {"counts": [{"collectionId": cid, "count": count} for cid, count in self.counts]}


@dataclass(frozen=True)
class TransferStatus:
    """Progress of an upstream import or export job."""
    status: str
    progress: Optional[int] = None
    imported: Optional[int] = None
    duplicates: Optional[int] = None
    url: str = ""
    error: str = ""

    def to_dict(self) -> Dict[str, Any]:
        return {
            "status": self.status,
            "progress": self.progress,
            "imported": self.imported,
            "duplicates": self.duplicates,
            "url": self.url,
            "error": self.error,
        }
