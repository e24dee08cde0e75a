"""Normalization of raw Raindrop.io payloads into canonical entities.

Upstream shapes are inconsistent: related ids arrive nested as
``{"$id": n}``, as ``{"_id": n}`` or flat (``collectionId``), optional
fields may be missing or null, and highlight endpoints do not always echo
the owning bookmark. All of that is absorbed here; nothing outside this
module reads raw upstream field names.

Each ``normalize_*`` function is pure. It returns None only when a
required field is missing (an id, or the text of a highlight); callers
turn that into a ValidationError.
"""
from typing import Any, Dict, Iterable, List, Mapping, Optional

from raindrop_mcp.models import (
    DEFAULT_HIGHLIGHT_COLOR,
    HIGHLIGHT_COLORS,
    Access,
    Bookmark,
    BookmarkRef,
    Collection,
    Highlight,
    Reminder,
    Stats,
    Tag,
    TransferStatus,
    User,
)


# ============================================================================
# Field helpers
# ============================================================================

def extract_id(value: Any) -> Optional[int]:
    """Extract a flat numeric id from any of the upstream id shapes.

    Accepts ``5``, ``"5"``, ``{"$id": 5}`` and ``{"_id": 5}``.
    """
    if isinstance(value, Mapping):
        value = value.get("$id", value.get("_id"))
    if isinstance(value, bool) or value is None:
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, float) and value.is_integer():
        return int(value)
    if isinstance(value, str):
        try:
            return int(value.strip())
        except ValueError:
            return None
    return None


def _first_id(raw: Mapping[str, Any], *keys: str) -> Optional[int]:
    for key in keys:
        if key in raw:
            found = extract_id(raw[key])
            if found is not None:
                return found
    return None


def _text(value: Any) -> str:
    return value if isinstance(value, str) else ""


def _count(value: Any) -> int:
    if isinstance(value, bool):
        return 0
    try:
        return max(0, int(value))
    except (TypeError, ValueError):
        return 0


def _optional_int(value: Any) -> Optional[int]:
    if value is None or isinstance(value, bool):
        return None
    try:
        return int(value)
    except (TypeError, ValueError):
        return None


def _tags(value: Any) -> tuple:
    if not isinstance(value, list):
        return ()
    return tuple(t for t in value if isinstance(t, str))


def normalize_color(value: Any) -> str:
    """Return a valid highlight color, falling back to yellow."""
    if isinstance(value, str) and value.strip().lower() in HIGHLIGHT_COLORS:
        return value.strip().lower()
    return DEFAULT_HIGHLIGHT_COLOR


# ============================================================================
# Entities
# ============================================================================

def normalize_collection(raw: Mapping[str, Any]) -> Optional[Collection]:
    """Normalize a raw collection payload.

    Args:
        raw: Collection object as returned by the API

    Returns:
        Collection, or None if the id is missing
    """
    if not isinstance(raw, Mapping):
        return None
    collection_id = _first_id(raw, "_id", "id")
    if collection_id is None:
        return None

    parent = _first_id(raw, "parent", "parentId")
    if parent == collection_id:
        # A collection cannot be its own parent
        parent = None

    access = raw.get("access") if isinstance(raw.get("access"), Mapping) else {}

    return Collection(
        id=collection_id,
        title=_text(raw.get("title")),
        description=_text(raw.get("description")),
        color=raw.get("color") if isinstance(raw.get("color"), str) else None,
        count=_count(raw.get("count")),
        parent=parent,
        created=_text(raw.get("created")),
        last_update=_text(raw.get("lastUpdate")),
        expanded=bool(raw.get("expanded", False)),
        public=bool(raw.get("public", False)),
        access=Access(
            level=_count(access.get("level")),
            draggable=bool(access.get("draggable", False)),
        ),
    )


def normalize_reminder(raw: Any) -> Optional[Reminder]:
    if not isinstance(raw, Mapping) or not _text(raw.get("date")):
        return None
    return Reminder(date=raw["date"], note=_text(raw.get("note")))


def normalize_highlight(raw: Mapping[str, Any], bookmark: Optional[BookmarkRef] = None) -> Optional[Highlight]:
    """Normalize a raw highlight payload.

    The owning bookmark is read from the payload when present (``raindrop``
    object, ``raindropRef`` or ``bookmarkId``); otherwise the ``bookmark``
    context supplied by the caller is used.

    Args:
        raw: Highlight object as returned by the API
        bookmark: Back-reference to use when the payload omits it

    Returns:
        Highlight, or None if the id or the text is missing
    """
    if not isinstance(raw, Mapping):
        return None
    raw_id = raw.get("_id", raw.get("id"))
    if raw_id is None or isinstance(raw_id, bool) or raw_id == "":
        return None
    text = _text(raw.get("text"))
    if not text.strip():
        return None

    return Highlight(
        id=str(raw_id),
        text=text,
        note=_text(raw.get("note")),
        color=normalize_color(raw.get("color")),
        created=_text(raw.get("created")),
        last_update=_text(raw.get("lastUpdate")),
        bookmark=_highlight_owner(raw, bookmark),
    )


def _highlight_owner(raw: Mapping[str, Any], context: Optional[BookmarkRef]) -> Optional[BookmarkRef]:
    owner = raw.get("raindrop")
    if isinstance(owner, Mapping):
        owner_id = extract_id(owner)
        # Upstream echoes 0 when it does not know the owner
        if owner_id:
            fallback = context if context is not None and context.id == owner_id else BookmarkRef(id=owner_id)
            collection_id = _first_id(owner, "collection", "collectionId")
            return BookmarkRef(
                id=owner_id,
                title=_text(owner.get("title")) or fallback.title,
                link=_text(owner.get("link")) or fallback.link,
                collection_id=collection_id if collection_id is not None else fallback.collection_id,
            )

    owner_id = _first_id(raw, "raindropRef", "bookmarkId")
    if owner_id is not None:
        if context is not None and context.id == owner_id:
            return context
        return BookmarkRef(
            id=owner_id,
            title=_text(raw.get("title")),
            link=_text(raw.get("link")),
            collection_id=_first_id(raw, "collectionId", "collection"),
        )

    return context


def normalize_bookmark(raw: Mapping[str, Any]) -> Optional[Bookmark]:
    """Normalize a raw bookmark ("raindrop") payload.

    Args:
        raw: Raindrop object as returned by the API

    Returns:
        Bookmark, or None if the id or link is missing
    """
    if not isinstance(raw, Mapping):
        return None
    bookmark_id = _first_id(raw, "_id", "id")
    link = _text(raw.get("link"))
    if bookmark_id is None or not link:
        return None

    collection_id = _first_id(raw, "collection", "collectionId")
    title = _text(raw.get("title"))
    ref = BookmarkRef(id=bookmark_id, title=title, link=link, collection_id=collection_id)

    raw_highlights = raw.get("highlights") if isinstance(raw.get("highlights"), list) else []
    highlights = tuple(
        h for h in (normalize_highlight(item, ref) for item in raw_highlights) if h is not None
    )

    return Bookmark(
        id=bookmark_id,
        link=link,
        title=title,
        excerpt=_text(raw.get("excerpt")),
        note=_text(raw.get("note")),
        tags=_tags(raw.get("tags")),
        important=bool(raw.get("important", False)),
        collection_id=collection_id,
        domain=_text(raw.get("domain")),
        type=_text(raw.get("type")) or "link",
        created=_text(raw.get("created")),
        last_update=_text(raw.get("lastUpdate")),
        reminder=normalize_reminder(raw.get("reminder")),
        highlights=highlights,
    )


def normalize_tag(raw: Mapping[str, Any], collection_id: Optional[int] = None) -> Optional[Tag]:
    """Normalize a raw tag payload (``{"_id": name, "count": n}``)."""
    if not isinstance(raw, Mapping):
        return None
    name = raw.get("_id", raw.get("name"))
    if not isinstance(name, str) or not name:
        return None
    return Tag(name=name, count=_count(raw.get("count")), collection_id=collection_id)


def normalize_user(raw: Mapping[str, Any]) -> Optional[User]:
    if not isinstance(raw, Mapping):
        return None
    user_id = _first_id(raw, "_id", "id")
    if user_id is None:
        return None
    return User(
        id=user_id,
        email=_text(raw.get("email")),
        full_name=_text(raw.get("fullName")) or _text(raw.get("name")),
        pro=bool(raw.get("pro", False)),
        pro_expire=_text(raw.get("proExpire")),
        registered=_text(raw.get("registered")),
    )


def normalize_stats(raw: Any) -> Stats:
    """Normalize statistics from either ``[{_id, count}]`` items or a ``{name: count}`` mapping."""
    counts = []
    if isinstance(raw, list):
        for item in raw:
            if isinstance(item, Mapping):
                cid = _first_id(item, "_id", "id")
                if cid is not None:
                    counts.append((cid, _count(item.get("count"))))
    elif isinstance(raw, Mapping):
        for key, value in raw.items():
            cid = extract_id(key)
            if cid is not None:
                counts.append((cid, _count(value)))
    return Stats(counts=tuple(counts))


def normalize_transfer_status(raw: Mapping[str, Any]) -> TransferStatus:
    if not isinstance(raw, Mapping):
        raw = {}
    return TransferStatus(
        status=_text(raw.get("status")) or "unknown",
        progress=_optional_int(raw.get("progress")),
        imported=_optional_int(raw.get("imported")),
        duplicates=_optional_int(raw.get("duplicates")),
        url=_text(raw.get("url")),
        error=_text(raw.get("error")),
    )


# ============================================================================
# Batch helpers
# ============================================================================

def normalize_many(items: Any, normalizer, **context: Any) -> List[Any]:
    """Normalize a list of raw items, dropping the ones missing required fields."""
    if not isinstance(items, list):
        return []
    results = []
    for raw in items:
        entity = normalizer(raw, **context)
        if entity is not None:
            results.append(entity)
    return results


def items_of(payload: Dict[str, Any]) -> List[Any]:
    """Return the ``items`` list of a list response (empty if absent)."""
    items = payload.get("items")
    return items if isinstance(items, list) else []


def item_of(payload: Dict[str, Any]) -> Any:
    """Return the ``item`` of a single-entity response."""
    return payload.get("item")


def unique_tags(tags: Iterable[str]) -> List[str]:
    """Deduplicate tags, keeping first-seen order."""
    seen = set()
    result = []
    for tag in tags:
        if tag not in seen:
            seen.add(tag)
            result.append(tag)
    return result
