"""Output contracts (JSON Schema) for operation results.

Every operation returns the structured form of its Envelope:
``{"summary": str, "data": ..., "resources": [{"uri": str, "item": ...}]}``.
The entity schemas mirror the ``to_dict`` shapes in ``models``.
"""
from typing import Any, Dict, Optional, Sequence

from raindrop_mcp.models import HIGHLIGHT_COLORS


STRING = {"type": "string"}
INTEGER = {"type": "integer"}
BOOLEAN = {"type": "boolean"}
NULL = {"type": "null"}
OPTIONAL_STRING = {"type": ["string", "null"]}
OPTIONAL_INTEGER = {"type": ["integer", "null"]}


def obj(properties: Dict[str, Any], required: Sequence[str] = ()) -> Dict[str, Any]:
    schema: Dict[str, Any] = {"type": "object", "properties": properties}
    if required:
        schema["required"] = list(required)
    return schema


def array_of(items: Dict[str, Any]) -> Dict[str, Any]:
    return {"type": "array", "items": items}


def optional(schema: Dict[str, Any]) -> Dict[str, Any]:
    return {"anyOf": [schema, NULL]}


# ============================================================================
# Entities
# ============================================================================

ACCESS = obj({"level": INTEGER, "draggable": BOOLEAN})

COLLECTION = obj({
    "id": INTEGER,
    "title": STRING,
    "description": STRING,
    "color": OPTIONAL_STRING,
    "count": INTEGER,
    "parent": OPTIONAL_INTEGER,
    "created": STRING,
    "lastUpdate": STRING,
    "expanded": BOOLEAN,
    "public": BOOLEAN,
    "access": ACCESS,
}, required=["id", "title"])

BOOKMARK_REF = obj({
    "id": INTEGER,
    "title": STRING,
    "link": STRING,
    "collectionId": OPTIONAL_INTEGER,
}, required=["id"])

HIGHLIGHT = obj({
    "id": STRING,
    "text": STRING,
    "note": STRING,
    "color": {"type": "string", "enum": list(HIGHLIGHT_COLORS)},
    "created": STRING,
    "lastUpdate": STRING,
    "bookmark": optional(BOOKMARK_REF),
}, required=["id", "text", "color"])

REMINDER = obj({"date": STRING, "note": STRING}, required=["date"])

BOOKMARK = obj({
    "id": INTEGER,
    "link": STRING,
    "title": STRING,
    "excerpt": STRING,
    "note": STRING,
    "tags": array_of(STRING),
    "important": BOOLEAN,
    "collectionId": OPTIONAL_INTEGER,
    "domain": STRING,
    "type": STRING,
    "created": STRING,
    "lastUpdate": STRING,
    "reminder": optional(REMINDER),
    "highlights": array_of(HIGHLIGHT),
}, required=["id", "link"])

TAG = obj({"name": STRING, "count": INTEGER, "collectionId": OPTIONAL_INTEGER}, required=["name"])

USER = obj({
    "id": INTEGER,
    "email": STRING,
    "fullName": STRING,
    "pro": BOOLEAN,
    "proExpire": STRING,
    "registered": STRING,
}, required=["id"])

TRANSFER_STATUS = obj({
    "status": STRING,
    "progress": OPTIONAL_INTEGER,
    "imported": OPTIONAL_INTEGER,
    "duplicates": OPTIONAL_INTEGER,
    "url": STRING,
    "error": STRING,
}, required=["status"])

DIAGNOSTICS = obj({
    "version": STRING,
    "mcpSdkVersion": STRING,
    "pythonVersion": STRING,
    "platform": STRING,
    "startTime": STRING,
    "uptime": {"type": "number"},
    "baseUrl": STRING,
    "accessToken": {"type": "string", "enum": ["set", "unset"]},
    "enabledOperations": array_of(STRING),
    "env": {"type": "object", "additionalProperties": OPTIONAL_STRING},
}, required=["version", "enabledOperations"])


# ============================================================================
# Result data
# ============================================================================

PAGE_INFO = {
    "total": INTEGER,
    "limit": INTEGER,
    "offset": INTEGER,
    "returned": INTEGER,
    "hasMore": BOOLEAN,
}


def page_of(**properties: Any) -> Dict[str, Any]:
    """Paging fields plus any extra properties (an item list, usually)."""
    return obj({**PAGE_INFO, **properties}, required=["limit", "offset", "returned", "hasMore"])


def deleted_data(id_schema: Dict[str, Any] = INTEGER, **extra: Any) -> Dict[str, Any]:
    return obj({"deleted": {"const": True}, "id": id_schema, **extra}, required=["deleted"])


def result_schema(data: Optional[Dict[str, Any]] = None, item: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
    """Schema of an Envelope's structured form.

    Args:
        data: Schema of the ``data`` member (null when omitted)
        item: Schema of each linked resource (no resources when omitted)
    """
    if item is None:
        resources: Dict[str, Any] = {"type": "array", "maxItems": 0}
    else:
        resources = array_of(obj({"uri": STRING, "item": item}, required=["uri", "item"]))
    return obj({
        "summary": STRING,
        "data": data if data is not None else NULL,
        "resources": resources,
    }, required=["summary", "data", "resources"])
