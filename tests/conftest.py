"""Shared fixtures for tests."""
import json

import httpx
import pytest
import pytest_asyncio
import respx

from raindrop_mcp.config import DEFAULT_BASE_URL
from raindrop_mcp.gateway import Gateway
from raindrop_mcp.tools import build_registry


API_PREFIX = "/rest/v1"


def raw_collection(collection_id=10, **overrides):
    raw = {
        "_id": collection_id,
        "title": "Reading",
        "description": "Things to read",
        "color": "#ff0000",
        "count": 3,
        "parent": {"$id": 1},
        "created": "2024-01-01T00:00:00Z",
        "lastUpdate": "2024-02-01T00:00:00Z",
        "expanded": True,
        "public": False,
        "access": {"level": 4, "draggable": True},
    }
    raw.update(overrides)
    return raw


def raw_bookmark(bookmark_id=100, **overrides):
    raw = {
        "_id": bookmark_id,
        "link": f"https://example.com/{bookmark_id}",
        "title": f"Example {bookmark_id}",
        "excerpt": "An example page",
        "note": "",
        "tags": [],
        "important": False,
        "collection": {"$id": 10},
        "domain": "example.com",
        "type": "link",
        "created": "2024-01-01T00:00:00Z",
        "lastUpdate": "2024-01-02T00:00:00Z",
    }
    raw.update(overrides)
    return raw


class FakeRaindrop:
    """In-memory stand-in for the Raindrop.io API, mounted as a catch-all respx route.

    Routes map (method, path) to a JSON body, an httpx.Response, an exception
    to raise, or a list of those consumed one per request (the last one
    repeats). Unrouted requests get a 404.
    """

    def __init__(self):
        self.routes = {}
        self.requests = []

    def add(self, method, path, reply):
        self.routes[(method.upper(), path)] = list(reply) if isinstance(reply, list) else [reply]

    def calls(self, method=None, path=None):
        return [
            r for r in self.requests
            if (method is None or r.method == method.upper())
            and (path is None or r.url.path == API_PREFIX + path)
        ]

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        path = request.url.path[len(API_PREFIX):]
        replies = self.routes.get((request.method, path))
        if not replies:
            return httpx.Response(404, json={"result": False, "errorMessage": "Not found"})

        reply = replies.pop(0) if len(replies) > 1 else replies[0]
        if isinstance(reply, Exception):
            raise reply
        if isinstance(reply, httpx.Response):
            # Fresh copy: a reply may be served more than once
            return httpx.Response(reply.status_code, headers=reply.headers, content=reply.content)
        return httpx.Response(200, json=reply)


def body_of(request: httpx.Request):
    return json.loads(request.content) if request.content else None


@pytest.fixture
def api():
    fake = FakeRaindrop()
    with respx.mock(base_url=DEFAULT_BASE_URL, assert_all_called=False) as router:
        router.route().mock(side_effect=fake)
        yield fake


@pytest_asyncio.fixture
async def gateway(api):
    gw = Gateway("test-token", retry_delay=0)
    yield gw
    await gw.aclose()


@pytest_asyncio.fixture
async def registry(gateway):
    return build_registry(gateway)
