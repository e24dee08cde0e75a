"""Tests for the resource router."""
import json

import pytest

from conftest import raw_bookmark, raw_collection
from raindrop_mcp.errors import NotFoundError, ValidationError
from raindrop_mcp.router import ResourceRouter, parse_id


@pytest.fixture
def router(gateway):
    return ResourceRouter(gateway, diagnostics={"version": "test", "enabledOperations": ["collection_get"]})


class TestParseId:
    def test_numeric(self):
        assert parse_id("mcp://collection/42", "mcp://collection/") == 42
        assert parse_id("mcp://collection/-1", "mcp://collection/") == -1

    @pytest.mark.parametrize("uri", ["mcp://collection/abc", "mcp://collection/", "mcp://collection/-", "mcp://collection/1/2"])
    def test_malformed(self, uri):
        with pytest.raises(ValidationError):
            parse_id(uri, "mcp://collection/")


class TestList:
    @pytest.mark.asyncio
    async def test_static_and_templated_entries(self, router):
        descriptors = {d.uri: d for d in router.list()}
        assert descriptors["mcp://user/profile"].templated is False
        assert descriptors["diagnostics://server"].templated is False
        assert descriptors["mcp://collection/{id}"].templated is True
        assert descriptors["mcp://raindrop/{id}"].templated is True
        assert all(d.mime_type == "application/json" for d in descriptors.values())

    @pytest.mark.asyncio
    async def test_no_diagnostics_without_document(self, gateway):
        uris = [d.uri for d in ResourceRouter(gateway).list()]
        assert "diagnostics://server" not in uris


class TestRead:
    @pytest.mark.asyncio
    async def test_collection(self, api, router):
        api.add("GET", "/collection/10", {"result": True, "item": raw_collection(10)})

        content = await router.read("mcp://collection/10")

        assert content.uri == "mcp://collection/10"
        assert content.mime_type == "application/json"
        assert json.loads(content.text)["collection"]["id"] == 10

    @pytest.mark.asyncio
    @pytest.mark.parametrize("uri", ["mcp://raindrop/100", "mcp://bookmark/100"])
    async def test_bookmark_and_alias(self, api, router, uri):
        api.add("GET", "/raindrop/100", {"result": True, "item": raw_bookmark(100)})

        content = await router.read(uri)

        assert json.loads(content.text)["bookmark"]["link"] == "https://example.com/100"

    @pytest.mark.asyncio
    async def test_user_profile_is_fetched(self, api, router):
        api.add("GET", "/user", {"result": True, "user": {"_id": 1, "fullName": "Ada"}})

        content = await router.read("mcp://user/profile")

        assert json.loads(content.text)["profile"]["fullName"] == "Ada"
        assert len(api.requests) == 1

    @pytest.mark.asyncio
    async def test_diagnostics_is_pre_rendered(self, api, router):
        content = await router.read("diagnostics://server")
        assert json.loads(content.text)["version"] == "test"
        assert api.requests == []

    @pytest.mark.asyncio
    async def test_malformed_id_makes_no_call(self, api, router):
        with pytest.raises(ValidationError):
            await router.read("mcp://collection/abc")
        assert api.requests == []

    @pytest.mark.asyncio
    async def test_missing_entity(self, api, router):
        with pytest.raises(NotFoundError):
            await router.read("mcp://collection/999999")

    @pytest.mark.asyncio
    async def test_unknown_uri(self, api, router):
        with pytest.raises(NotFoundError, match="Unknown resource"):
            await router.read("mcp://tag/python")
        assert api.requests == []
