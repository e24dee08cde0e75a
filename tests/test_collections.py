"""Tests for collection operations."""
import pytest

from conftest import body_of, raw_collection
from raindrop_mcp.errors import NotFoundError, ValidationError
from raindrop_mcp.tools.collections import (
    CreateCollection,
    DeleteCollection,
    UpdateCollection,
    decode_collection_command,
)


class TestDecodeCommand:
    def test_create(self):
        command = decode_collection_command({"operation": "create", "title": "Work", "parentId": 3})
        assert command == CreateCollection(title="Work", parent_id=3)

    def test_create_requires_title(self):
        with pytest.raises(ValidationError, match="title is required for create"):
            decode_collection_command({"operation": "create"})
        with pytest.raises(ValidationError, match="title is required for create"):
            decode_collection_command({"operation": "create", "title": "  "})

    def test_update_requires_id_and_a_change(self):
        with pytest.raises(ValidationError, match="id is required for update"):
            decode_collection_command({"operation": "update", "title": "x"})
        with pytest.raises(ValidationError, match="at least one field"):
            decode_collection_command({"operation": "update", "id": 4})
        assert decode_collection_command({"operation": "update", "id": 4, "public": True}) == \
            UpdateCollection(id=4, public=True)

    def test_delete(self):
        assert decode_collection_command({"operation": "delete", "id": 4}) == DeleteCollection(id=4)
        with pytest.raises(ValidationError, match="id is required for delete"):
            decode_collection_command({"operation": "delete"})

    def test_unknown_operation(self):
        with pytest.raises(ValidationError):
            decode_collection_command({"operation": "rename"})


class TestCollectionList:
    @pytest.mark.asyncio
    async def test_lists_with_client_side_paging(self, api, registry):
        api.add("GET", "/collections", {"result": True, "items": [raw_collection(i) for i in range(1, 6)]})

        envelope = await registry.call("collection_list", {"limit": 2, "offset": 2})

        assert [link.uri for link in envelope.links] == ["mcp://collection/3", "mcp://collection/4"]
        assert envelope.data["total"] == 5
        assert envelope.data["hasMore"] is True
        assert "page" not in api.requests[0].url.params

    @pytest.mark.asyncio
    async def test_children_of_parent(self, api, registry):
        api.add("GET", "/collections/7/childrens", {"result": True, "items": [raw_collection(8, parent={"$id": 7})]})

        envelope = await registry.call("collection_list", {"parentId": 7})

        assert len(envelope.links) == 1
        assert envelope.links[0].payload["parent"] == 7


class TestCollectionGet:
    @pytest.mark.asyncio
    async def test_get(self, api, registry):
        api.add("GET", "/collection/10", {"result": True, "item": raw_collection(10)})

        envelope = await registry.call("collection_get", {"id": 10})

        assert envelope.links[0].uri == "mcp://collection/10"
        assert envelope.links[0].payload["title"] == "Reading"
        assert "Reading" in envelope.summary

    @pytest.mark.asyncio
    async def test_missing(self, api, registry):
        with pytest.raises(NotFoundError):
            await registry.call("collection_get", {"id": 999999})

    @pytest.mark.asyncio
    async def test_invalid_payload(self, api, registry):
        api.add("GET", "/collection/10", {"result": True, "item": {"title": "no id"}})
        with pytest.raises(ValidationError, match="invalid collection"):
            await registry.call("collection_get", {"id": 10})


class TestCollectionManage:
    @pytest.mark.asyncio
    async def test_create_without_title_makes_no_calls(self, api, registry):
        with pytest.raises(ValidationError, match="title is required for create"):
            await registry.call("collection_manage", {"operation": "create"})
        assert api.requests == []

    @pytest.mark.asyncio
    async def test_create(self, api, registry):
        api.add("POST", "/collection", {"result": True, "item": raw_collection(11, title="Work")})

        envelope = await registry.call(
            "collection_manage", {"operation": "create", "title": "Work", "parentId": 1, "public": True}
        )

        assert body_of(api.requests[0]) == {"title": "Work", "public": True, "parent": {"$id": 1}}
        assert envelope.links[0].uri == "mcp://collection/11"
        assert envelope.summary.startswith("Created collection: Work")

    @pytest.mark.asyncio
    async def test_update(self, api, registry):
        api.add("PUT", "/collection/11", {"result": True, "item": raw_collection(11, title="Renamed")})

        envelope = await registry.call("collection_manage", {"operation": "update", "id": 11, "title": "Renamed"})

        assert body_of(api.requests[0]) == {"title": "Renamed"}
        assert envelope.links[0].payload["title"] == "Renamed"

    @pytest.mark.asyncio
    async def test_delete_returns_flag(self, api, registry):
        api.add("DELETE", "/collection/11", {"result": True})

        envelope = await registry.call("collection_manage", {"operation": "delete", "id": 11})

        assert envelope.data == {"deleted": True, "id": 11}
        assert envelope.links == ()


class TestCollectionMaintenance:
    @pytest.mark.asyncio
    async def test_merge(self, api, registry):
        api.add("PUT", "/collection/5/merge", {"result": True})

        envelope = await registry.call(
            "collection_maintenance", {"operation": "merge", "targetId": 5, "sourceIds": [6, 7]}
        )

        assert body_of(api.requests[0]) == {"with": [6, 7]}
        assert envelope.data["merged"] is True

    @pytest.mark.asyncio
    async def test_merge_requires_sources(self, api, registry):
        with pytest.raises(ValidationError, match="sourceIds is required"):
            await registry.call("collection_maintenance", {"operation": "merge", "targetId": 5})
        assert api.requests == []

    @pytest.mark.asyncio
    async def test_remove_empty(self, api, registry):
        api.add("PUT", "/collections/clean", {"result": True, "count": 4})
        envelope = await registry.call("collection_maintenance", {"operation": "remove_empty"})
        assert envelope.data == {"removed": 4}

    @pytest.mark.asyncio
    async def test_empty_trash(self, api, registry):
        api.add("PUT", "/collection/-99/clear", {"result": True})
        envelope = await registry.call("collection_maintenance", {"operation": "empty_trash"})
        assert envelope.data == {"emptied": True}


class TestCollectionShare:
    @pytest.mark.asyncio
    async def test_share_with_users_returns_link(self, api, registry):
        api.add("PUT", "/collection/10/sharing", {
            "result": True,
            "link": "https://raindrop.io/shared/10",
            "access": [{"email": "a@example.com", "role": "viewer"}, "bogus"],
        })

        envelope = await registry.call(
            "collection_share", {"id": 10, "level": "view", "emails": ["a@example.com"]}
        )

        assert body_of(api.requests[0]) == {"level": "view", "emails": ["a@example.com"]}
        assert envelope.data["link"] == "https://raindrop.io/shared/10"
        assert envelope.data["access"] == [{"email": "a@example.com", "role": "viewer"}]
        assert "https://raindrop.io/shared/10" in envelope.summary

    @pytest.mark.asyncio
    async def test_share_without_emails_omits_them(self, api, registry):
        api.add("PUT", "/collection/10/sharing", {"result": True})

        envelope = await registry.call("collection_share", {"id": 10, "level": "remove"})

        assert body_of(api.requests[0]) == {"level": "remove"}
        assert envelope.data["emails"] == []
        assert envelope.data["link"] is None

    @pytest.mark.asyncio
    async def test_share_rejects_unknown_level(self, api, registry):
        with pytest.raises(ValidationError, match="Unsupported level"):
            await registry.call("collection_share", {"id": 10, "level": "owner"})
        with pytest.raises(ValidationError, match="id is required"):
            await registry.call("collection_share", {"level": "view"})
        assert api.requests == []
