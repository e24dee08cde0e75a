"""Tests for tag operations."""
import pytest

from conftest import body_of
from raindrop_mcp.errors import ValidationError
from raindrop_mcp.tools.tags import DeleteTags, MergeTags, RenameTag, decode_tag_command


class TestDecodeCommand:
    def test_rename(self):
        command = decode_tag_command({"operation": "rename", "tags": ["js"], "newName": "javascript"})
        assert command == RenameTag(tag="js", new_name="javascript")

    def test_rename_takes_one_tag(self):
        with pytest.raises(ValidationError, match="exactly one tag"):
            decode_tag_command({"operation": "rename", "tags": ["a", "b"], "newName": "c"})

    def test_merge_requires_new_name(self):
        with pytest.raises(ValidationError, match="newName is required for merge"):
            decode_tag_command({"operation": "merge", "tags": ["a", "b"]})

    def test_merge(self):
        command = decode_tag_command({"operation": "merge", "tags": ["a", "b"], "newName": "c", "collectionId": 4})
        assert command == MergeTags(tags=("a", "b"), new_name="c", collection_id=4)

    def test_delete_requires_tags(self):
        with pytest.raises(ValidationError, match="tags is required for delete"):
            decode_tag_command({"operation": "delete", "tags": []})
        assert decode_tag_command({"operation": "delete", "tags": ["old"]}) == DeleteTags(tags=("old",))


class TestTagList:
    @pytest.mark.asyncio
    async def test_lists_all_collections(self, api, registry):
        api.add("GET", "/tags/0", {"result": True, "items": [
            {"_id": "python", "count": 12},
            {"_id": "web", "count": 3},
            {"count": 1},
        ]})

        envelope = await registry.call("tag_list", {})

        assert envelope.data["tags"] == [
            {"name": "python", "count": 12, "collectionId": None},
            {"name": "web", "count": 3, "collectionId": None},
        ]
        assert envelope.data["total"] == 2

    @pytest.mark.asyncio
    async def test_scoped_to_collection(self, api, registry):
        api.add("GET", "/tags/5", {"result": True, "items": [{"_id": "a", "count": 1}, {"_id": "b", "count": 1}]})

        envelope = await registry.call("tag_list", {"collectionId": 5, "limit": 1, "offset": 1})

        assert envelope.data["tags"] == [{"name": "b", "count": 1, "collectionId": 5}]
        assert envelope.data["hasMore"] is False


class TestTagManage:
    @pytest.mark.asyncio
    async def test_rename(self, api, registry):
        api.add("PUT", "/tags/0", {"result": True})

        envelope = await registry.call("tag_manage", {"operation": "rename", "tags": ["js"], "newName": "javascript"})

        assert body_of(api.requests[0]) == {"replace": "javascript", "tags": ["js"]}
        assert "Renamed tag 'js' to 'javascript'" == envelope.summary

    @pytest.mark.asyncio
    async def test_merge_in_collection(self, api, registry):
        api.add("PUT", "/tags/4", {"result": True})

        await registry.call("tag_manage", {"operation": "merge", "tags": ["a", "b"], "newName": "c", "collectionId": 4})

        assert body_of(api.requests[0]) == {"replace": "c", "tags": ["a", "b"]}

    @pytest.mark.asyncio
    async def test_delete(self, api, registry):
        api.add("DELETE", "/tags/0", {"result": True})

        envelope = await registry.call("tag_manage", {"operation": "delete", "tags": ["old", "stale"]})

        assert body_of(api.requests[0]) == {"tags": ["old", "stale"]}
        assert envelope.data == {"deleted": True, "tags": ["old", "stale"]}
