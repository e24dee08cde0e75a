"""Tests for user, import and export operations."""
import pytest

from conftest import body_of
from raindrop_mcp.errors import ValidationError


class TestUser:
    @pytest.mark.asyncio
    async def test_profile(self, api, registry):
        api.add("GET", "/user", {"result": True, "user": {"_id": 1, "email": "ada@example.com", "pro": True}})

        envelope = await registry.call("user_profile", {})

        assert envelope.links[0].uri == "mcp://user/profile"
        assert envelope.links[0].payload["profile"]["email"] == "ada@example.com"
        assert "(Pro)" in envelope.summary

    @pytest.mark.asyncio
    async def test_account_statistics(self, api, registry):
        api.add("GET", "/user/stats", {"result": True, "items": [{"_id": 0, "count": 120}, {"_id": -99, "count": 4}]})

        envelope = await registry.call("user_statistics", {})

        assert envelope.data["counts"] == [
            {"collectionId": 0, "count": 120},
            {"collectionId": -99, "count": 4},
        ]

    @pytest.mark.asyncio
    async def test_collection_statistics(self, api, registry):
        api.add("GET", "/collection/5/stats", {"result": True, "stats": [{"_id": 5, "count": 9}]})
        envelope = await registry.call("user_statistics", {"collectionId": 5})
        assert envelope.data["collectionId"] == 5
        assert envelope.data["counts"] == [{"collectionId": 5, "count": 9}]


class TestTransfer:
    @pytest.mark.asyncio
    async def test_import_status(self, api, registry):
        api.add("GET", "/import/status", {"result": True, "status": "in-progress", "progress": 40})

        envelope = await registry.call("import_status", {})

        assert envelope.summary == "Import status: in-progress (40%)"
        assert envelope.data["progress"] == 40

    @pytest.mark.asyncio
    async def test_export(self, api, registry):
        api.add("POST", "/export", {"result": True, "url": "https://up.raindrop.io/export.csv"})

        envelope = await registry.call("export_bookmarks", {"format": "csv", "collectionId": 3})

        assert body_of(api.requests[0]) == {"format": "csv", "collection": 3, "broken": False, "duplicates": False}
        assert envelope.data["url"] == "https://up.raindrop.io/export.csv"

    @pytest.mark.asyncio
    async def test_export_format_checked(self, api, registry):
        with pytest.raises(ValidationError, match="Unsupported format"):
            await registry.call("export_bookmarks", {"format": "xlsx"})
        assert api.requests == []

    @pytest.mark.asyncio
    async def test_export_status(self, api, registry):
        api.add("GET", "/export/status", {"result": True, "status": "ready", "url": "https://up.raindrop.io/e.html"})

        envelope = await registry.call("export_status", {})

        assert envelope.data["url"] == "https://up.raindrop.io/e.html"
        assert "Download: https://up.raindrop.io/e.html" in envelope.summary
