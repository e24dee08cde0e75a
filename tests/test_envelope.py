"""Tests for envelope rendering."""
import json

from mcp.types import EmbeddedResource, TextContent

from raindrop_mcp.envelope import Envelope, ResourceLink, deleted


class TestEnvelope:
    def test_summary_only(self):
        content = Envelope(summary="Done").to_content()
        assert len(content) == 1
        assert isinstance(content[0], TextContent)
        assert content[0].text == "Done"

    def test_data_and_links(self):
        envelope = Envelope(
            summary="Found 1",
            data={"total": 1},
            links=(ResourceLink(uri="mcp://raindrop/5", payload={"id": 5, "title": "Ünïcode"}),),
        )

        content = envelope.to_content()

        assert json.loads(content[1].text) == {"total": 1}
        assert isinstance(content[2], EmbeddedResource)
        assert str(content[2].resource.uri) == "mcp://raindrop/5"
        assert content[2].resource.mimeType == "application/json"
        assert "Ünïcode" in content[2].resource.text

    def test_structured_form(self):
        envelope = Envelope(
            summary="Found 1",
            data={"total": 1},
            links=(ResourceLink(uri="mcp://raindrop/5", payload={"id": 5}),),
        )

        assert envelope.to_structured() == {
            "summary": "Found 1",
            "data": {"total": 1},
            "resources": [{"uri": "mcp://raindrop/5", "item": {"id": 5}}],
        }
        assert Envelope(summary="Done").to_structured() == {"summary": "Done", "data": None, "resources": []}

    def test_deleted_flag(self):
        envelope = deleted("Bookmark 5 moved to Trash", id=5)
        assert envelope.data == {"deleted": True, "id": 5}
