"""Tests for error classification."""
import pytest

from raindrop_mcp.errors import (
    AggregateError,
    AuthError,
    NotFoundError,
    RateLimitError,
    UpstreamServerError,
    ValidationError,
    classify_status,
)


class TestClassifyStatus:
    @pytest.mark.parametrize("status,expected", [
        (401, AuthError),
        (429, RateLimitError),
        (404, NotFoundError),
        (500, UpstreamServerError),
        (503, UpstreamServerError),
        (400, ValidationError),
        (403, ValidationError),
        (422, ValidationError),
    ])
    def test_status_mapping(self, status, expected):
        error = classify_status(status, "bookmark_get")
        assert type(error) is expected
        assert error.status == status
        assert error.operation == "bookmark_get"

    def test_message_names_operation_and_status(self):
        error = classify_status(404, "collection_get", "Collection not found")
        assert str(error).startswith("collection_get: ")
        assert "Collection not found" in str(error)
        assert str(error).endswith("(HTTP 404)")

    def test_codes(self):
        assert AuthError("x").code == "AUTH_ERROR"
        assert ValidationError("x").code == "VALIDATION_ERROR"


class TestAggregateError:
    def test_names_every_failed_item(self):
        error = AggregateError(
            "Failed to update tags",
            {1: NotFoundError("Resource not found", "bookmark_batch", 404), 7: RuntimeError("boom")},
            operation="bookmark_batch",
        )
        assert error.failed == [1, 7]
        assert "1: Resource not found" in str(error)
        assert "7: boom" in str(error)
        assert str(error).startswith("bookmark_batch: Failed to update tags")
