"""MCP server exposing the Raindrop.io bookmarking API."""

__version__ = "0.1.0"
