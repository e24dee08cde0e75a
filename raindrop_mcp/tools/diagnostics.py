"""Server diagnostics, exposed both as an operation and as diagnostics://server."""
import os
import platform
import sys
import time
from datetime import datetime, timezone
from importlib import metadata
from typing import Any, Dict, Iterable

from raindrop_mcp import __version__
from raindrop_mcp.envelope import DIAGNOSTICS_URI, Envelope, ResourceLink
from raindrop_mcp.registry import READ, Operation, OperationContext
from raindrop_mcp.schemas import DIAGNOSTICS, result_schema
from raindrop_mcp.tools.common import get_bool, object_schema

_STARTED_MONOTONIC = time.monotonic()
_STARTED_AT = datetime.now(timezone.utc).isoformat()

_ENV_KEYS = ("RAINDROP_API_BASE_URL", "RAINDROP_TIMEOUT", "RAINDROP_MAX_RETRIES", "RAINDROP_LOG_LEVEL")


def _package_version(name: str) -> str:
    try:
        return metadata.version(name)
    except metadata.PackageNotFoundError:
        return "unknown"


def build_diagnostics(operation_names: Iterable[str], base_url: str,
                      include_environment: bool = False) -> Dict[str, Any]:
    """Collect runtime metadata about this server.

    Args:
        operation_names: Names of the enabled operations
        base_url: Raindrop.io API root in use
        include_environment: Add the RAINDROP_* settings (never the token itself)
    """
    data: Dict[str, Any] = {
        "version": __version__,
        "mcpSdkVersion": _package_version("mcp"),
        "pythonVersion": platform.python_version(),
        "platform": sys.platform,
        "startTime": _STARTED_AT,
        "uptime": round(time.monotonic() - _STARTED_MONOTONIC, 3),
        "baseUrl": base_url,
        "accessToken": "set" if os.environ.get("RAINDROP_ACCESS_TOKEN") else "unset",
        "enabledOperations": list(operation_names),
    }
    if include_environment:
        data["env"] = {key: os.environ.get(key) for key in _ENV_KEYS}
    return data


async def diagnostics(args: Dict[str, Any], context: OperationContext) -> Envelope:
    """Report server version, runtime and enabled operations."""
    include_environment = get_bool(args, "includeEnvironment", context.operation, default=False)
    data = build_diagnostics(context.registry.names(), context.gateway.base_url, include_environment)
    return Envelope(
        summary=f"raindrop-mcp {data['version']}: {len(data['enabledOperations'])} operations enabled",
        links=(ResourceLink(uri=DIAGNOSTICS_URI, payload=data),),
    )


OPERATIONS = [
    Operation(
        name="diagnostics",
        description="Server version, runtime and enabled operations.",
        input_schema=object_schema({
            "includeEnvironment": {"type": "boolean", "description": "Include RAINDROP_* settings"},
        }),
        handler=diagnostics,
        kind=READ,
        output_schema=result_schema(item=DIAGNOSTICS),
    ),
]
