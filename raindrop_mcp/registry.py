"""Declarative operation registry.

An operation binds a name to input and output contracts (JSON Schema) and
an async handler ``(arguments, context) -> Envelope``. Handlers reach the
API only through ``context.gateway``; they hold no state between calls.
"""
import logging
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Dict, Iterable, List, Optional

from raindrop_mcp.envelope import Envelope
from raindrop_mcp.errors import NotFoundError, ValidationError
from raindrop_mcp.gateway import Gateway

logger = logging.getLogger(__name__)

READ = "read"
MUTATE = "mutate"


@dataclass(frozen=True)
class OperationContext:
    """Per-call context passed to a handler."""
    gateway: Gateway
    operation: str
    registry: "OperationRegistry"


Handler = Callable[[Dict[str, Any], OperationContext], Awaitable[Envelope]]


@dataclass(frozen=True)
class Operation:
    name: str
    description: str
    input_schema: Dict[str, Any]
    handler: Handler
    kind: str = READ
    output_schema: Optional[Dict[str, Any]] = None


class OperationRegistry:
    """Maps operation names to their contracts and handlers."""

    def __init__(self, gateway: Gateway, operations: Optional[Iterable[Operation]] = None):
        self.gateway = gateway
        self._operations: Dict[str, Operation] = {}
        for operation in operations or []:
            self.register(operation)

    def register(self, operation: Operation) -> None:
        """Add an operation.

        Raises:
            ValueError: If an operation with the same name exists
        """
        if operation.name in self._operations:
            raise ValueError(f"Operation already registered: {operation.name}")
        self._operations[operation.name] = operation

    def get(self, name: str) -> Operation:
        try:
            return self._operations[name]
        except KeyError:
            raise NotFoundError(f"Unknown operation: {name}") from None

    def list(self) -> List[Operation]:
        return list(self._operations.values())

    def names(self) -> List[str]:
        return list(self._operations)

    def __contains__(self, name: str) -> bool:
        return name in self._operations

    def __len__(self) -> int:
        return len(self._operations)

    async def call(self, name: str, arguments: Optional[Dict[str, Any]] = None) -> Envelope:
        """Run an operation by name.

        Args:
            name: Operation name
            arguments: Raw arguments from the caller

        Returns:
            The handler's Envelope

        Raises:
            NotFoundError: Unknown operation
            RaindropError: Any classified failure from the handler
        """
        operation = self.get(name)
        if arguments is None:
            arguments = {}
        if not isinstance(arguments, dict):
            raise ValidationError("arguments must be an object", name)

        logger.debug("Calling %s (%s)", name, operation.kind)
        context = OperationContext(gateway=self.gateway, operation=name, registry=self)
        return await operation.handler(dict(arguments), context)
