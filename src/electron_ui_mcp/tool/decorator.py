"""
Tool Decorator: Single source of truth for tool definitions.

Each tool is an async function ``(session, params)`` whose parameters
are described by a pydantic model. The decorator attaches metadata used
for schema generation, validation and dispatch.

Usage:
    from electron_ui_mcp.tool.decorator import tool
    from electron_ui_mcp.tool.capability import Capability

    @tool(
        description="Click an element",
        params=ClickParams,
        capabilities=[Capability.INPUT],
    )
    async def browser_click(session, params: ClickParams) -> dict:
        ...
"""

import asyncio
from dataclasses import dataclass
from functools import wraps
from typing import Any, Callable, Dict, List, Optional, Set, Type

from pydantic import BaseModel

from .capability import Capability, is_destructive, is_read_only


# ═══════════════════════════════════════════════════════════════════
# TOOL METADATA
# ═══════════════════════════════════════════════════════════════════

@dataclass
class ToolMetadata:
    """Complete metadata for a tool, extracted from the decorated function."""
    name: str
    description: str
    capabilities: Set[Capability]
    params_model: Type[BaseModel]
    func: Callable
    idempotent: bool = False

    @property
    def read_only(self) -> bool:
        return is_read_only(self.capabilities)

    @property
    def destructive(self) -> bool:
        return is_destructive(self.capabilities)

    def input_schema(self) -> Dict[str, Any]:
        schema = self.params_model.model_json_schema()
        schema.pop("title", None)
        schema.setdefault("properties", {})
        return schema

    def to_json_schema(self) -> Dict[str, Any]:
        """Generate an MCP tool listing entry."""
        return {
            "name": self.name,
            "description": self.description,
            "inputSchema": self.input_schema(),
            "annotations": {
                "readOnlyHint": self.read_only,
                "destructiveHint": self.destructive,
                "idempotentHint": self.idempotent,
            },
        }

    def validate(self, arguments: Optional[Dict[str, Any]]) -> BaseModel:
        return self.params_model.model_validate(arguments or {})

    async def execute(self, session: Any, params: BaseModel) -> Dict[str, Any]:
        return await self.func(session, params)


# ═══════════════════════════════════════════════════════════════════
# THE DECORATOR
# ═══════════════════════════════════════════════════════════════════

def tool(
    description: str,
    params: Type[BaseModel],
    capabilities: List[Capability] = None,
    name: str = None,
    idempotent: bool = False,
) -> Callable:
    """
    Decorator that turns an async handler into a registered tool.

    Args:
        description: Human-readable description of what the tool does.
        params: Pydantic model validating the tool arguments.
        capabilities: Capability enums describing what the tool touches.
        name: Override tool name (defaults to function name).
        idempotent: Whether repeating the call has no further effect.

    Returns:
        Decorated function with .metadata attribute containing ToolMetadata.
    """
    capabilities = capabilities or [Capability.NONE]

    def decorator(func: Callable) -> Callable:
        if not asyncio.iscoroutinefunction(func):
            raise TypeError(f"Tool handler {func.__name__} must be async")

        metadata = ToolMetadata(
            name=name or func.__name__,
            description=description,
            capabilities=set(capabilities),
            params_model=params,
            func=func,
            idempotent=idempotent,
        )

        @wraps(func)
        async def wrapper(*args, **kwargs):
            return await func(*args, **kwargs)

        wrapper.metadata = metadata
        wrapper.capabilities = metadata.capabilities
        return wrapper

    return decorator
