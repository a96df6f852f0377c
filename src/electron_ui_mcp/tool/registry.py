"""
Tool Registry: discovery, schemas and dispatch.

Discovers tools from the builtin/ package and runs them against a
session, turning every outcome into a result envelope:

    {"success": True, "error": None, ...payload}
    {"success": False, "error": msg, "error_code": code, "suggestion": hint}

Usage:
    registry = get_registry()
    schemas = registry.get_schemas()
    result = await registry.execute("browser_click", session, {"ref": "e3"})
"""

import importlib
import logging
import time
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional

from pydantic import ValidationError

from ..session.errors import ElectronUIError, format_error
from .decorator import ToolMetadata

logger = logging.getLogger(__name__)


def _ok(**payload: Any) -> Dict[str, Any]:
    out = {"success": True, "error": None}
    out.update(payload)
    return out


def _err(
    message: str,
    *,
    code: str,
    suggestion: str,
    details: Optional[Dict[str, Any]] = None,
) -> Dict[str, Any]:
    payload: Dict[str, Any] = {
        "success": False,
        "error": message,
        "error_code": code,
        "suggestion": suggestion,
    }
    if details:
        payload["error_details"] = details
    return payload


def _format_validation_error(exc: ValidationError) -> str:
    parts = []
    for error in exc.errors():
        location = ".".join(str(item) for item in error.get("loc", ())) or "arguments"
        parts.append(f"{location}: {error.get('msg')}")
    return "; ".join(parts)


class ToolRegistry:
    """Central registry for all tools."""

    def __init__(self):
        self._tools: Dict[str, ToolMetadata] = {}
        self._discovered = False

    def discover(self, base_path: Path = None) -> None:
        """Import every module in builtin/ and register its decorated handlers."""
        if base_path is None:
            base_path = Path(__file__).parent / "builtin"

        for file_path in sorted(base_path.glob("*.py")):
            if file_path.name.startswith("_"):
                continue
            module = importlib.import_module(f"{__package__}.builtin.{file_path.stem}")
            for attr_name in dir(module):
                attr = getattr(module, attr_name)
                if callable(attr) and hasattr(attr, "metadata"):
                    self.register(attr)

        self._discovered = True
        logger.info("Discovered %d tools: %s", len(self._tools), list(self._tools))

    def register(self, func: Callable) -> None:
        """
        Manually register a decorated tool function.

        Args:
            func: A function decorated with @tool
        """
        if not hasattr(func, "metadata"):
            raise ValueError(f"Function {func.__name__} is not decorated with @tool")

        metadata: ToolMetadata = func.metadata
        self._tools[metadata.name] = metadata
        logger.debug("Registered tool: %s", metadata.name)

    def get(self, name: str) -> Optional[ToolMetadata]:
        """Get tool metadata by name."""
        return self._tools.get(name)

    def get_schemas(self, names: List[str] = None) -> List[Dict[str, Any]]:
        """JSON schemas for the named tools (None = all tools)."""
        if names is None:
            return [t.to_json_schema() for t in self._tools.values()]
        return [self._tools[n].to_json_schema() for n in names if n in self._tools]

    async def execute(self, name: str, session: Any, arguments: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        """Validate arguments, run the tool and wrap the outcome in an envelope."""
        tool = self._tools.get(name)
        if tool is None:
            return _err(
                f"Unknown tool: {name}",
                code="unknown_tool",
                suggestion="Call list_tools to see the available tools.",
                details={"available_tools": self.tool_names},
            )

        try:
            params = tool.validate(arguments)
        except ValidationError as exc:
            return _err(
                f"Invalid arguments for {name}: {_format_validation_error(exc)}",
                code="invalid_request",
                suggestion="Fix the arguments to match the tool's input schema.",
            )

        started = time.perf_counter()
        try:
            payload = await tool.execute(session, params)
        except ElectronUIError as exc:
            logger.info("Tool %s failed code=%s error=%s", name, exc.code, exc.message)
            return exc.to_dict()
        except Exception as exc:
            logger.exception("Tool %s raised an unexpected error", name)
            return format_error(exc)
        finally:
            logger.debug("Tool %s finished in %.1fms", name, (time.perf_counter() - started) * 1000)

        return _ok(**(payload or {}))

    @property
    def tool_names(self) -> List[str]:
        """List all registered tool names."""
        return list(self._tools.keys())

    def __len__(self) -> int:
        return len(self._tools)

    def __contains__(self, name: str) -> bool:
        return name in self._tools

    def __iter__(self):
        return iter(self._tools.values())


_REGISTRY: Optional[ToolRegistry] = None


def get_registry() -> ToolRegistry:
    """Return the process-wide registry, discovering tools on first use."""
    global _REGISTRY
    if _REGISTRY is None:
        registry = ToolRegistry()
        registry.discover()
        _REGISTRY = registry
    return _REGISTRY
