from .capability import Capability
from .decorator import ToolMetadata, tool
from .registry import ToolRegistry, get_registry

__all__ = ["Capability", "ToolMetadata", "ToolRegistry", "get_registry", "tool"]
