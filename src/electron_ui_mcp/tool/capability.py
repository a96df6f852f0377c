"""
Capability: what part of the Electron app a tool touches.

Used to derive the MCP behaviour hints advertised with each tool.

Usage:
    @tool(description="...", params=ClickParams, capabilities=[Capability.INPUT])
    async def browser_click(session, params):
        ...
"""

from enum import Enum, auto
from typing import Iterable, Set


class Capability(Enum):
    """Resources a tool may act on."""

    # Renderer
    OBSERVE = auto()        # Read UI state, buffers or app metadata
    INPUT = auto()          # Pointer and keyboard input
    NAVIGATION = auto()     # Change the page location
    RENDERER_CODE = auto()  # Run caller-supplied code in a window

    # Main process
    MAIN_PROCESS = auto()   # Run caller-supplied code in the main process
    WINDOW = auto()         # Select, resize or close windows
    FILESYSTEM = auto()     # Hand local files to the app
    LIFECYCLE = auto()      # Quit or kill the app

    NONE = auto()


# Capabilities that can destroy state the caller cannot restore.
DESTRUCTIVE_CAPABILITIES: Set[Capability] = {
    Capability.MAIN_PROCESS,
    Capability.LIFECYCLE,
}


def is_read_only(capabilities: Iterable[Capability]) -> bool:
    return set(capabilities) <= {Capability.OBSERVE, Capability.NONE}


def is_destructive(capabilities: Iterable[Capability]) -> bool:
    return bool(set(capabilities) & DESTRUCTIVE_CAPABILITIES)
