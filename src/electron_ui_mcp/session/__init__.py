from .context import SessionManager, SessionState, WindowInfo
from .errors import (
    ActionTimeoutError,
    AppClosedError,
    AppNotReadyError,
    DialogNotCapturedError,
    ElectronUIError,
    EvaluationError,
    LaunchError,
    NoWindowError,
    RefNotFoundError,
    StaleRefError,
    WindowSelectionError,
    format_error,
)
from .refs import ElementRef, RefTable
from .snapshot import SnapshotBuilder, SnapshotNode, SnapshotResult

__all__ = [
    "ActionTimeoutError",
    "AppClosedError",
    "AppNotReadyError",
    "DialogNotCapturedError",
    "ElectronUIError",
    "ElementRef",
    "EvaluationError",
    "LaunchError",
    "NoWindowError",
    "RefNotFoundError",
    "RefTable",
    "SessionManager",
    "SessionState",
    "SnapshotBuilder",
    "SnapshotNode",
    "SnapshotResult",
    "StaleRefError",
    "WindowInfo",
    "WindowSelectionError",
    "format_error",
]
