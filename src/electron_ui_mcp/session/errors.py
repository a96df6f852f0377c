"""
Error taxonomy for the Electron session layer.

Every failure surfaced to a client carries a stable code and a short
recovery hint. Handlers raise these; the tool registry turns them into
the ``{"success": False, ...}`` envelope via ``format_error``.
"""

from __future__ import annotations

from typing import Any, Dict, List, Optional


class ElectronUIError(Exception):
    """Base class for all errors reported to tool callers."""

    code = "electron_error"
    default_suggestion = "Inspect the error message and retry."

    def __init__(self, message: str, suggestion: Optional[str] = None) -> None:
        super().__init__(message)
        self.message = message
        self.suggestion = suggestion or self.default_suggestion

    def details(self) -> Dict[str, Any]:
        return {}

    def to_dict(self) -> Dict[str, Any]:
        payload: Dict[str, Any] = {
            "success": False,
            "error": self.message,
            "error_code": self.code,
            "suggestion": self.suggestion,
        }
        details = self.details()
        if details:
            payload["error_details"] = details
        return payload


class RefNotFoundError(ElectronUIError):
    code = "ref_not_found"

    def __init__(self, ref: str) -> None:
        super().__init__(
            f"Element ref '{ref}' not found.",
            "Run browser_snapshot to capture the current UI and get valid refs.",
        )
        self.ref = ref

    def details(self) -> Dict[str, Any]:
        return {"ref": self.ref}


class StaleRefError(ElectronUIError):
    code = "ref_stale"

    def __init__(self, ref: str, snapshot_id: str, current_snapshot_id: str) -> None:
        super().__init__(
            f"Element ref '{ref}' belongs to snapshot {snapshot_id}, "
            f"but the current snapshot is {current_snapshot_id}.",
            "The UI was re-captured. Take a new browser_snapshot and use refs from it.",
        )
        self.ref = ref
        self.snapshot_id = snapshot_id
        self.current_snapshot_id = current_snapshot_id

    def details(self) -> Dict[str, Any]:
        return {
            "ref": self.ref,
            "snapshot_id": self.snapshot_id,
            "current_snapshot_id": self.current_snapshot_id,
        }


class AppNotReadyError(ElectronUIError):
    code = "session_not_ready"

    def __init__(self, state: str) -> None:
        super().__init__(
            f"Electron app is not ready (state: {state}).",
            "Wait for the app to finish launching, or check the launch configuration.",
        )
        self.state = state

    def details(self) -> Dict[str, Any]:
        return {"state": self.state}


class AppClosedError(ElectronUIError):
    code = "app_closed"
    default_suggestion = "The app will be relaunched on the next tool call."

    def __init__(self, message: str = "Electron app has closed.") -> None:
        super().__init__(message)


class NoWindowError(ElectronUIError):
    code = "no_window"
    default_suggestion = "Wait for the app to open a window, or use browser_tabs to list windows."

    def __init__(self, message: str = "No active window available.") -> None:
        super().__init__(message)


class WindowSelectionError(ElectronUIError):
    code = "window_selection"
    default_suggestion = "Use browser_tabs with action=list to see the open windows."


class LaunchError(ElectronUIError):
    code = "launch_failure"

    def __init__(self, reason: str, app_path: Optional[str] = None) -> None:
        location = f" ({app_path})" if app_path else ""
        super().__init__(
            f"Failed to launch Electron app{location}: {reason}",
            "Check the app path and make sure Electron is installed and the app builds.",
        )
        self.reason = reason
        self.app_path = app_path

    def details(self) -> Dict[str, Any]:
        return {"app_path": self.app_path} if self.app_path else {}


class ActionTimeoutError(ElectronUIError):
    code = "action_timeout"

    def __init__(self, condition: str, timeout_ms: int) -> None:
        super().__init__(
            f"Timed out after {timeout_ms}ms waiting for {condition}.",
            "Check that the element is visible and enabled, or raise the timeout.",
        )
        self.condition = condition
        self.timeout_ms = timeout_ms

    def details(self) -> Dict[str, Any]:
        return {"condition": self.condition, "timeout_ms": self.timeout_ms}


class DialogNotCapturedError(ElectronUIError):
    code = "dialog_not_captured"

    def __init__(self, timeout_ms: int, pending: Optional[List[Dict[str, Any]]] = None) -> None:
        super().__init__(
            f"No dialog appeared within {timeout_ms}ms.",
            "Trigger the dialog first, then call browser_handle_dialog, or raise the timeout.",
        )
        self.timeout_ms = timeout_ms
        self.pending = list(pending or [])

    def details(self) -> Dict[str, Any]:
        return {"timeout_ms": self.timeout_ms, "pending_dialogs": self.pending}


class EvaluationError(ElectronUIError):
    code = "evaluation_failure"

    def __init__(self, reason: str, *, main_process: bool = False) -> None:
        context = "main process" if main_process else "renderer"
        super().__init__(
            f"Evaluation failed in {context}: {reason}",
            "Check the code for syntax errors and make sure the referenced objects exist.",
        )
        self.reason = reason
        self.main_process = main_process

    def details(self) -> Dict[str, Any]:
        return {"context": "main" if self.main_process else "renderer"}


def format_error(exc: BaseException) -> Dict[str, Any]:
    """Map any exception onto the failure envelope returned to tool callers."""
    if isinstance(exc, ElectronUIError):
        return exc.to_dict()
    return {
        "success": False,
        "error": str(exc) or exc.__class__.__name__,
        "error_code": "internal_error",
        "suggestion": "Unexpected error. Check the server log for details.",
    }
