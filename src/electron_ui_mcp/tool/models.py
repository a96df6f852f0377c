"""Request models for every tool, validated before a handler runs."""

from __future__ import annotations

import re
from typing import List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, model_validator

WaitUntil = Literal["load", "domcontentloaded", "networkidle", "commit"]
MouseButton = Literal["left", "right", "middle"]
Modifier = Literal["Alt", "Control", "Meta", "Shift"]
ElementState = Literal["visible", "hidden", "attached", "detached"]
ConsoleType = Literal["log", "error", "warning", "info", "debug"]

DEFAULT_ACTION_TIMEOUT_MS = 10_000
DEFAULT_NAVIGATION_TIMEOUT_MS = 30_000
DEFAULT_WAIT_TIMEOUT_MS = 30_000
DEFAULT_DIALOG_TIMEOUT_MS = 5_000
DEFAULT_LIST_LIMIT = 50


class ToolParams(BaseModel):
    model_config = ConfigDict(extra="forbid")


class EmptyParams(ToolParams):
    pass


class RefParams(ToolParams):
    ref: str = Field(..., min_length=1, description="Element ref from the latest browser_snapshot, e.g. e3.")
    element: Optional[str] = Field(None, description="Human-readable description of the element.")
    snapshot_id: Optional[str] = Field(
        None,
        description="Snapshot id the ref came from; mismatches are reported as stale refs.",
    )


# ── navigation ──────────────────────────────────────────────────

class NavigateParams(ToolParams):
    url: str = Field(..., min_length=1, description="URL to load in the active window.")
    wait_until: WaitUntil = Field("domcontentloaded", description="Load state to wait for.")


class NavigateBackParams(ToolParams):
    wait_until: WaitUntil = Field("domcontentloaded", description="Load state to wait for.")


# ── interaction ─────────────────────────────────────────────────

class ClickParams(RefParams):
    double_click: bool = Field(False, description="Double-click instead of a single click.")
    button: MouseButton = Field("left", description="Mouse button to use.")
    modifiers: List[Modifier] = Field(default_factory=list, description="Modifier keys held during the click.")


class TypeParams(RefParams):
    text: str = Field(..., description="Text to type.")
    submit: bool = Field(False, description="Press Enter after typing.")
    slowly: bool = Field(False, description="Type one character at a time (100ms apart).")
    clear: bool = Field(False, description="Clear the field before typing.")


class PressKeyParams(ToolParams):
    key: str = Field(..., min_length=1, description="Key or chord, e.g. Enter, ArrowDown, Control+a.")
    ref: Optional[str] = Field(None, min_length=1, description="Focus this element before pressing.")
    snapshot_id: Optional[str] = Field(None, description="Snapshot id the ref came from.")


class HoverParams(RefParams):
    pass


class DragParams(ToolParams):
    start_ref: str = Field(..., min_length=1, description="Ref of the element to drag.")
    end_ref: str = Field(..., min_length=1, description="Ref of the drop target.")
    start_element: Optional[str] = Field(None, description="Description of the dragged element.")
    end_element: Optional[str] = Field(None, description="Description of the drop target.")
    snapshot_id: Optional[str] = Field(None, description="Snapshot id both refs came from.")


class SelectOptionParams(RefParams):
    value: Optional[str] = Field(None, description="Option value to select.")
    label: Optional[str] = Field(None, description="Option label to select.")
    index: Optional[int] = Field(None, ge=0, description="Option index to select.")

    @model_validator(mode="after")
    def _exactly_one_choice(self) -> "SelectOptionParams":
        chosen = [v for v in (self.value, self.label, self.index) if v is not None]
        if len(chosen) != 1:
            raise ValueError("Specify exactly one of value, label or index")
        return self


class FormField(ToolParams):
    ref: str = Field(..., min_length=1, description="Element ref of the field.")
    value: str = Field(..., description="Value to fill.")


class FillFormParams(ToolParams):
    fields: List[FormField] = Field(..., min_length=1, description="Fields to fill, in order.")
    submit: bool = Field(False, description="Press Enter after the last field.")
    snapshot_id: Optional[str] = Field(None, description="Snapshot id the refs came from.")


class FileUploadParams(RefParams):
    paths: List[str] = Field(..., min_length=1, description="Local file paths to attach.")


# ── snapshot / screenshot ───────────────────────────────────────

class ScreenshotParams(ToolParams):
    full_page: bool = Field(False, description="Capture the full scrollable page.")
    type: Literal["png", "jpeg"] = Field("png", description="Image format.")
    quality: Optional[int] = Field(None, ge=0, le=100, description="JPEG quality (default 80).")
    annotate: bool = Field(False, description="Overlay ref labels on the elements of the latest snapshot.")


# ── evaluation ──────────────────────────────────────────────────

class EvaluateParams(ToolParams):
    code: str = Field(..., min_length=1, description="JavaScript function body; may use await and return a value.")


# ── waiting ─────────────────────────────────────────────────────

class WaitForParams(ToolParams):
    text: Optional[str] = Field(None, description="Wait for this text to appear.")
    ref: Optional[str] = Field(None, description="Wait for this element ref.")
    selector: Optional[str] = Field(None, description="Wait for this selector.")
    url: Optional[str] = Field(None, description="Wait for the window URL to match this glob or URL.")
    snapshot_id: Optional[str] = Field(None, description="Snapshot id the ref came from.")
    timeout: int = Field(DEFAULT_WAIT_TIMEOUT_MS, ge=1, description="Timeout in milliseconds.")
    state: ElementState = Field("visible", description="Element state to wait for.")


class HandleDialogParams(ToolParams):
    action: Literal["accept", "dismiss"] = Field(..., description="Accept or dismiss the dialog.")
    prompt_text: Optional[str] = Field(None, description="Text for prompt dialogs (accept only).")
    timeout: int = Field(DEFAULT_DIALOG_TIMEOUT_MS, ge=1, description="How long to wait for a dialog, in ms.")


# ── windows ─────────────────────────────────────────────────────

class TabsParams(ToolParams):
    action: Literal["list", "select"] = Field("list", description="List windows or select one.")
    index: Optional[int] = Field(None, ge=0, description="Window index to select.")
    title: Optional[str] = Field(None, min_length=1, description="Window title (exact or substring) to select.")

    @model_validator(mode="after")
    def _select_needs_target(self) -> "TabsParams":
        if self.action == "select" and self.index is None and self.title is None:
            raise ValueError("action=select requires index or title")
        return self


class ResizeParams(ToolParams):
    width: Optional[int] = Field(None, ge=1, description="New window width.")
    height: Optional[int] = Field(None, ge=1, description="New window height.")
    maximize: bool = Field(False, description="Maximize the window.")
    minimize: bool = Field(False, description="Minimize the window.")
    fullscreen: Optional[bool] = Field(None, description="Enter (true) or leave (false) fullscreen.")

    @model_validator(mode="after")
    def _width_and_height_together(self) -> "ResizeParams":
        if (self.width is None) != (self.height is None):
            raise ValueError("width and height must be given together")
        return self


class CloseParams(ToolParams):
    force: bool = Field(False, description="Kill the app instead of asking it to quit.")


class ConsoleMessagesParams(ToolParams):
    limit: int = Field(DEFAULT_LIST_LIMIT, ge=1, le=100, description="Maximum number of messages.")
    type: Optional[ConsoleType] = Field(None, description="Only return messages of this type.")


class NetworkRequestsParams(ToolParams):
    limit: int = Field(DEFAULT_LIST_LIMIT, ge=1, le=100, description="Maximum number of requests.")
    url_pattern: Optional[str] = Field(None, description="Regular expression matched against request URLs.")

    @model_validator(mode="after")
    def _pattern_compiles(self) -> "NetworkRequestsParams":
        if self.url_pattern:
            try:
                re.compile(self.url_pattern)
            except re.error as exc:
                raise ValueError(f"url_pattern is not a valid regular expression: {exc}") from exc
        return self
