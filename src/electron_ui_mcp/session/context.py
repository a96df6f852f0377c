"""
Session lifecycle manager for the automated Electron app.

Every tool goes through ``ensure_ready``: it launches the app on first
use, lets concurrent callers share one in-flight launch, and recovers
from a crashed or closed app by resetting and launching again.
"""

from __future__ import annotations

import asyncio
import enum
import logging
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Dict, List, Optional, Set

from ..common.logger import log_event
from ..config import ElectronUIConfig
from .errors import (
    AppClosedError,
    AppNotReadyError,
    DialogNotCapturedError,
    LaunchError,
    NoWindowError,
    WindowSelectionError,
)
from .events import ConsoleLog, ConsoleRecord, DialogQueue, DialogRecord, NetworkLog, NetworkRecord
from .launcher import ElectronLauncher
from .refs import RefTable
from .snapshot import SnapshotBuilder

logger = logging.getLogger(__name__)

Launcher = Callable[[], Awaitable[Any]]


class SessionState(str, enum.Enum):
    IDLE = "idle"
    LAUNCHING = "launching"
    READY = "ready"
    ERROR = "error"
    CLOSED = "closed"


@dataclass(frozen=True)
class WindowInfo:
    index: int
    title: str
    url: str
    is_closed: bool
    is_active: bool

    def to_dict(self) -> Dict[str, Any]:
        return {
            "index": self.index,
            "title": self.title,
            "url": self.url,
            "is_closed": self.is_closed,
            "is_active": self.is_active,
        }


async def _safe_title(page: Any) -> str:
    try:
        return await page.title()
    except Exception:
        return ""


class SessionManager:
    """
    Owns the app handle, the active window and the event side channels.

    ``launcher`` is an async callable returning an app object; tests pass
    a fake to count launches and simulate crashes.
    """

    def __init__(
        self,
        config: Optional[ElectronUIConfig] = None,
        launcher: Optional[Launcher] = None,
    ) -> None:
        self.config = config or ElectronUIConfig()
        self._launcher = launcher or ElectronLauncher(self.config)
        self.state = SessionState.IDLE
        self._launch_task: Optional[asyncio.Task] = None
        self._app: Any = None
        self._closed_app: Any = None
        self._active_window: Any = None
        self._wired: Set[int] = set()

        self.refs = RefTable()
        self.snapshots = SnapshotBuilder(self.refs)
        self.dialogs = DialogQueue()
        self.console = ConsoleLog()
        self.network = NetworkLog()
        self.launch_count = 0

    # ── lifecycle ────────────────────────────────────────────────

    async def ensure_ready(self) -> None:
        if self.state == SessionState.READY and self._app is not None and self._app.is_alive():
            return

        if self.state == SessionState.READY:
            # The liveness check failed without a close notification reaching us.
            self._handle_app_closed(self._app)

        if self.state == SessionState.LAUNCHING and self._launch_task is not None:
            await self._await_launch(self._launch_task)
            return

        stale = None
        if self.state in (SessionState.ERROR, SessionState.CLOSED):
            stale = self._closed_app
            self._reset()

        # State and task are set before the first await so concurrent callers coalesce.
        self.state = SessionState.LAUNCHING
        self._launch_task = asyncio.create_task(self._run_launch(stale))
        await self._await_launch(self._launch_task)

    async def _await_launch(self, task: asyncio.Task) -> None:
        try:
            await asyncio.shield(task)
        except asyncio.CancelledError:
            if not task.cancelled():
                raise
            # Only close() cancels the launch; every waiter sees the same failure.
            raise LaunchError("launch cancelled because the session was closed", self.config.app_path) from None

    async def _run_launch(self, stale: Any = None) -> None:
        try:
            if stale is not None:
                await self._discard_app(stale)
            await self._launch()
        except BaseException:
            self.state = SessionState.ERROR
            raise
        else:
            self.state = SessionState.READY
        finally:
            self._launch_task = None

    async def _launch(self) -> None:
        self.launch_count += 1
        app = None
        try:
            app = await self._launcher()
            self._app = app
            app.on_close(lambda: self._handle_app_closed(app))
            app.on_window(self._wire_window)
            page = await app.first_window(self.config.timeout)
            await page.wait_for_load_state("domcontentloaded")
            if self._app is not app:
                raise AppClosedError("The app exited while it was starting.")
            self._active_window = page
        except asyncio.CancelledError:
            await self._discard_app(app)
            raise
        except LaunchError:
            await self._discard_app(app)
            raise
        except Exception as exc:
            await self._discard_app(app)
            raise LaunchError(str(exc) or exc.__class__.__name__, self.config.app_path) from exc
        log_event(logger, level=logging.INFO, event="session_ready", windows=len(app.windows()))

    async def _discard_app(self, app: Any) -> None:
        """Shut ``app`` down for good: process, driver connection and temp profile."""
        if app is None:
            return
        if self._app is app:
            self._app = None
            self._active_window = None
        if self._closed_app is app:
            self._closed_app = None
        try:
            await app.close(force=True)
        except Exception as exc:
            logger.debug("Failed to dispose Electron app: %s", exc)

    def _handle_app_closed(self, app: Any) -> None:
        if app is None or app is not self._app:
            return
        # Kept until the next launch or close() disposes of it.
        self._app = None
        self._closed_app = app
        self._active_window = None
        if self.state == SessionState.LAUNCHING:
            return
        if self.state in (SessionState.IDLE, SessionState.CLOSED):
            return
        self.state = SessionState.CLOSED
        self.snapshots.clear()
        log_event(logger, level=logging.WARNING, event="session_closed")

    def _reset(self) -> None:
        self._app = None
        self._closed_app = None
        self._active_window = None
        self._wired.clear()
        self._launch_task = None
        self.dialogs.clear()
        self.console.clear()
        self.network.clear()
        self.snapshots.clear()
        self.state = SessionState.IDLE

    async def close(self, force: bool = False) -> None:
        """Quit the app and reset to idle. Never raises."""
        task = self._launch_task
        if task is not None and not task.done():
            task.cancel()
            try:
                await task
            except asyncio.CancelledError:
                if not task.cancelled():
                    raise
            except Exception as exc:
                logger.debug("Launch ended while closing: %s", exc)
        app = self._app or self._closed_app
        if app is not None:
            try:
                await app.close(force=force)
            except Exception as exc:
                logger.warning("Error while closing Electron app: %s", exc)
        self._reset()
        log_event(logger, level=logging.INFO, event="session_reset", force=force)

    # ── accessors ────────────────────────────────────────────────

    @property
    def app(self) -> Any:
        return self._app

    async def get_app(self) -> Any:
        await self.ensure_ready()
        if self._app is None:
            raise AppNotReadyError(self.state.value)
        return self._app

    async def get_active_window(self) -> Any:
        await self.ensure_ready()
        if self._active_window is not None and not self._active_window.is_closed():
            return self._active_window

        for page in self._app.windows() if self._app is not None else []:
            if not page.is_closed():
                self._wire_window(page)
                self._active_window = page
                log_event(logger, level=logging.INFO, event="window_adopted", url=page.url)
                return page
        if self._app is None or not self._app.is_alive():
            raise AppClosedError()
        raise NoWindowError()

    async def list_windows(self) -> List[WindowInfo]:
        await self.ensure_ready()
        windows = self._app.windows()
        return [
            WindowInfo(
                index=index,
                title=await _safe_title(page),
                url=page.url,
                is_closed=page.is_closed(),
                is_active=page is self._active_window,
            )
            for index, page in enumerate(windows)
        ]

    async def select_window(self, index: Optional[int] = None, title: Optional[str] = None) -> Any:
        await self.ensure_ready()
        windows = self._app.windows()
        if index is not None:
            if index < 0 or index >= len(windows):
                raise WindowSelectionError(
                    f"Window index {index} out of range (0-{len(windows) - 1})"
                    if windows
                    else f"Window index {index} out of range (no windows open)"
                )
            return self._activate(windows[index])

        if title:
            titles = [await _safe_title(page) for page in windows]
            for page, page_title in zip(windows, titles):
                if page_title == title:
                    return self._activate(page)
            for page, page_title in zip(windows, titles):
                if title in page_title:
                    return self._activate(page)
            raise WindowSelectionError(f"No window found with title matching: {title}")

        raise WindowSelectionError("Must specify either index or title to select a window")

    def _activate(self, page: Any) -> Any:
        self._wire_window(page)
        self._active_window = page
        return page

    # ── event side channels ──────────────────────────────────────

    def _wire_window(self, page: Any) -> None:
        key = id(page)
        if key in self._wired:
            return
        self._wired.add(key)
        page.on("dialog", self._on_dialog)
        page.on("console", lambda message: self.console.record(message.type, message.text))
        page.on("request", lambda request: self.network.record_request(request.url, request.method))
        page.on("response", lambda response: self.network.record_response(response.url, response.status))
        page.on("close", lambda *_: self._on_window_closed(page))

    def _on_dialog(self, dialog: Any) -> None:
        record = self.dialogs.push(dialog)
        log_event(logger, level=logging.DEBUG, event="dialog", type=record.type)

    def _on_window_closed(self, page: Any) -> None:
        self._wired.discard(id(page))
        if self._active_window is page:
            self._active_window = None

    def pending_dialogs(self) -> List[DialogRecord]:
        return self.dialogs.pending()

    def console_messages(self, limit: int = 50, type_: Optional[str] = None) -> List[ConsoleRecord]:
        return self.console.filtered(limit, type_)

    def network_requests(self, limit: int = 50, url_pattern: Optional[str] = None) -> List[NetworkRecord]:
        return self.network.filtered(limit, url_pattern)

    async def next_dialog(self, timeout_ms: int) -> Any:
        """Return the next unanswered dialog, waiting up to ``timeout_ms``."""
        await self.ensure_ready()
        try:
            return await self.dialogs.next_dialog(timeout_ms / 1000)
        except asyncio.TimeoutError:
            raise DialogNotCapturedError(
                timeout_ms, [record.to_dict() for record in self.dialogs.pending()]
            ) from None

    def status(self) -> Dict[str, Any]:
        return {
            "state": self.state.value,
            "snapshot_id": self.refs.current_generation_id,
            "launch_count": self.launch_count,
            "pending_dialogs": len(self.dialogs.history),
            "console_messages": len(self.console),
            "network_requests": len(self.network),
        }
