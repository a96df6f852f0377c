"""
Electron process launch and attach.

The app is spawned with remote debugging enabled. Renderer windows are
driven through Playwright over CDP and the main process is reached
through the Node inspector.
"""

from __future__ import annotations

import asyncio
import logging
import re
import shutil
import tempfile
import time
from pathlib import Path
from typing import Any, Callable, List, Optional

from playwright.async_api import async_playwright

from ..common.logger import log_event
from ..config import (
    ElectronUIConfig,
    build_launch_env,
    resolve_app_path,
    resolve_electron_binary,
)
from .errors import EvaluationError, LaunchError
from .inspector import MainProcessInspector

logger = logging.getLogger(__name__)

DEVTOOLS_LINE = re.compile(r"DevTools listening on (ws://\S+)")
INSPECTOR_LINE = re.compile(r"Debugger listening on (ws://\S+)")
DEBUG_FLAGS = ("--remote-debugging-port=0", "--inspect=0")
GRACEFUL_QUIT_TIMEOUT_S = 5.0
FIRST_WINDOW_POLL_S = 0.1


def _compact_exception_message(exc: BaseException, limit: int = 300) -> str:
    text = " ".join(str(exc).split()) or exc.__class__.__name__
    return text if len(text) <= limit else f"{text[: limit - 3]}..."


def build_launch_command(config: ElectronUIConfig, executable: Path, app_path: Path) -> List[str]:
    args = [str(executable), *DEBUG_FLAGS]
    if config.mode == "dev":
        args.append(str(app_path))
    args.extend(config.electron_args)
    return args


def parse_endpoints(lines: List[str]) -> tuple:
    """Return ``(devtools_ws, inspector_ws)`` found in Electron's stderr lines."""
    devtools = inspector = None
    for line in lines:
        if inspector is None:
            match = INSPECTOR_LINE.search(line)
            if match:
                inspector = match.group(1)
        if devtools is None:
            match = DEVTOOLS_LINE.search(line)
            if match:
                devtools = match.group(1)
    return devtools, inspector


class ElectronApp:
    """A running Electron process with its renderer and main-process channels."""

    def __init__(
        self,
        *,
        process: Any,
        playwright: Any,
        browser: Any,
        inspector: Optional[MainProcessInspector],
        app_path: str,
        temp_user_data_dir: Optional[str] = None,
    ) -> None:
        self.process = process
        self.playwright = playwright
        self.browser = browser
        self.inspector = inspector
        self.app_path = app_path
        self.temp_user_data_dir = temp_user_data_dir
        self._pages: List[Any] = []
        self._page_callbacks: List[Callable[[Any], None]] = []
        self._close_callbacks: List[Callable[[], None]] = []
        self._closed = False
        self._watch_task: Optional[asyncio.Task] = None
        self._stream_tasks: List[asyncio.Task] = []

    # ── windows ──────────────────────────────────────────────────

    def attach(self) -> None:
        for context in self.browser.contexts:
            for page in context.pages:
                self._adopt_page(page)
            context.on("page", self._adopt_page)
        self.browser.on("disconnected", lambda *_: self._notify_closed("disconnected"))
        self._watch_task = asyncio.create_task(self._watch_process())

    def _adopt_page(self, page: Any) -> None:
        if page in self._pages or str(page.url).startswith("devtools://"):
            return
        self._pages.append(page)
        for callback in list(self._page_callbacks):
            callback(page)

    def on_window(self, callback: Callable[[Any], None]) -> None:
        """Call ``callback`` for every current and future window."""
        self._page_callbacks.append(callback)
        for page in self.windows():
            callback(page)

    def on_close(self, callback: Callable[[], None]) -> None:
        self._close_callbacks.append(callback)

    def windows(self) -> List[Any]:
        self._pages = [page for page in self._pages if not page.is_closed()]
        return list(self._pages)

    async def first_window(self, timeout_ms: int) -> Any:
        deadline = time.monotonic() + timeout_ms / 1000
        while True:
            windows = self.windows()
            if windows:
                return windows[0]
            if not self.is_alive():
                raise RuntimeError("Electron exited before opening a window")
            if time.monotonic() >= deadline:
                raise TimeoutError(f"No window opened within {timeout_ms}ms")
            await asyncio.sleep(FIRST_WINDOW_POLL_S)

    # ── process ──────────────────────────────────────────────────

    def is_alive(self) -> bool:
        if self._closed or self.process.returncode is not None:
            return False
        try:
            return bool(self.browser.is_connected())
        except Exception:
            return False

    async def evaluate_main(self, code: str) -> Any:
        if self.inspector is None:
            raise EvaluationError(
                "main-process inspector is unavailable (the app may disable the Node inspector)",
                main_process=True,
            )
        try:
            return await self.inspector.evaluate(code)
        except EvaluationError:
            raise
        except Exception as exc:
            raise EvaluationError(_compact_exception_message(exc), main_process=True) from exc

    async def _watch_process(self) -> None:
        code = await self.process.wait()
        self._notify_closed(f"exit:{code}")

    def _notify_closed(self, reason: str) -> None:
        if self._closed:
            return
        self._closed = True
        log_event(logger, level=logging.INFO, event="app_closed", reason=reason, pid=self.process.pid)
        for callback in list(self._close_callbacks):
            try:
                callback()
            except Exception:
                logger.exception("Close callback failed")

    async def close(self, force: bool = False) -> None:
        """Quit the app, killing it when a graceful quit is skipped or fails."""
        if not force and self.process.returncode is None and self.inspector is not None:
            try:
                await asyncio.wait_for(self.inspector.evaluate("app.quit();"), GRACEFUL_QUIT_TIMEOUT_S)
            except Exception as exc:
                logger.debug("Graceful quit request failed: %s", exc)
            try:
                await asyncio.wait_for(self.process.wait(), GRACEFUL_QUIT_TIMEOUT_S)
            except asyncio.TimeoutError:
                logger.warning("Electron did not exit after app.quit(); killing pid=%s", self.process.pid)
        await self._shutdown()

    async def _shutdown(self) -> None:
        if self.process.returncode is None:
            try:
                self.process.kill()
                await self.process.wait()
            except ProcessLookupError:
                pass
            except Exception as exc:
                logger.debug("Failed to kill Electron pid=%s: %s", self.process.pid, exc)
        for step in (self._close_inspector, self._close_browser, self._stop_playwright):
            try:
                await step()
            except Exception as exc:
                logger.debug("Cleanup step %s failed: %s", step.__name__, exc)
        for task in [self._watch_task, *self._stream_tasks]:
            if task is not None and not task.done():
                task.cancel()
        if self.temp_user_data_dir:
            shutil.rmtree(self.temp_user_data_dir, ignore_errors=True)
            self.temp_user_data_dir = None
        self._notify_closed("shutdown")

    async def _close_inspector(self) -> None:
        if self.inspector is not None:
            await self.inspector.close()

    async def _close_browser(self) -> None:
        if self.browser is not None and self.browser.is_connected():
            await self.browser.close()

    async def _stop_playwright(self) -> None:
        if self.playwright is not None:
            await self.playwright.stop()


class ElectronLauncher:
    """Spawns the configured Electron app and returns an attached ``ElectronApp``."""

    def __init__(self, config: ElectronUIConfig) -> None:
        self.config = config

    async def __call__(self) -> ElectronApp:
        return await self.launch()

    async def launch(self) -> ElectronApp:
        config = self.config
        try:
            app_path = resolve_app_path(config)
            executable = resolve_electron_binary(config, app_path)
        except FileNotFoundError as exc:
            raise LaunchError(str(exc), config.app_path) from exc

        temp_dir = None
        if config.isolated and not config.user_data_dir:
            temp_dir = tempfile.mkdtemp(prefix="electron-ui-mcp-")

        command = build_launch_command(config, executable, app_path)
        env = build_launch_env(config, user_data_dir=temp_dir)
        cwd = str(config.base_dir)
        log_event(
            logger,
            level=logging.INFO,
            event="launch_start",
            mode=config.mode,
            app_path=app_path,
            executable=executable,
            isolated=config.isolated,
        )

        process = playwright = browser = inspector = None
        try:
            process = await asyncio.create_subprocess_exec(
                *command,
                cwd=cwd,
                env=env,
                stdin=asyncio.subprocess.DEVNULL,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
            )
            devtools_ws, inspector_ws = await asyncio.wait_for(
                self._read_endpoints(process), config.timeout / 1000
            )
            playwright = await async_playwright().start()
            browser = await playwright.chromium.connect_over_cdp(devtools_ws, timeout=config.timeout)
            if inspector_ws:
                inspector = MainProcessInspector(inspector_ws)
                try:
                    await inspector.connect()
                except Exception as exc:
                    logger.warning("Main-process inspector unavailable: %s", exc)
                    inspector = None
        except BaseException as exc:
            await self._cleanup_partial_start(process, playwright, browser, temp_dir, inspector)
            if not isinstance(exc, Exception):
                log_event(logger, level=logging.INFO, event="launch_cancelled", app_path=app_path)
                raise
            log_event(logger, level=logging.ERROR, event="launch_failed", error=_compact_exception_message(exc))
            if isinstance(exc, asyncio.TimeoutError):
                reason = f"timed out after {config.timeout}ms waiting for the DevTools endpoint"
            else:
                reason = _compact_exception_message(exc)
            raise LaunchError(reason, str(app_path)) from exc

        app = ElectronApp(
            process=process,
            playwright=playwright,
            browser=browser,
            inspector=inspector,
            app_path=str(app_path),
            temp_user_data_dir=temp_dir,
        )
        app._stream_tasks.append(asyncio.create_task(_drain(process.stdout, "stdout")))
        app._stream_tasks.append(asyncio.create_task(_drain(process.stderr, "stderr")))
        app.attach()
        log_event(
            logger,
            level=logging.INFO,
            event="launch_attached",
            pid=process.pid,
            devtools=devtools_ws,
            inspector=bool(inspector),
        )
        return app

    @staticmethod
    async def _read_endpoints(process: Any) -> tuple:
        seen: List[str] = []
        while True:
            raw = await process.stderr.readline()
            if not raw:
                code = await process.wait()
                tail = " | ".join(seen[-5:])
                raise RuntimeError(f"Electron exited with code {code} before exposing DevTools. {tail}".strip())
            line = raw.decode("utf-8", errors="replace").rstrip()
            seen.append(line)
            logger.debug("electron stderr: %s", line)
            devtools, inspector = parse_endpoints(seen)
            if devtools:
                return devtools, inspector

    @staticmethod
    async def _cleanup_partial_start(
        process: Any,
        playwright: Any,
        browser: Any,
        temp_dir: Optional[str],
        inspector: Optional[MainProcessInspector] = None,
    ) -> None:
        """Undo a launch that did not reach ``attach``; also runs when the launch is cancelled."""
        if inspector is not None:
            try:
                await inspector.close()
            except Exception:
                pass
        if browser is not None:
            try:
                await browser.close()
            except Exception:
                pass
        if playwright is not None:
            try:
                await playwright.stop()
            except Exception:
                pass
        if process is not None and process.returncode is None:
            try:
                process.kill()
                await process.wait()
            except Exception:
                pass
        if temp_dir:
            shutil.rmtree(temp_dir, ignore_errors=True)


async def _drain(stream: Any, name: str) -> None:
    if stream is None:
        return
    while True:
        raw = await stream.readline()
        if not raw:
            return
        logger.debug("electron %s: %s", name, raw.decode("utf-8", errors="replace").rstrip())
