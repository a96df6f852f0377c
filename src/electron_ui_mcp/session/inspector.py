"""Node inspector client for evaluating code in the Electron main process."""

from __future__ import annotations

import asyncio
import itertools
import json
import logging
from typing import Any, Dict, Optional

import websockets

from .errors import EvaluationError

logger = logging.getLogger(__name__)

ELECTRON_MODULES = "app, BrowserWindow, dialog, shell, clipboard, nativeTheme, screen, session"


def wrap_main_process_code(code: str) -> str:
    """Run ``code`` as an async function body with the Electron modules in scope."""
    return (
        "(async () => {\n"
        f"  const {{ {ELECTRON_MODULES} }} = require('electron');\n"
        f"  return await (async () => {{\n{code}\n}})();\n"
        "})()"
    )


def _exception_text(details: Dict[str, Any]) -> str:
    exception = details.get("exception") or {}
    description = exception.get("description") or exception.get("value")
    if description:
        return str(description).splitlines()[0]
    return str(details.get("text") or "Uncaught exception")


class MainProcessInspector:
    """Minimal CDP client for the Node inspector endpoint of the main process."""

    def __init__(self, ws_url: str) -> None:
        self.ws_url = ws_url
        self._ws = None
        self._ids = itertools.count(1)
        self._pending: Dict[int, asyncio.Future] = {}
        self._recv_task: Optional[asyncio.Task] = None

    @property
    def connected(self) -> bool:
        return self._ws is not None

    async def connect(self) -> None:
        if self._ws is not None:
            return
        self._ws = await websockets.connect(self.ws_url, max_size=None)
        self._recv_task = asyncio.create_task(self._recv_loop())
        logger.debug("Connected to main-process inspector %s", self.ws_url)

    async def close(self) -> None:
        if self._recv_task:
            self._recv_task.cancel()
            self._recv_task = None
        ws, self._ws = self._ws, None
        if ws is not None:
            await ws.close()
        self._fail_pending(ConnectionError("Inspector connection closed"))

    async def send(self, method: str, params: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        if self._ws is None:
            await self.connect()
        message_id = next(self._ids)
        future = asyncio.get_running_loop().create_future()
        self._pending[message_id] = future
        try:
            await self._ws.send(json.dumps({"id": message_id, "method": method, "params": params or {}}))
            return await future
        finally:
            self._pending.pop(message_id, None)

    async def evaluate(self, code: str) -> Any:
        response = await self.send(
            "Runtime.evaluate",
            {
                "expression": wrap_main_process_code(code),
                "awaitPromise": True,
                "returnByValue": True,
                "includeCommandLineAPI": True,
            },
        )
        details = response.get("exceptionDetails")
        if details:
            raise EvaluationError(_exception_text(details), main_process=True)
        result = response.get("result") or {}
        return result.get("value")

    async def _recv_loop(self) -> None:
        assert self._ws is not None
        try:
            async for raw in self._ws:
                message = json.loads(raw)
                message_id = message.get("id")
                if message_id is None:
                    continue
                future = self._pending.get(message_id)
                if future is None or future.done():
                    continue
                if "error" in message:
                    error = message["error"]
                    future.set_exception(RuntimeError(error.get("message", str(error))))
                else:
                    future.set_result(message.get("result") or {})
        except asyncio.CancelledError:
            raise
        except Exception as exc:
            logger.debug("Inspector connection dropped: %s", exc)
        self._fail_pending(ConnectionError("Inspector connection closed"))

    def _fail_pending(self, exc: Exception) -> None:
        for future in self._pending.values():
            if not future.done():
                future.set_exception(exc)
        self._pending.clear()
