"""Shared plumbing for tool handlers."""

from __future__ import annotations

from contextlib import asynccontextmanager
from typing import Any, AsyncIterator, Optional

from playwright.async_api import Error as PlaywrightError
from playwright.async_api import TimeoutError as PlaywrightTimeoutError

from ..session.errors import ActionTimeoutError, EvaluationError


@asynccontextmanager
async def action_timeout(condition: str, timeout_ms: int) -> AsyncIterator[None]:
    """Report driver timeouts as ``ActionTimeoutError`` naming what was awaited."""
    try:
        yield
    except PlaywrightTimeoutError as exc:
        raise ActionTimeoutError(condition, timeout_ms) from exc


@asynccontextmanager
async def renderer_evaluation() -> AsyncIterator[None]:
    try:
        yield
    except PlaywrightTimeoutError:
        raise
    except PlaywrightError as exc:
        raise EvaluationError(exc.message.splitlines()[0] if exc.message else str(exc)) from exc


async def locate(session: Any, ref: str, snapshot_id: Optional[str] = None) -> Any:
    """Resolve ``ref`` against the active window."""
    page = await session.get_active_window()
    return session.refs.resolve_to_locator(page, ref, snapshot_id)


async def page_summary(page: Any) -> dict:
    try:
        title = await page.title()
    except PlaywrightError:
        title = ""
    return {"url": page.url, "title": title}
