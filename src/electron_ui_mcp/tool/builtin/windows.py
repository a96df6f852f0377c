"""Window management and side-channel readers."""

import json

from ..capability import Capability
from ..decorator import tool
from ..helpers import page_summary
from ..models import (
    CloseParams,
    ConsoleMessagesParams,
    NetworkRequestsParams,
    ResizeParams,
    TabsParams,
)

# Finds the BrowserWindow showing the active page; the URL is injected as JSON.
_FIND_WINDOW_JS = """
const __windows = BrowserWindow.getAllWindows().filter((w) => !w.isDestroyed());
const win = __windows.find((w) => w.webContents.getURL() === {url})
  || BrowserWindow.getFocusedWindow() || __windows[0];
if (!win) throw new Error("No BrowserWindow is open");
"""


def _window_code(url: str, body: str) -> str:
    return _FIND_WINDOW_JS.replace("{url}", json.dumps(url)) + body


@tool(
    description="List the app's windows or make one of them active.",
    params=TabsParams,
    capabilities=[Capability.WINDOW],
)
async def browser_tabs(session, params: TabsParams) -> dict:
    if params.action == "select":
        page = await session.select_window(index=params.index, title=params.title)
        return {"selected": await page_summary(page)}
    windows = await session.list_windows()
    return {"windows": [window.to_dict() for window in windows], "count": len(windows)}


@tool(
    description=(
        "Resize, maximize, minimize or toggle fullscreen for the active window. "
        "With no arguments, returns the current bounds."
    ),
    params=ResizeParams,
    capabilities=[Capability.WINDOW],
)
async def browser_resize(session, params: ResizeParams) -> dict:
    page = await session.get_active_window()
    app = await session.get_app()

    if params.maximize:
        await app.evaluate_main(_window_code(page.url, "win.maximize();"))
        return {"action": "maximized"}
    if params.minimize:
        await app.evaluate_main(_window_code(page.url, "win.minimize();"))
        return {"action": "minimized"}
    if params.fullscreen is not None:
        flag = "true" if params.fullscreen else "false"
        await app.evaluate_main(_window_code(page.url, f"win.setFullScreen({flag});"))
        return {"action": "fullscreen" if params.fullscreen else "windowed"}
    if params.width is not None and params.height is not None:
        await app.evaluate_main(
            _window_code(page.url, f"win.setSize({int(params.width)}, {int(params.height)});")
        )
        return {"action": "resized", "width": params.width, "height": params.height}

    bounds = await app.evaluate_main(_window_code(page.url, "return win.getBounds();"))
    return {
        "current_size": bounds,
        "suggestion": "Specify width and height, or use maximize, minimize or fullscreen.",
    }


@tool(
    description="Close the app. It is relaunched automatically by the next tool call.",
    params=CloseParams,
    capabilities=[Capability.LIFECYCLE],
    idempotent=True,
)
async def browser_close(session, params: CloseParams) -> dict:
    await session.close(force=params.force)
    return {"message": "Application closed", "state": session.state.value}


@tool(
    description="Recent console messages from the app's windows.",
    params=ConsoleMessagesParams,
    capabilities=[Capability.OBSERVE],
    idempotent=True,
)
async def browser_console_messages(session, params: ConsoleMessagesParams) -> dict:
    await session.ensure_ready()
    messages = [record.to_dict() for record in session.console_messages(params.limit, params.type)]
    return {"messages": messages, "count": len(messages)}


@tool(
    description="Recent network requests made by the app's windows.",
    params=NetworkRequestsParams,
    capabilities=[Capability.OBSERVE],
    idempotent=True,
)
async def browser_network_requests(session, params: NetworkRequestsParams) -> dict:
    await session.ensure_ready()
    requests = [record.to_dict() for record in session.network_requests(params.limit, params.url_pattern)]
    return {"requests": requests, "count": len(requests)}
