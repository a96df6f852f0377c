"""Navigation tools."""

from ..capability import Capability
from ..decorator import tool
from ..helpers import action_timeout, page_summary
from ..models import DEFAULT_NAVIGATION_TIMEOUT_MS, NavigateBackParams, NavigateParams


@tool(
    description="Navigate the active window to a URL.",
    params=NavigateParams,
    capabilities=[Capability.NAVIGATION],
)
async def browser_navigate(session, params: NavigateParams) -> dict:
    page = await session.get_active_window()
    async with action_timeout(f"navigation to {params.url}", DEFAULT_NAVIGATION_TIMEOUT_MS):
        await page.goto(params.url, wait_until=params.wait_until, timeout=DEFAULT_NAVIGATION_TIMEOUT_MS)
    return await page_summary(page)


@tool(
    description="Go back to the previous page in the active window's history.",
    params=NavigateBackParams,
    capabilities=[Capability.NAVIGATION],
)
async def browser_navigate_back(session, params: NavigateBackParams) -> dict:
    page = await session.get_active_window()
    async with action_timeout("history navigation back", DEFAULT_NAVIGATION_TIMEOUT_MS):
        response = await page.go_back(wait_until=params.wait_until, timeout=DEFAULT_NAVIGATION_TIMEOUT_MS)
    summary = await page_summary(page)
    summary["navigated"] = response is not None
    return summary
