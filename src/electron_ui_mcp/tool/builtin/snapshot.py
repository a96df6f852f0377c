"""Snapshot and screenshot tools."""

import base64

from ..capability import Capability
from ..decorator import tool
from ..helpers import action_timeout
from ..models import DEFAULT_ACTION_TIMEOUT_MS, EmptyParams, ScreenshotParams

SNAPSHOT_INVALIDATED_WARNING = (
    "No snapshot existed, so one was captured for the annotation. "
    "Refs issued before this call are no longer valid."
)


@tool(
    description=(
        "Capture the UI of the active window as an outline of elements with refs "
        "(e0, e1, ...). Refs are valid until the next snapshot."
    ),
    params=EmptyParams,
    capabilities=[Capability.OBSERVE],
)
async def browser_snapshot(session, params: EmptyParams) -> dict:
    page = await session.get_active_window()
    result = await session.snapshots.capture(page)
    return {
        "snapshot_id": result.snapshot_id,
        "title": result.title,
        "url": result.url,
        "content": result.text,
    }


@tool(
    description="Take a screenshot of the active window, optionally annotated with snapshot refs.",
    params=ScreenshotParams,
    capabilities=[Capability.OBSERVE],
)
async def browser_take_screenshot(session, params: ScreenshotParams) -> dict:
    page = await session.get_active_window()
    async with action_timeout("screenshot", DEFAULT_ACTION_TIMEOUT_MS):
        shot = await session.snapshots.screenshot(
            page,
            full_page=params.full_page,
            image_type=params.type,
            quality=params.quality,
            annotate=params.annotate,
        )
    payload = {
        "data": base64.b64encode(shot.data).decode("ascii"),
        "mime_type": f"image/{shot.image_type}",
        "annotated": shot.annotated,
        "snapshot_taken": shot.snapshot_taken,
    }
    if shot.snapshot_taken:
        payload["snapshot_id"] = shot.snapshot_id
        payload["warning"] = SNAPSHOT_INVALIDATED_WARNING
    return payload
