"""Pointer and keyboard tools acting on snapshot refs."""

from ..capability import Capability
from ..decorator import tool
from ..helpers import action_timeout, locate
from ..models import (
    DEFAULT_ACTION_TIMEOUT_MS,
    ClickParams,
    DragParams,
    FileUploadParams,
    FillFormParams,
    HoverParams,
    PressKeyParams,
    SelectOptionParams,
    TypeParams,
)

SLOW_TYPE_DELAY_MS = 100


@tool(
    description="Click an element by its snapshot ref.",
    params=ClickParams,
    capabilities=[Capability.INPUT],
)
async def browser_click(session, params: ClickParams) -> dict:
    locator = await locate(session, params.ref, params.snapshot_id)
    async with action_timeout(f"click on {params.ref}", DEFAULT_ACTION_TIMEOUT_MS):
        await locator.click(
            button=params.button,
            click_count=2 if params.double_click else 1,
            modifiers=list(params.modifiers) or None,
            timeout=DEFAULT_ACTION_TIMEOUT_MS,
        )
    return {"ref": params.ref}


@tool(
    description="Type text into an editable element.",
    params=TypeParams,
    capabilities=[Capability.INPUT],
)
async def browser_type(session, params: TypeParams) -> dict:
    locator = await locate(session, params.ref, params.snapshot_id)
    async with action_timeout(f"typing into {params.ref}", DEFAULT_ACTION_TIMEOUT_MS):
        if params.clear:
            await locator.clear(timeout=DEFAULT_ACTION_TIMEOUT_MS)
        await locator.press_sequentially(
            params.text,
            delay=SLOW_TYPE_DELAY_MS if params.slowly else 0,
            timeout=DEFAULT_ACTION_TIMEOUT_MS,
        )
        if params.submit:
            await locator.press("Enter", timeout=DEFAULT_ACTION_TIMEOUT_MS)
    return {"ref": params.ref, "typed": len(params.text)}


@tool(
    description="Press a key, optionally on a specific element.",
    params=PressKeyParams,
    capabilities=[Capability.INPUT],
)
async def browser_press_key(session, params: PressKeyParams) -> dict:
    if params.ref:
        locator = await locate(session, params.ref, params.snapshot_id)
        async with action_timeout(f"key {params.key} on {params.ref}", DEFAULT_ACTION_TIMEOUT_MS):
            await locator.press(params.key, timeout=DEFAULT_ACTION_TIMEOUT_MS)
    else:
        page = await session.get_active_window()
        await page.keyboard.press(params.key)
    return {"key": params.key}


@tool(
    description="Hover the pointer over an element.",
    params=HoverParams,
    capabilities=[Capability.INPUT],
    idempotent=True,
)
async def browser_hover(session, params: HoverParams) -> dict:
    locator = await locate(session, params.ref, params.snapshot_id)
    async with action_timeout(f"hover on {params.ref}", DEFAULT_ACTION_TIMEOUT_MS):
        await locator.hover(timeout=DEFAULT_ACTION_TIMEOUT_MS)
    return {"ref": params.ref}


@tool(
    description="Drag one element onto another.",
    params=DragParams,
    capabilities=[Capability.INPUT],
)
async def browser_drag(session, params: DragParams) -> dict:
    source = await locate(session, params.start_ref, params.snapshot_id)
    target = await locate(session, params.end_ref, params.snapshot_id)
    async with action_timeout(f"drag from {params.start_ref} to {params.end_ref}", DEFAULT_ACTION_TIMEOUT_MS):
        await source.drag_to(target, timeout=DEFAULT_ACTION_TIMEOUT_MS)
    return {"start_ref": params.start_ref, "end_ref": params.end_ref}


@tool(
    description="Select an option in a dropdown by value, label or index.",
    params=SelectOptionParams,
    capabilities=[Capability.INPUT],
    idempotent=True,
)
async def browser_select_option(session, params: SelectOptionParams) -> dict:
    locator = await locate(session, params.ref, params.snapshot_id)
    if params.value is not None:
        choice = {"value": params.value}
    elif params.label is not None:
        choice = {"label": params.label}
    else:
        choice = {"index": params.index}
    async with action_timeout(f"option selection on {params.ref}", DEFAULT_ACTION_TIMEOUT_MS):
        selected = await locator.select_option(**choice, timeout=DEFAULT_ACTION_TIMEOUT_MS)
    return {"ref": params.ref, "selected": selected}


@tool(
    description="Fill several form fields at once.",
    params=FillFormParams,
    capabilities=[Capability.INPUT],
)
async def browser_fill_form(session, params: FillFormParams) -> dict:
    # Resolve every ref first so a stale ref fails before any field changes.
    locators = [await locate(session, field.ref, params.snapshot_id) for field in params.fields]
    for field, locator in zip(params.fields, locators):
        async with action_timeout(f"fill of {field.ref}", DEFAULT_ACTION_TIMEOUT_MS):
            await locator.fill(field.value, timeout=DEFAULT_ACTION_TIMEOUT_MS)
    if params.submit:
        page = await session.get_active_window()
        await page.keyboard.press("Enter")
    return {"filled_fields": len(params.fields)}


@tool(
    description="Attach local files to a file input.",
    params=FileUploadParams,
    capabilities=[Capability.INPUT, Capability.FILESYSTEM],
)
async def browser_file_upload(session, params: FileUploadParams) -> dict:
    locator = await locate(session, params.ref, params.snapshot_id)
    async with action_timeout(f"file upload on {params.ref}", DEFAULT_ACTION_TIMEOUT_MS):
        await locator.set_input_files(params.paths, timeout=DEFAULT_ACTION_TIMEOUT_MS)
    return {"ref": params.ref, "uploaded_files": len(params.paths)}
