"""Waiting and dialog tools."""

from ..capability import Capability
from ..decorator import tool
from ..helpers import action_timeout
from ..models import HandleDialogParams, WaitForParams


@tool(
    description=(
        "Wait for text, an element ref, a selector or a URL. "
        "With no condition, waits for the given timeout."
    ),
    params=WaitForParams,
    capabilities=[Capability.OBSERVE],
    idempotent=True,
)
async def browser_wait_for(session, params: WaitForParams) -> dict:
    page = await session.get_active_window()
    timeout = params.timeout

    if params.text:
        async with action_timeout(f'text "{params.text}" to be {params.state}', timeout):
            await page.get_by_text(params.text).first.wait_for(state=params.state, timeout=timeout)
        return {"waited": "text", "value": params.text}

    if params.ref:
        locator = session.refs.resolve_to_locator(page, params.ref, params.snapshot_id)
        async with action_timeout(f'ref "{params.ref}" to be {params.state}', timeout):
            await locator.wait_for(state=params.state, timeout=timeout)
        return {"waited": "ref", "value": params.ref}

    if params.selector:
        async with action_timeout(f'selector "{params.selector}" to be {params.state}', timeout):
            await page.wait_for_selector(params.selector, state=params.state, timeout=timeout)
        return {"waited": "selector", "value": params.selector}

    if params.url:
        async with action_timeout(f'URL "{params.url}"', timeout):
            await page.wait_for_url(params.url, timeout=timeout)
        return {"waited": "url", "value": params.url}

    await page.wait_for_timeout(timeout)
    return {"waited": "timeout", "value": timeout}


@tool(
    description=(
        "Accept or dismiss a JavaScript dialog (alert, confirm, prompt, beforeunload). "
        "Answers a dialog that is already open, or waits for the next one."
    ),
    params=HandleDialogParams,
    capabilities=[Capability.INPUT],
)
async def browser_handle_dialog(session, params: HandleDialogParams) -> dict:
    dialog = await session.next_dialog(params.timeout)
    info = {
        "type": dialog.type,
        "message": dialog.message,
        "default_value": dialog.default_value,
    }
    if params.action == "accept":
        if params.prompt_text is not None:
            await dialog.accept(params.prompt_text)
        else:
            await dialog.accept()
    else:
        await dialog.dismiss()
    if not session.dialogs.has_live():
        session.dialogs.clear_history()
    return {"action": params.action, "dialog": info}
