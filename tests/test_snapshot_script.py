"""Runs the page-side snapshot scripts in headless Chromium."""

from contextlib import asynccontextmanager

import pytest
from playwright.async_api import Error as PlaywrightError
from playwright.async_api import async_playwright

from electron_ui_mcp.session.refs import REF_ATTRIBUTE, RefTable
from electron_ui_mcp.session.snapshot import SnapshotBuilder


@asynccontextmanager
async def chromium_page(html):
    async with async_playwright() as playwright:
        try:
            browser = await playwright.chromium.launch()
        except PlaywrightError as exc:
            if "Executable doesn't exist" in str(exc):
                pytest.skip("Chromium is not installed (run `playwright install chromium`)")
            raise
        try:
            page = await browser.new_page()
            await page.set_content(html)
            yield page
        finally:
            await browser.close()


async def capture(html):
    async with chromium_page(html) as page:
        builder = SnapshotBuilder(RefTable())
        result = await builder.capture(page)
        return result, builder


@pytest.mark.asyncio
async def test_heading_and_button_page():
    result, builder = await capture("<h1>Welcome</h1><button>Sign In</button>")

    assert result.text == '- [e0] heading "Welcome" [level 1]\n- [e1] button "Sign In"'
    assert set(builder.bounding_boxes) == {"e0", "e1"}


@pytest.mark.asyncio
async def test_hidden_subtrees_are_skipped():
    result, _ = await capture(
        """
        <div style="display: none"><button>Gone</button></div>
        <div style="visibility: hidden"><button>Invisible</button></div>
        <div aria-hidden="true"><button>Decorative</button></div>
        <button>Visible</button>
        """
    )

    assert result.text == '- [e0] button "Visible"'


@pytest.mark.asyncio
async def test_roles_and_name_fallbacks():
    result, _ = await capture(
        """
        <label for="email">Email address</label>
        <input id="email" type="email">
        <span id="pw-label">Secret</span>
        <input type="password" aria-labelledby="pw-label">
        <input type="checkbox" aria-label="Remember me">
        <input type="range" title="Volume">
        <input type="number" aria-label="Copies">
        <img alt="Logo">
        <input type="submit" value="Send">
        <a href="#docs">Docs</a>
        <div role="heading" aria-level="3">Advanced</div>
        """
    )

    assert result.text.splitlines() == [
        '- [e0] textbox "Email address"',
        '- [e1] textbox "Secret"',
        '- [e2] checkbox "Remember me"',
        '- [e3] slider "Volume"',
        '- [e4] spinbutton "Copies"',
        '- [e5] img "Logo"',
        '- [e6] button "Send"',
        '- [e7] link "Docs"',
        '- [e8] heading "Advanced" [level 3]',
    ]


@pytest.mark.asyncio
async def test_landmarks_nest_and_wrappers_promote_children():
    result, _ = await capture(
        """
        <nav aria-label="Primary"><ul><li><a href="#home">Home</a></li></ul></nav>
        <div onclick="void 0"><span>plain text</span></div>
        <div tabindex="0"><button>Inner</button></div>
        <div><div><button>Deep</button></div></div>
        """
    )

    assert result.text == (
        '- [e0] navigation "Primary"\n'
        "  - [e1] list\n"
        "    - [e2] listitem\n"
        '      - [e3] link "Home"\n'
        '- [e4] button "Inner"\n'
        '- [e5] button "Deep"'
    )


@pytest.mark.asyncio
async def test_stamped_refs_locate_their_elements():
    html = """
        <button data-testid="save">Save</button>
        <span title="Status">all good</span>
        <button>Cancel</button>
    """
    async with chromium_page(html) as page:
        builder = SnapshotBuilder(RefTable())
        result = await builder.capture(page)

        assert result.text == '- [e0] button "Save"\n- [e1] generic "Status"\n- [e2] button "Cancel"'
        status = builder.refs.resolve("e1")
        assert status.selector == f'[{REF_ATTRIBUTE}="e1"]'
        assert await page.locator(status.selector).inner_text() == "all good"
        assert await page.locator(f'[{REF_ATTRIBUTE}="e2"]').inner_text() == "Cancel"
        assert await builder.refs.resolve_to_locator(page, "e0").count() == 1

        await page.evaluate("document.querySelector('[data-testid=save]').remove()")
        await builder.capture(page)

        assert await page.locator(f"[{REF_ATTRIBUTE}]").count() == 2
        assert await page.locator(f'[{REF_ATTRIBUTE}="e0"]').inner_text() == "all good"
