import asyncio

import pytest

from electron_fakes import (
    CountingLauncher,
    FakeApp,
    FakeConsoleMessage,
    FakeDialog,
    FakePage,
    FakeRequest,
    FakeResponse,
    WELCOME_TREE,
)
from electron_ui_mcp.session import SessionManager, SessionState
from electron_ui_mcp.session.errors import (
    DialogNotCapturedError,
    LaunchError,
    NoWindowError,
    RefNotFoundError,
    WindowSelectionError,
)


def make_session(**launcher_kwargs):
    launcher = CountingLauncher(**launcher_kwargs)
    return SessionManager(launcher=launcher), launcher


@pytest.mark.asyncio
async def test_first_use_launches_and_waits_for_dom():
    session, launcher = make_session()

    page = await session.get_active_window()

    assert session.state == SessionState.READY
    assert launcher.calls == 1
    assert page is launcher.apps[0].pages[0]
    assert page.load_states == ["domcontentloaded"]


@pytest.mark.asyncio
async def test_concurrent_callers_share_one_launch():
    session, launcher = make_session(delay=0.02)

    await asyncio.gather(*(session.ensure_ready() for _ in range(5)))

    assert launcher.calls == 1
    assert session.state == SessionState.READY


@pytest.mark.asyncio
async def test_launch_failure_is_shared_then_retried():
    session, launcher = make_session(delay=0.01, error=LaunchError("spawn failed"))

    results = await asyncio.gather(
        session.ensure_ready(), session.ensure_ready(), return_exceptions=True
    )

    assert launcher.calls == 1
    assert all(isinstance(result, LaunchError) for result in results)
    assert session.state == SessionState.ERROR
    assert session._launch_task is None

    launcher.error = None
    await session.ensure_ready()

    assert launcher.calls == 2
    assert session.state == SessionState.READY


@pytest.mark.asyncio
async def test_unexpected_launch_exception_becomes_launch_error():
    session, _ = make_session(error=RuntimeError("renderer exploded"))

    with pytest.raises(LaunchError) as excinfo:
        await session.ensure_ready()

    assert "renderer exploded" in excinfo.value.message
    assert session.state == SessionState.ERROR


@pytest.mark.asyncio
async def test_app_without_window_fails_launch_and_disposes_app():
    session, launcher = make_session(app_factory=lambda: FakeApp(pages=[]))

    with pytest.raises(LaunchError):
        await session.ensure_ready()

    assert launcher.apps[0].close_calls == [True]
    assert session.app is None


@pytest.mark.asyncio
async def test_crash_marks_closed_and_next_call_relaunches_clean():
    session, launcher = make_session(app_factory=lambda: FakeApp(pages=[FakePage(tree=WELCOME_TREE)]))
    page = await session.get_active_window()
    await session.snapshots.capture(page)
    page.emit("console", FakeConsoleMessage("log", "before crash"))
    page.emit("request", FakeRequest("https://api.test/ping"))
    page.emit("dialog", FakeDialog(message="Unsaved changes"))

    launcher.apps[0].crash()

    assert session.state == SessionState.CLOSED
    assert session.app is None
    with pytest.raises(RefNotFoundError):
        session.refs.resolve("e0")

    new_page = await session.get_active_window()

    assert launcher.calls == 2
    assert new_page is launcher.apps[1].pages[0]
    assert session.console_messages() == []
    assert session.network_requests() == []
    assert session.pending_dialogs() == []
    assert session.dialogs.has_live() is False
    assert session.snapshots.bounding_boxes == {}
    assert session.refs.current_generation_id is None
    assert session.state == SessionState.READY


@pytest.mark.asyncio
async def test_crashed_app_is_disposed_before_relaunch():
    session, launcher = make_session()
    await session.ensure_ready()

    launcher.apps[0].crash()
    assert launcher.apps[0].close_calls == []

    await session.ensure_ready()

    assert launcher.apps[0].close_calls == [True]
    assert launcher.apps[1].close_calls == []
    assert session.app is launcher.apps[1]


@pytest.mark.asyncio
async def test_failed_liveness_check_relaunches():
    session, launcher = make_session()
    await session.ensure_ready()

    launcher.apps[0].alive = False
    await session.ensure_ready()

    assert launcher.calls == 2
    assert session.app is launcher.apps[1]
    assert launcher.apps[0].close_calls == [True]


class WindowlessUntilClosedApp(FakeApp):
    """App whose first window never shows up."""

    async def first_window(self, timeout_ms):
        await asyncio.sleep(60)


@pytest.mark.asyncio
async def test_close_during_launch_fails_every_waiter_and_disposes_app():
    session, launcher = make_session(app_factory=WindowlessUntilClosedApp)
    waiters = [asyncio.create_task(session.ensure_ready()) for _ in range(3)]
    while not launcher.apps:
        await asyncio.sleep(0)
    await asyncio.sleep(0)
    assert session.state == SessionState.LAUNCHING

    await session.close()

    results = await asyncio.gather(*waiters, return_exceptions=True)
    assert all(isinstance(result, LaunchError) for result in results)
    assert "cancelled" in results[0].message
    assert launcher.apps[0].close_calls == [True]
    assert session.state == SessionState.IDLE
    assert session.app is None


@pytest.mark.asyncio
async def test_close_after_crash_disposes_the_dead_app():
    session, launcher = make_session()
    await session.ensure_ready()
    launcher.apps[0].crash()

    await session.close(force=True)

    assert launcher.apps[0].close_calls == [True]
    assert session.state == SessionState.IDLE


@pytest.mark.asyncio
async def test_close_event_from_a_previous_app_is_ignored():
    session, launcher = make_session()
    await session.ensure_ready()
    launcher.apps[0].alive = False
    await session.ensure_ready()

    launcher.apps[0].crash()

    assert session.state == SessionState.READY


@pytest.mark.asyncio
async def test_new_windows_feed_the_event_buffers():
    session, launcher = make_session()
    await session.ensure_ready()

    popup = launcher.apps[0].open_window(FakePage(title="Popup"))
    popup.emit("console", FakeConsoleMessage("error", "popup failed"))
    # Wiring twice must not duplicate events.
    session._wire_window(popup)
    popup.emit("console", FakeConsoleMessage("log", "second"))

    messages = session.console_messages()
    assert [(m.type, m.text) for m in messages] == [("error", "popup failed"), ("log", "second")]


@pytest.mark.asyncio
async def test_active_window_falls_back_to_first_open_window():
    main, second = FakePage(title="Main"), FakePage(title="Second")
    session, _ = make_session(app_factory=lambda: FakeApp(pages=[main, second]))
    assert await session.get_active_window() is main

    main.close()

    assert await session.get_active_window() is second

    second.close()
    with pytest.raises(NoWindowError):
        await session.get_active_window()


@pytest.mark.asyncio
async def test_select_window_by_index_and_title():
    pages = [FakePage(title="Main"), FakePage(title="Settings Window"), FakePage(title="Settings")]
    session, _ = make_session(app_factory=lambda: FakeApp(pages=pages))

    assert await session.select_window(index=1) is pages[1]
    assert await session.select_window(title="Settings") is pages[2]
    assert await session.select_window(title="Main") is pages[0]
    assert await session.get_active_window() is pages[0]

    windows = await session.list_windows()
    assert [(w.index, w.title, w.is_active) for w in windows] == [
        (0, "Main", True),
        (1, "Settings Window", False),
        (2, "Settings", False),
    ]


@pytest.mark.asyncio
async def test_select_window_errors():
    session, _ = make_session()

    with pytest.raises(WindowSelectionError):
        await session.select_window(index=3)
    with pytest.raises(WindowSelectionError):
        await session.select_window(title="Nope")
    with pytest.raises(WindowSelectionError):
        await session.select_window()


@pytest.mark.asyncio
async def test_network_responses_annotate_matching_requests():
    session, launcher = make_session()
    page = await session.get_active_window()

    page.emit("request", FakeRequest("https://api.test/users"))
    page.emit("request", FakeRequest("https://api.test/items", method="POST"))
    page.emit("request", FakeRequest("https://api.test/users"))
    page.emit("response", FakeResponse("https://api.test/users", 200))

    entries = session.network_requests()
    assert [(e.url, e.method, e.status) for e in entries] == [
        ("https://api.test/users", "GET", 200),
        ("https://api.test/items", "POST", None),
        ("https://api.test/users", "GET", None),
    ]
    assert [e.url for e in session.network_requests(url_pattern="items")] == ["https://api.test/items"]


@pytest.mark.asyncio
async def test_buffers_keep_the_most_recent_hundred():
    session, _ = make_session()
    page = await session.get_active_window()

    for i in range(150):
        page.emit("console", FakeConsoleMessage("log", f"msg {i}"))

    assert len(session.console) == 100
    assert session.console_messages(limit=200)[0].text == "msg 50"
    assert [m.text for m in session.console_messages(limit=2)] == ["msg 148", "msg 149"]


@pytest.mark.asyncio
async def test_console_filter_applies_before_limit():
    session, _ = make_session()
    page = await session.get_active_window()
    for i in range(5):
        page.emit("console", FakeConsoleMessage("error", f"err {i}"))
        page.emit("console", FakeConsoleMessage("log", f"log {i}"))

    errors = session.console_messages(limit=3, type_="error")

    assert [m.text for m in errors] == ["err 2", "err 3", "err 4"]


@pytest.mark.asyncio
async def test_dialog_opened_earlier_is_returned_immediately():
    session, _ = make_session()
    page = await session.get_active_window()
    dialog = FakeDialog(type="confirm", message="Delete?")

    page.emit("dialog", dialog)

    assert [d.to_dict()["message"] for d in session.pending_dialogs()] == ["Delete?"]
    assert await session.next_dialog(100) is dialog
    assert session.dialogs.has_live() is False


@pytest.mark.asyncio
async def test_dialog_waiter_receives_dialog_opened_later():
    session, _ = make_session()
    page = await session.get_active_window()
    dialog = FakeDialog(type="prompt", message="Name?", default_value="anon")

    waiter = asyncio.create_task(session.next_dialog(1000))
    await asyncio.sleep(0)
    page.emit("dialog", dialog)

    assert await waiter is dialog


@pytest.mark.asyncio
async def test_dialog_timeout_reports_pending_history():
    session, _ = make_session()
    await session.ensure_ready()

    with pytest.raises(DialogNotCapturedError) as excinfo:
        await session.next_dialog(10)

    assert excinfo.value.timeout_ms == 10
    assert excinfo.value.pending == []


@pytest.mark.asyncio
async def test_close_resets_to_idle_even_when_quit_fails():
    session, launcher = make_session()
    await session.ensure_ready()
    launcher.apps[0].close_error = RuntimeError("already gone")

    await session.close()

    assert session.state == SessionState.IDLE
    assert session.app is None


@pytest.mark.asyncio
async def test_close_passes_force_and_allows_relaunch():
    session, launcher = make_session()
    await session.ensure_ready()

    await session.close(force=True)
    await session.ensure_ready()

    assert launcher.apps[0].close_calls == [True]
    assert launcher.calls == 2
    assert session.status()["launch_count"] == 2


@pytest.mark.asyncio
async def test_close_before_launch_is_a_no_op():
    session, launcher = make_session()

    await session.close()

    assert launcher.calls == 0
    assert session.state == SessionState.IDLE
