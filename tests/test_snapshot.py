import pytest

from electron_fakes import WELCOME_TREE, FakePage, raw_node
from electron_ui_mcp.session.errors import RefNotFoundError
from electron_ui_mcp.session.refs import RefTable
from electron_ui_mcp.session.snapshot import SnapshotBuilder, SnapshotNode, render_text
from electron_ui_mcp.session.snapshot_script import (
    ANNOTATION_CONTAINER_ID,
    _ADD_ANNOTATIONS_JS,
    _REMOVE_ANNOTATIONS_JS,
    _SNAPSHOT_JS,
    _STAMP_REFS_JS,
)


def scripts(page):
    return [script for script, _ in page.evaluations]


@pytest.mark.asyncio
async def test_heading_and_button_snapshot():
    page = FakePage(title="Login", url="app://login", tree=WELCOME_TREE)
    builder = SnapshotBuilder(RefTable())

    result = await builder.capture(page)

    assert result.text == '- [e0] heading "Welcome" [level 1]\n- [e1] button "Sign In"'
    assert result.title == "Login"
    assert result.url == "app://login"
    assert [(n.ref, n.role, n.name, n.level) for n in result.tree] == [
        ("e0", "heading", "Welcome", 1),
        ("e1", "button", "Sign In", None),
    ]
    assert builder.refs.resolve("e1", result.snapshot_id).name == "Sign In"


@pytest.mark.asyncio
async def test_capture_stamps_refs_on_the_page():
    page = FakePage(tree=WELCOME_TREE)
    builder = SnapshotBuilder(RefTable())

    await builder.capture(page)

    assert scripts(page) == [_SNAPSHOT_JS, _STAMP_REFS_JS]
    _, stamp_arg = page.evaluations[1]
    assert stamp_arg == {"attribute": "data-electron-ref", "assignments": [(0, "e0"), (1, "e1")]}


@pytest.mark.asyncio
async def test_new_capture_invalidates_previous_refs():
    page = FakePage(tree=WELCOME_TREE)
    builder = SnapshotBuilder(RefTable())
    first = await builder.capture(page)

    page.tree = [raw_node("link", "Docs", 0)]
    second = await builder.capture(page)

    assert first.snapshot_id != second.snapshot_id
    assert builder.refs.resolve("e0").name == "Docs"
    with pytest.raises(RefNotFoundError):
        builder.refs.resolve("e1")


def test_nameless_containers_promote_their_children():
    builder = SnapshotBuilder(RefTable())
    builder.refs.start_new_generation()
    raw = [
        {
            "role": "",
            "name": "",
            "index": None,
            "children": [
                raw_node("button", "Save", 0),
                raw_node("button", "Cancel", 1),
            ],
        },
        raw_node("navigation", "", 2, children=[raw_node("link", "Home", 3)]),
    ]

    tree = builder.process_nodes(raw)

    assert render_text(tree) == (
        '- [e0] button "Save"\n'
        '- [e1] button "Cancel"\n'
        "- [e2] navigation\n"
        '  - [e3] link "Home"'
    )


def test_name_without_role_renders_as_generic():
    builder = SnapshotBuilder(RefTable())
    builder.refs.start_new_generation()

    tree = builder.process_nodes([raw_node("", "Status: ok", 0, test_id="status")])

    assert tree[0].role == "generic"
    assert builder.refs.resolve("e0").test_id == "status"


def test_bounding_boxes_are_keyed_by_ref_and_zero_area_is_omitted():
    builder = SnapshotBuilder(RefTable())
    builder.refs.start_new_generation()

    tree = builder.process_nodes([
        raw_node("button", "Shown", 0, bounds={"x": 1.4, "y": 2.6, "width": 30.2, "height": 10}),
        raw_node("button", "Collapsed", 1, bounds={"x": 5, "y": 5, "width": 0, "height": 0}),
    ])

    boxes = builder.bounding_boxes
    assert set(boxes) == {"e0"}
    assert boxes["e0"].to_dict() == {"x": 1, "y": 3, "width": 30, "height": 10}
    assert tree[1].bounds is None
    assert tree[1].ref == "e1"


def test_render_text_nests_with_two_space_indent():
    tree = [
        SnapshotNode(
            ref="e0",
            role="list",
            name="",
            children=[SnapshotNode(ref="e1", role="listitem", name="One")],
        ),
        SnapshotNode(ref="e2", role="heading", name="Title", level=2),
    ]

    assert render_text(tree) == '- [e0] list\n  - [e1] listitem "One"\n- [e2] heading "Title" [level 2]'


@pytest.mark.asyncio
async def test_annotated_screenshot_adds_and_removes_overlay():
    page = FakePage(tree=WELCOME_TREE)
    builder = SnapshotBuilder(RefTable())
    await builder.capture(page)
    page.evaluations.clear()

    shot = await builder.screenshot(page, annotate=True)

    assert shot.annotated is True
    assert shot.snapshot_taken is False
    assert scripts(page) == [_ADD_ANNOTATIONS_JS, _REMOVE_ANNOTATIONS_JS]
    add_arg = page.evaluations[0][1]
    assert add_arg["containerId"] == ANNOTATION_CONTAINER_ID
    assert [ref for ref, _ in add_arg["annotations"]] == ["e0", "e1"]
    assert page.evaluations[1][1] == ANNOTATION_CONTAINER_ID


@pytest.mark.asyncio
async def test_overlay_is_removed_when_screenshot_fails():
    page = FakePage(tree=WELCOME_TREE)
    page.screenshot_error = RuntimeError("capture failed")
    builder = SnapshotBuilder(RefTable())
    await builder.capture(page)

    with pytest.raises(RuntimeError):
        await builder.screenshot(page, annotate=True)

    assert scripts(page)[-1] == _REMOVE_ANNOTATIONS_JS


@pytest.mark.asyncio
async def test_annotation_without_snapshot_captures_one_first():
    page = FakePage(tree=WELCOME_TREE)
    builder = SnapshotBuilder(RefTable())

    shot = await builder.screenshot(page, annotate=True)

    assert shot.snapshot_taken is True
    assert shot.snapshot_id == builder.refs.current_generation_id
    assert scripts(page) == [_SNAPSHOT_JS, _STAMP_REFS_JS, _ADD_ANNOTATIONS_JS, _REMOVE_ANNOTATIONS_JS]


@pytest.mark.asyncio
async def test_plain_screenshot_options():
    page = FakePage()
    builder = SnapshotBuilder(RefTable())

    png = await builder.screenshot(page, full_page=True)
    jpeg = await builder.screenshot(page, image_type="jpeg")

    assert png.data == b"\x89PNG-fake"
    assert page.screenshot_calls == [
        {"full_page": True, "type": "png"},
        {"full_page": False, "type": "jpeg", "quality": 80},
    ]
    assert jpeg.image_type == "jpeg"
    assert page.evaluations == []


def test_clear_drops_refs_and_boxes():
    builder = SnapshotBuilder(RefTable())
    builder.refs.start_new_generation()
    builder.process_nodes(WELCOME_TREE)

    builder.clear()

    assert builder.bounding_boxes == {}
    assert not builder.refs.has_generation()
