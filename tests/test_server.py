import json

from mcp import types

from electron_ui_mcp.server.mcp_server import ToolCallFailed, result_to_content, tool_definitions
from electron_ui_mcp.tool import get_registry


def test_tool_definitions_carry_schema_and_hints():
    tools = {tool.name: tool for tool in tool_definitions(get_registry())}

    assert len(tools) == 22
    snapshot = tools["browser_snapshot"]
    assert snapshot.annotations.readOnlyHint is True
    assert snapshot.annotations.destructiveHint is False
    assert tools["electron_evaluate_main"].annotations.destructiveHint is True
    assert tools["browser_navigate"].inputSchema["required"] == ["url"]


def test_screenshot_result_becomes_image_content():
    result = {
        "success": True,
        "error": None,
        "data": "iVBORw0KGgo=",
        "mime_type": "image/png",
        "annotated": False,
        "snapshot_taken": False,
    }

    content = result_to_content(result)

    assert isinstance(content[0], types.ImageContent)
    assert content[0].data == "iVBORw0KGgo="
    assert content[0].mimeType == "image/png"
    meta = json.loads(content[1].text)
    assert "data" not in meta
    assert meta["annotated"] is False


def test_other_results_are_json_text():
    content = result_to_content({"success": True, "error": None, "ref": "e1"})

    assert len(content) == 1
    assert isinstance(content[0], types.TextContent)
    assert json.loads(content[0].text) == {"success": True, "error": None, "ref": "e1"}


def test_failed_call_carries_the_envelope():
    envelope = {
        "success": False,
        "error": "Ref e9 not found",
        "error_code": "ref_not_found",
        "suggestion": "Take a new snapshot.",
    }

    failure = ToolCallFailed(envelope)

    assert failure.envelope is envelope
    assert json.loads(str(failure))["error_code"] == "ref_not_found"
