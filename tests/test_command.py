import logging

import pytest
from click.testing import CliRunner

from electron_ui_mcp.command import electron_ui_mcp as command
from electron_ui_mcp.common.logger import log_event

CONFIG_ENV_VARS = (
    "ELECTRON_APP_PATH",
    "ELECTRON_PATH",
    "ELECTRON_CWD",
    "ELECTRON_USER_DATA_DIR",
    "ELECTRON_RENDERER_URL",
    "E2E",
    "ELECTRON_LAUNCH_TIMEOUT",
    "ELECTRON_MODE",
)


@pytest.fixture
def served(monkeypatch, tmp_path):
    for name in CONFIG_ENV_VARS:
        monkeypatch.delenv(name, raising=False)
    monkeypatch.chdir(tmp_path)
    monkeypatch.setattr(
        command,
        "setup_command_logger",
        lambda **kwargs: logging.getLogger("electron_ui_mcp.test"),
    )
    configs = []

    async def fake_run_server(config):
        configs.append(config)

    monkeypatch.setattr(command, "run_server", fake_run_server)
    return configs


def test_cli_builds_config_and_starts_server(served):
    result = CliRunner().invoke(
        command.run,
        ["--dev", "out/main.js", "--isolated", "--timeout", "5000", "--", "--no-sandbox"],
    )

    assert result.exit_code == 0, result.output
    config = served[0]
    assert config.mode == "dev"
    assert config.app_path == "out/main.js"
    assert config.isolated is True
    assert config.timeout == 5000
    assert config.electron_args == ["--no-sandbox"]


def test_cli_rejects_dev_and_packaged_together(served):
    result = CliRunner().invoke(command.run, ["--dev", "main.js", "--packaged", "/apps/Demo"])

    assert result.exit_code == 2
    assert "mutually exclusive" in result.output
    assert served == []


def test_log_event_renders_key_values(caplog):
    logger = logging.getLogger("electron_ui_mcp.test.events")

    with caplog.at_level(logging.INFO, logger="electron_ui_mcp.test.events"):
        log_event(logger, level=logging.INFO, event="launch_start", mode="dev", isolated=True, pid=None)

    assert caplog.records[-1].getMessage() == "electron event=launch_start mode=dev isolated=true"
