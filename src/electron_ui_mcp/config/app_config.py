"""
Launch configuration.

Sources are merged with increasing precedence:
defaults < config file < environment < command line.
"""

from __future__ import annotations

import json
import logging
import os
import re
import shutil
import sys
from pathlib import Path
from typing import Any, Dict, List, Literal, Mapping, Optional

import yaml
from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

logger = logging.getLogger(__name__)

DEFAULT_LAUNCH_TIMEOUT_MS = 60_000

CONFIG_FILE_NAMES = (
    "electron-ui-mcp.json",
    ".electron-ui-mcp.json",
    "electron-ui-mcp.yaml",
    ".electron-ui-mcp.yaml",
    "electron-ui-mcp.yml",
    ".electron-ui-mcp.yml",
)

DEV_ENTRY_CANDIDATES = (
    ".vite/build/main.js",
    "dist/main.js",
    "out/main/index.js",
    "build/main.js",
)

RENDERER_URL_ENV_VARS = (
    "MAIN_WINDOW_VITE_DEV_SERVER_URL",
    "ELECTRON_RENDERER_URL",
    "VITE_DEV_SERVER_URL",
)


class ElectronUIConfig(BaseModel):
    """How to find and launch the Electron app under automation."""

    model_config = ConfigDict(
        extra="forbid",
        alias_generator=to_camel,
        populate_by_name=True,
    )

    mode: Literal["dev", "packaged"] = Field("dev", description="dev runs main.js with Electron; packaged runs the built app.")
    app_path: Optional[str] = Field(None, description="Electron entry script (dev) or packaged executable.")
    electron_path: Optional[str] = Field(None, description="Electron binary used in dev mode.")
    cwd: Optional[str] = Field(None, description="Working directory for the app.")
    user_data_dir: Optional[str] = Field(None, description="userData directory passed to the app.")
    isolated: bool = Field(False, description="Create a throwaway userData directory per launch.")
    renderer_url: Optional[str] = Field(None, description="Dev server URL for the renderer.")
    e2e: bool = Field(False, description="Export E2E=1 to the app.")
    timeout: int = Field(DEFAULT_LAUNCH_TIMEOUT_MS, ge=1, description="Launch timeout in milliseconds.")
    electron_args: List[str] = Field(default_factory=list, description="Extra arguments for Electron.")
    env: Dict[str, str] = Field(default_factory=dict, description="Extra environment variables.")

    @field_validator("env", mode="before")
    @classmethod
    def _stringify_env(cls, value: Any) -> Any:
        if isinstance(value, Mapping):
            return {str(k): str(v) for k, v in value.items()}
        return value

    @property
    def base_dir(self) -> Path:
        return Path(self.cwd).expanduser() if self.cwd else Path.cwd()


def _parse_bool_env(name: str) -> Optional[bool]:
    raw = os.environ.get(name)
    if raw is None:
        return None
    return raw.strip().lower() in {"1", "true", "yes", "on"}


def _parse_int_env(name: str) -> Optional[int]:
    raw = os.environ.get(name)
    if raw is None or not raw.strip():
        return None
    try:
        return int(raw.strip())
    except ValueError:
        logger.warning("Ignoring non-integer %s=%r", name, raw)
        return None


_CAMEL_BOUNDARY = re.compile(r"(?<!^)(?=[A-Z])")


def _snake_keys(data: Mapping[str, Any]) -> Dict[str, Any]:
    return {_CAMEL_BOUNDARY.sub("_", str(key)).lower(): value for key, value in data.items()}


def load_config_file(config_path: Optional[str] = None, search_dir: Optional[Path] = None) -> Dict[str, Any]:
    """Read the first config file found. JSON and YAML are both accepted."""
    if config_path:
        candidates = [Path(config_path).expanduser()]
    else:
        base = search_dir or Path.cwd()
        candidates = [base / name for name in CONFIG_FILE_NAMES]

    for path in candidates:
        if not path.is_file():
            continue
        with open(path, "r", encoding="utf-8") as f:
            if path.suffix == ".json":
                data = json.load(f)
            else:
                data = yaml.safe_load(f)
        if data is None:
            return {}
        if not isinstance(data, dict):
            raise ValueError(f"Config file {path} must contain a mapping, got {type(data).__name__}")
        logger.info("Loaded config file %s", path)
        return _snake_keys(data)

    if config_path:
        raise FileNotFoundError(f"Config file not found: {config_path}")
    return {}


def load_env_config() -> Dict[str, Any]:
    config: Dict[str, Any] = {}
    for env_name, key in (
        ("ELECTRON_APP_PATH", "app_path"),
        ("ELECTRON_PATH", "electron_path"),
        ("ELECTRON_CWD", "cwd"),
        ("ELECTRON_USER_DATA_DIR", "user_data_dir"),
        ("ELECTRON_RENDERER_URL", "renderer_url"),
    ):
        value = os.environ.get(env_name)
        if value:
            config[key] = value

    if _parse_bool_env("E2E"):
        config["e2e"] = True

    timeout = _parse_int_env("ELECTRON_LAUNCH_TIMEOUT")
    if timeout is not None:
        config["timeout"] = timeout

    mode = os.environ.get("ELECTRON_MODE")
    if mode in ("dev", "packaged"):
        config["mode"] = mode
    return config


def cli_to_config(
    *,
    dev: Optional[str] = None,
    packaged: Optional[str] = None,
    cwd: Optional[str] = None,
    user_data_dir: Optional[str] = None,
    isolated: bool = False,
    dev_server: Optional[str] = None,
    e2e: bool = False,
    timeout: Optional[int] = None,
    electron_path: Optional[str] = None,
    electron_args: Optional[List[str]] = None,
) -> Dict[str, Any]:
    config: Dict[str, Any] = {}
    if dev:
        config["mode"] = "dev"
        config["app_path"] = dev
    elif packaged:
        config["mode"] = "packaged"
        config["app_path"] = packaged
    if cwd:
        config["cwd"] = cwd
    if user_data_dir:
        config["user_data_dir"] = user_data_dir
    if isolated:
        config["isolated"] = True
    if dev_server:
        config["renderer_url"] = dev_server
    if e2e:
        config["e2e"] = True
    if timeout is not None:
        config["timeout"] = timeout
    if electron_path:
        config["electron_path"] = electron_path
    if electron_args:
        config["electron_args"] = list(electron_args)
    return config


def resolve_config(
    cli_options: Optional[Mapping[str, Any]] = None,
    config_path: Optional[str] = None,
) -> ElectronUIConfig:
    """Merge defaults, the config file, environment and CLI options."""
    cli = cli_to_config(**dict(cli_options or {}))
    search_dir = Path(cli["cwd"]).expanduser() if cli.get("cwd") else None
    merged: Dict[str, Any] = {}
    merged.update(load_config_file(config_path, search_dir=search_dir))
    merged.update(load_env_config())
    merged.update(cli)
    return ElectronUIConfig.model_validate(merged)


def resolve_app_path(config: ElectronUIConfig) -> Path:
    """
    Locate the app to launch.

    Relative paths resolve against ``config.cwd``. In dev mode without an
    explicit path, well-known build outputs are probed in order.
    """
    base = config.base_dir
    if config.app_path:
        path = Path(config.app_path).expanduser()
        if not path.is_absolute():
            path = base / path
        path = path.resolve()
        if not path.exists():
            raise FileNotFoundError(f"Electron app not found at: {path}")
        return path

    if config.mode == "dev":
        for candidate in DEV_ENTRY_CANDIDATES:
            path = base / candidate
            if path.exists():
                return path.resolve()
        raise FileNotFoundError(
            "Could not find Electron main entry. Tried: "
            + ", ".join(DEV_ENTRY_CANDIDATES)
            + ". Use --dev <path> to specify the entry point."
        )

    raise FileNotFoundError(
        "No app path specified. Use --dev <main.js> for dev mode "
        "or --packaged <app-path> for packaged apps."
    )


def resolve_electron_binary(config: ElectronUIConfig, app_path: Path) -> Path:
    """Executable to spawn: the packaged app itself, or the Electron binary in dev mode."""
    if config.mode == "packaged":
        return app_path

    if config.electron_path:
        path = Path(config.electron_path).expanduser()
        if not path.is_absolute():
            path = config.base_dir / path
        if not path.exists():
            raise FileNotFoundError(f"Electron binary not found at: {path}")
        return path

    bin_name = "electron.cmd" if sys.platform.startswith("win") else "electron"
    search_roots = [config.base_dir, *app_path.parents]
    for root in search_roots:
        candidate = root / "node_modules" / ".bin" / bin_name
        if candidate.exists():
            return candidate

    found = shutil.which("electron")
    if found:
        return Path(found)
    raise FileNotFoundError(
        "Could not find the Electron binary. Install electron in the project "
        "or set ELECTRON_PATH."
    )


def build_launch_env(
    config: ElectronUIConfig,
    user_data_dir: Optional[str] = None,
    base_env: Optional[Mapping[str, str]] = None,
) -> Dict[str, str]:
    env = dict(os.environ if base_env is None else base_env)
    env.update(config.env)
    if config.e2e:
        env["E2E"] = "1"
    data_dir = config.user_data_dir or user_data_dir
    if data_dir:
        env["E2E_USER_DATA_DIR"] = data_dir
        env["ELECTRON_USER_DATA_DIR"] = data_dir
    if config.renderer_url:
        for name in RENDERER_URL_ENV_VARS:
            env[name] = config.renderer_url
    return env
