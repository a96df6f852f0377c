# logger.py
import logging
import logging.config
from pathlib import Path
from typing import Any, Dict, Mapping, Optional

import yaml


def default_logging_config(log_file_path: Optional[Path] = None) -> Dict[str, Any]:
    """
    Logging config used when no file is supplied.

    Records go to stderr and, optionally, to a file. Stdout belongs to
    the MCP stdio transport and must never receive log output.
    """
    handlers: Dict[str, Any] = {
        "stderr_handler": {
            "class": "logging.StreamHandler",
            "formatter": "standard",
            "level": "INFO",
            "stream": "ext://sys.stderr",
        },
    }
    if log_file_path is not None:
        handlers["file_handler"] = {
            "class": "logging.FileHandler",
            "formatter": "standard",
            "level": "DEBUG",
            "filename": str(log_file_path),
            "encoding": "utf-8",
        }
    return {
        "version": 1,
        "disable_existing_loggers": False,
        "formatters": {
            "standard": {
                "format": "%(asctime)s - %(name)s - %(levelname)s - %(message)s",
            },
        },
        "handlers": handlers,
        "root": {"level": "INFO", "handlers": list(handlers)},
    }


def setup_logging(
    config_file_path=None,
    log_file_path=None,
    verbose=False,
):
    """
    Loads logging config from 'config_file_path' (YAML or JSON) and sets up logging.
    Optionally override file handler's filename, and set root logger to DEBUG if 'verbose'.
    """
    if config_file_path:
        with open(config_file_path, "r", encoding="utf-8") as f:
            config = yaml.safe_load(f)  # YAML is a superset of JSON
    else:
        config = default_logging_config(log_file_path)

    # If user passed a custom file path for logs, override the "filename" in the config
    if log_file_path and "file_handler" in config.get("handlers", {}):
        config["handlers"]["file_handler"]["filename"] = str(log_file_path)

    logging.config.dictConfig(config)

    if verbose:
        logging.getLogger().setLevel(logging.DEBUG)
        for handler in logging.getLogger().handlers:
            handler.setLevel(logging.DEBUG)

    return logging.getLogger(__name__)


def _normalize_log_value(value: Any) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


def _render_log_kv(fields: Mapping[str, Any]) -> str:
    parts: list[str] = []
    for key, value in fields.items():
        if value is None:
            continue
        clean_key = str(key).strip()
        if not clean_key:
            continue
        parts.append(f"{clean_key}={_normalize_log_value(value)}")
    return " ".join(parts)


def log_event(
    logger: logging.Logger,
    *,
    level: int,
    event: str,
    **fields: Any,
) -> None:
    """Emit a one-line ``electron event=... key=value`` record."""
    payload = {"event": event}
    payload.update(fields)
    logger.log(level, "electron %s", _render_log_kv(payload))
