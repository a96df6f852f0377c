"""
Helpers shared by the electron-ui-mcp commands: log locations and logger setup.
"""

import logging
from pathlib import Path

from electron_ui_mcp.common.logger import setup_logging


def get_log_dir():
    """
    Determines a suitable path for the log file.
    Logs are stored in the user's home directory under '.electron-ui-mcp/logs/'.
    """
    log_dir = Path.home() / '.electron-ui-mcp' / 'logs'  # Log saved to `~/.electron-ui-mcp/logs/`
    log_dir.mkdir(parents=True, exist_ok=True)
    return log_dir


def setup_command_logger(log_filename, verbose=False, logging_config=None):
    """
    Configure logging for a command and return its logger.

    Falls back to stderr-only logging when the log directory is not writable.
    """
    try:
        log_file = get_log_dir() / log_filename
    except OSError:
        log_file = None
    setup_logging(config_file_path=logging_config, log_file_path=log_file, verbose=verbose)
    return logging.getLogger("electron_ui_mcp")
