# electron_ui_mcp/command/electron_ui_mcp.py

import asyncio
import sys

import click
from dotenv import load_dotenv
from pydantic import ValidationError

from electron_ui_mcp.command.command_utils import setup_command_logger
from electron_ui_mcp.config import resolve_config
from electron_ui_mcp.server import run_server


@click.command(name="electron-ui-mcp")
@click.option('--dev', 'dev', default=None, metavar='MAIN_JS',
              help='Dev mode: path to the Electron main entry (e.g. .vite/build/main.js).')
@click.option('--packaged', 'packaged', default=None, metavar='APP',
              help='Packaged mode: path to the built app executable.')
@click.option('--cwd', default=None, type=click.Path(file_okay=False),
              help='Working directory for the app.')
@click.option('--user-data-dir', default=None, type=click.Path(file_okay=False),
              help='userData directory passed to the app.')
@click.option('--isolated', is_flag=True, help='Use a throwaway userData directory per launch.')
@click.option('--dev-server', default=None, metavar='URL',
              help='Renderer dev server URL (e.g. http://localhost:5173).')
@click.option('--e2e', is_flag=True, help='Export E2E=1 to the app.')
@click.option('--timeout', default=None, type=click.IntRange(min=1),
              help='Launch timeout in milliseconds.  [default: 60000]')
@click.option('--electron', 'electron_path', default=None, type=click.Path(dir_okay=False),
              help='Electron binary to use in dev mode.')
@click.option('--config', '-c', default=None, type=click.Path(exists=True, dir_okay=False),
              help='Path to a configuration file (JSON or YAML).')
@click.option('--logging-config', default=None, type=click.Path(exists=True, dir_okay=False),
              help='Logging dictConfig file (YAML or JSON).')
@click.option('--verbose', '-v', is_flag=True, help='Enable verbose logging.')
@click.argument('electron_args', nargs=-1, type=click.UNPROCESSED)
def run(dev, packaged, cwd, user_data_dir, isolated, dev_server, e2e, timeout,
        electron_path, config, logging_config, verbose, electron_args):
    """
    Starts the Electron UI MCP server on stdio.

    Extra arguments after `--` are passed to Electron.
    """
    load_dotenv()
    logger = setup_command_logger(
        log_filename="electron-ui-mcp.log",
        verbose=verbose,
        logging_config=logging_config,
    )

    if dev and packaged:
        raise click.UsageError("--dev and --packaged are mutually exclusive.")

    try:
        app_config = resolve_config(
            dict(
                dev=dev,
                packaged=packaged,
                cwd=cwd,
                user_data_dir=user_data_dir,
                isolated=isolated,
                dev_server=dev_server,
                e2e=e2e,
                timeout=timeout,
                electron_path=electron_path,
                electron_args=list(electron_args),
            ),
            config_path=config,
        )
    except (ValidationError, ValueError, FileNotFoundError) as e:
        logger.error(f"Invalid configuration: {e}")
        click.echo(f"Error: invalid configuration: {e}", err=True)
        sys.exit(1)

    logger.info(f"Resolved configuration: {app_config.model_dump(exclude={'env'})}")
    try:
        asyncio.run(run_server(app_config))
    except KeyboardInterrupt:
        logger.info("Interrupted.")


if __name__ == "__main__":
    run()
