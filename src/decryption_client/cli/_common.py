"""Shared utilities for CLI commands."""

import logging
from pathlib import Path
from typing import Optional

import typer
from pydantic import ValidationError
from rich.logging import RichHandler

from decryption_client.cli._console import console, print_err
from decryption_client.config import ClientConfig
from decryption_client.startup import ensure_initialized as _ensure_initialized

logger = logging.getLogger(__name__)


def ensure_initialized() -> None:
    """Load the project environment."""
    _ensure_initialized()


def setup_logging(*, verbose: bool = False, quiet: bool = False) -> None:
    """Configure logging with Rich handler."""
    if verbose:
        level = logging.DEBUG
    elif quiet:
        level = logging.WARNING
    else:
        level = logging.INFO

    handler = RichHandler(
        console=console,
        show_time=True,
        show_path=False,
        markup=False,
        rich_tracebacks=True,
    )

    root = logging.getLogger()
    root.handlers.clear()
    root.addHandler(handler)
    root.setLevel(level)


def load_config(ctx: typer.Context) -> ClientConfig:
    """Build the client config from ``--config`` or the environment.

    Raises:
        SystemExit: If the config file is missing or invalid.
    """
    config_path: Optional[str] = ctx.obj.get("config_path")
    try:
        if config_path:
            return ClientConfig.from_yaml(Path(config_path))
        return ClientConfig.from_env()
    except FileNotFoundError:
        print_err(f"Config file not found: {config_path}")
        raise SystemExit(1)
    except (ValidationError, ValueError) as e:
        print_err(f"Invalid client config: {e}")
        raise SystemExit(1)


def read_bytes(path: str, what: str) -> bytes:
    """Read a file for a command, exiting with a message if it is missing."""
    file_path = Path(path)
    if not file_path.exists():
        print_err(f"{what} not found: {file_path}")
        raise SystemExit(1)
    return file_path.read_bytes()
