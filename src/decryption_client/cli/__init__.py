"""CLI package — Typer-based command-line interface.

Usage:
    python -m decryption_client.cli --help
    python -m decryption_client.cli reconcile --help
"""

from decryption_client.cli._app import app

# Register command modules (side-effect imports)
import decryption_client.cli.cmd_keys  # noqa: F401
import decryption_client.cli.cmd_verify  # noqa: F401
import decryption_client.cli.cmd_reconcile  # noqa: F401
import decryption_client.cli.cmd_encrypt  # noqa: F401

__all__ = ["app"]
