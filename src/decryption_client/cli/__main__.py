"""Entry point for ``python -m decryption_client.cli``."""

from decryption_client.cli import app

app()
