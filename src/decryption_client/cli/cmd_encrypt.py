"""Encrypt command — produce ciphertext table lines for the oracle."""

import typer

from decryption_client.cli._app import app
from decryption_client.cli._common import (
    ensure_initialized,
    load_config,
    read_bytes,
    setup_logging,
)
from decryption_client.cli._console import output_json, print_err, wants_json
from decryption_client.errors import KeyImportError, RecordEncryptionError
from decryption_client.services.ciphertext_index import record_digest
from decryption_client.services.key_importer import KeyImporter
from decryption_client.services.record_crypto import (
    PaddingScheme,
    ciphertext_line,
    encrypt_record,
)


@app.command("encrypt", help="Encrypt a record to the attested encryption key.")
def encrypt_cmd(
    ctx: typer.Context,
    encryption_key: str = typer.Option(..., "--encryption-key", help="PEM encryption key"),
    input_file: str = typer.Option(..., "--input", "-i", help="Plaintext record file"),
    scheme: PaddingScheme = typer.Option(
        PaddingScheme.OAEP_SHA256, "--scheme", help="RSA padding scheme",
    ),
    label: str = typer.Option(None, "--label", help="Record label for the table line (default: digest prefix)"),
):
    """Print one ciphertext table line (``label,base64``) to stdout."""
    ensure_initialized()
    setup_logging(verbose=ctx.obj["verbose"], quiet=ctx.obj["quiet"])
    config = load_config(ctx)

    enc_pem = read_bytes(encryption_key, "Encryption key")
    plaintext = read_bytes(input_file, "Input file")

    try:
        key = KeyImporter(config.min_key_bits).load_public_key(enc_pem)
        ciphertext = encrypt_record(plaintext, key, scheme=scheme, label=config.oaep_label_bytes)
    except (KeyImportError, RecordEncryptionError) as e:
        print_err(f"Encryption failed: {e}")
        raise SystemExit(1)

    digest_hex = record_digest(ciphertext).hex()
    try:
        line = ciphertext_line(label or digest_hex[:16], ciphertext)
    except ValueError as e:
        print_err(str(e))
        raise SystemExit(1)

    if wants_json(ctx):
        output_json({"digest": digest_hex, "scheme": scheme.value, "line": line})
    else:
        typer.echo(line)
