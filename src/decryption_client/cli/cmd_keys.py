"""Keys commands — inspect attested public keys."""

import typer

from decryption_client.cli._app import app
from decryption_client.cli._common import (
    ensure_initialized,
    load_config,
    read_bytes,
    setup_logging,
)
from decryption_client.cli._console import output_json, print_err, print_key_bundle, wants_json
from decryption_client.errors import KeyImportError
from decryption_client.services.key_importer import KeyImporter

keys_app = typer.Typer(
    no_args_is_help=True,
    help="Inspect attested public keys.",
)
app.add_typer(keys_app, name="keys")


@keys_app.command("inspect", help="Import attested PEM keys and show their size and fingerprint.")
def keys_inspect(
    ctx: typer.Context,
    encryption_key: str = typer.Option(..., "--encryption-key", help="PEM encryption key"),
    verification_key: str = typer.Option(..., "--verification-key", help="PEM verification key"),
    quote: str = typer.Option(None, "--quote", help="Attestation quote file carried with the keys"),
):
    """Import both keys under the configured RSA policy."""
    ensure_initialized()
    setup_logging(verbose=ctx.obj["verbose"], quiet=ctx.obj["quiet"])
    config = load_config(ctx)

    enc_pem = read_bytes(encryption_key, "Encryption key")
    ver_pem = read_bytes(verification_key, "Verification key")
    raw_quote = read_bytes(quote, "Quote") if quote else b""

    try:
        bundle = KeyImporter(config.min_key_bits).import_keys(enc_pem, ver_pem, raw_quote=raw_quote)
    except KeyImportError as e:
        print_err(f"Key import failed ({type(e).__name__}): {e}")
        raise SystemExit(1)

    info = bundle.describe()
    if wants_json(ctx):
        output_json(info)
    elif not ctx.obj["quiet"]:
        print_key_bundle(info)
