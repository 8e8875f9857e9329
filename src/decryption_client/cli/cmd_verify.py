"""Verify command — check a signed root tree hash commitment."""

import json

import typer

from decryption_client.cli._app import app
from decryption_client.cli._common import (
    ensure_initialized,
    load_config,
    read_bytes,
    setup_logging,
)
from decryption_client.cli._console import (
    output_json,
    print_commitment_result,
    print_err,
    wants_json,
)
from decryption_client.errors import KeyImportError
from decryption_client.schemas.commitment import RootCommitment
from decryption_client.services.commitment_verifier import RootCommitmentVerifier
from decryption_client.services.key_importer import KeyImporter


@app.command("verify-commitment", help="Verify a signed, nonce-bound root tree hash.")
def verify_commitment_cmd(
    ctx: typer.Context,
    verification_key: str = typer.Option(..., "--verification-key", help="PEM verification key"),
    commitment: str = typer.Option(
        ..., "--commitment",
        help='JSON file with hex fields {"rth": ..., "nonce": ..., "sig": ...}',
    ),
    nonce: str = typer.Option(..., "--nonce", help="Hex nonce sent with the GetRootTreeHash request"),
):
    """Check freshness and signature of a commitment; exit 1 if untrusted."""
    ensure_initialized()
    setup_logging(verbose=ctx.obj["verbose"], quiet=ctx.obj["quiet"])
    config = load_config(ctx)

    ver_pem = read_bytes(verification_key, "Verification key")
    raw = read_bytes(commitment, "Commitment file")

    try:
        expected_nonce = bytes.fromhex(nonce)
    except ValueError:
        print_err(f"--nonce is not valid hex: {nonce}")
        raise SystemExit(1)

    try:
        data = json.loads(raw)
        root_commitment = RootCommitment.from_hex(data["rth"], data["nonce"], data["sig"])
    except (json.JSONDecodeError, KeyError, TypeError, ValueError) as e:
        print_err(f"Invalid commitment file: {e}")
        raise SystemExit(1)

    try:
        key = KeyImporter(config.min_key_bits).load_public_key(ver_pem)
    except KeyImportError as e:
        print_err(f"Key import failed ({type(e).__name__}): {e}")
        raise SystemExit(1)

    report = RootCommitmentVerifier().verify(root_commitment, expected_nonce, key)
    result = {
        "valid": report.valid,
        "root_hash": report.root_hash_hex,
        "nonce": report.nonce.hex(),
        "error_code": report.error_code.value if report.error_code else None,
        "error_details": report.error_details,
    }

    if wants_json(ctx):
        output_json(result)
    else:
        print_commitment_result(result, quiet=ctx.obj["quiet"])

    if not report.valid:
        raise SystemExit(1)
