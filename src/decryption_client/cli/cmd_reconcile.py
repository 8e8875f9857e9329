"""Reconcile command — dry-run join of ciphertexts and log proofs."""

from pathlib import Path

import typer

from decryption_client.cli._app import app
from decryption_client.cli._common import ensure_initialized, load_config, setup_logging
from decryption_client.cli._console import (
    output_json,
    print_err,
    print_reconcile_summary,
    print_requests,
    request_rows,
    wants_json,
)
from decryption_client.errors import FixtureCorrupt, TransportError
from decryption_client.schemas.records import ProofPair
from decryption_client.services.ciphertext_index import CiphertextIndex
from decryption_client.services.orchestrator import DecryptionOrchestrator
from decryption_client.services.proof_ledger import ProofLedger


def _not_connected(digest: bytes, ciphertext: bytes, proofs: ProofPair) -> bytes:
    raise TransportError("dry run: no oracle connection")


@app.command("reconcile", help="Show which decryption requests the tables would produce.")
def reconcile_cmd(
    ctx: typer.Context,
    records: str = typer.Option(None, "--records", help="Ciphertext table (default: config records_path)"),
    proofs: str = typer.Option(None, "--proofs", help="Proof table (default: config proofs_path)"),
):
    """Load both tables and reconcile them without contacting the oracle."""
    ensure_initialized()
    setup_logging(verbose=ctx.obj["verbose"], quiet=ctx.obj["quiet"])
    config = load_config(ctx)

    records_path = Path(records) if records else config.records_path
    proofs_path = Path(proofs) if proofs else config.proofs_path

    try:
        index = CiphertextIndex.load_file(records_path)
        ledger = ProofLedger.load_file(proofs_path)
    except FixtureCorrupt as e:
        print_err(f"Fixture load failed: {e}")
        raise SystemExit(1)

    requests = DecryptionOrchestrator(_not_connected, config).plan(index, ledger)
    planned = {r.digest for r in requests}
    ledger_only = [p.digest_hex for p in ledger if p.digest not in planned]
    index_only = [d.hex() for d in index.digests() if d not in planned]
    malformed = [str(e) for e in ledger.malformed]

    if wants_json(ctx):
        output_json(
            {
                "requests": request_rows(requests),
                "ledger_only": ledger_only,
                "index_only": index_only,
                "malformed": malformed,
            }
        )
        return

    if ctx.obj["quiet"]:
        return

    print_requests(requests)
    print_reconcile_summary(len(requests), ledger_only, index_only, malformed)
