"""Rich console singleton and renderers for keys, commitments and requests."""

from typing import Any, Dict, List, Sequence

import typer
from rich.console import Console
from rich.table import Table

from decryption_client.schemas.records import DecryptionRequest

# Status and logs go to stderr so --json output on stdout stays parseable
console = Console(stderr=True)

# JSON results on stdout (pipeable to jq)
stdout_console = Console()


def print_ok(msg: str) -> None:
    """Print a success message to stderr."""
    console.print(f"[green]✓[/green] {msg}")


def print_err(msg: str) -> None:
    """Print an error message to stderr."""
    console.print(f"[red]✗[/red] {msg}")


def print_warn(msg: str) -> None:
    """Print a warning message to stderr."""
    console.print(f"[yellow]![/yellow] {msg}")


def output_json(data: Any) -> None:
    """Print a JSON result on stdout."""
    stdout_console.print_json(data=data)


def _truncate(token: str, width: int = 24) -> str:
    return token if len(token) <= width else token[: width - 3] + "..."


def print_key_bundle(info: Dict[str, Any]) -> None:
    """Render ``AttestedKeyBundle.describe()`` output."""
    print_ok("Attested keys imported")
    console.print(
        f"  Encryption key:   {info['encryption_key_bits']} bits  sha256:{info['encryption_key_sha256']}"
    )
    console.print(
        f"  Verification key: {info['verification_key_bits']} bits  sha256:{info['verification_key_sha256']}"
    )
    if info["quote_bytes"]:
        console.print(f"  Quote:            {info['quote_bytes']} bytes")


def print_commitment_result(result: Dict[str, Any], *, quiet: bool = False) -> None:
    """Render a commitment verification result.

    Failures are always shown; success is suppressed under ``--quiet``.
    """
    if result["valid"]:
        if not quiet:
            print_ok(f"Signed RTH verified: {result['root_hash']}")
        return
    print_err(f"Commitment rejected ({result['error_code']}): {result['error_details']}")
    console.print("  Do not submit decryption requests against this log state.")


def request_rows(requests: Sequence[DecryptionRequest]) -> List[Dict[str, Any]]:
    """Plain rows for the reconciled requests, full digests and tokens."""
    return [
        {
            "digest": r.digest_hex,
            "ciphertext_bytes": len(r.ciphertext),
            "presence": r.proofs.presence,
            "extension": r.proofs.extension,
        }
        for r in requests
    ]


def print_requests(requests: Sequence[DecryptionRequest], *, title: str = "Decryption requests") -> None:
    """Render reconciled requests as a table with shortened digests and tokens."""
    if not requests:
        console.print("[dim]No decryption requests[/dim]")
        return

    table = Table(title=title, show_lines=False)
    for col in ("digest", "bytes", "presence", "extension"):
        table.add_column(col)
    for r in requests:
        table.add_row(
            r.digest_hex[:16] + "...",
            str(len(r.ciphertext)),
            _truncate(r.proofs.presence),
            _truncate(r.proofs.extension),
        )
    console.print(table)


def print_reconcile_summary(
    requests: int,
    ledger_only: Sequence[str],
    index_only: Sequence[str],
    malformed: Sequence[str],
) -> None:
    """Render reconciliation counts and any malformed proof records."""
    console.rule("RECONCILIATION SUMMARY")
    console.print(f"  Requests:     {requests}")
    console.print(f"  Ledger-only:  {len(ledger_only)} (no local ciphertext)")
    console.print(f"  Index-only:   {len(index_only)} (no proof)")
    if malformed:
        print_warn(f"Malformed proof records: {len(malformed)}")
        for line in malformed:
            console.print(f"         - {line}", markup=False)


def wants_json(ctx: typer.Context) -> bool:
    return bool(ctx.obj.get("json"))
