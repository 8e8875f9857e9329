"""Interfaces for the decryption oracle boundary.

The oracle's RPC surface is consumed, not implemented, here. Transport
adapters (gRPC stubs, HTTP clients, test doubles) implement
``DecryptionOracle``; the orchestrator only sees a ``SendFn``.

Transport adapters signal failures with the per-request taxonomy:

- ``OracleRejected``: the oracle answered and refused the request.
- ``TransportError``: the oracle could not be reached or the reply was lost.
"""

from __future__ import annotations

from typing import Callable, Protocol, runtime_checkable

from decryption_client.schemas.commitment import RootCommitment
from decryption_client.schemas.keys import QuoteResponse
from decryption_client.schemas.records import ProofPair

# (digest, ciphertext, proofs) -> plaintext
SendFn = Callable[[bytes, bytes, ProofPair], bytes]


@runtime_checkable
class DecryptionOracle(Protocol):
    """Protocol for the remote attested decryption oracle."""

    def get_root_tree_hash(self, nonce: bytes) -> RootCommitment:
        """Return the signed root tree hash bound to ``nonce``."""
        ...

    def get_public_key(self, nonce: bytes) -> QuoteResponse:
        """Return the attestation quote and the attested public keys."""
        ...

    def decrypt_record(
        self,
        ciphertext: bytes,
        proof_of_presence: str,
        proof_of_extension: str,
    ) -> bytes:
        """Decrypt one record if its proofs check out.

        Raises:
            OracleRejected: If the oracle refuses the request.
            TransportError: If the request or reply is lost.
        """
        ...


def oracle_sender(oracle: DecryptionOracle) -> SendFn:
    """Adapt a DecryptionOracle to the orchestrator's send callable."""

    def send(digest: bytes, ciphertext: bytes, proofs: ProofPair) -> bytes:
        return oracle.decrypt_record(ciphertext, proofs.presence, proofs.extension)

    return send
