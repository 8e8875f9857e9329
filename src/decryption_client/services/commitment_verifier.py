"""Verification of signed, nonce-bound root tree hash commitments.

The oracle signs ``sha256(root_hash || nonce)`` with PKCS#1 v1.5 under its
attested verification key. A commitment is trusted only if:

1. Its nonce equals the nonce the caller sent (freshness; rejects replayed
   commitments even when their signature is genuine).
2. Its signature validates over the digest (integrity).

Both failures are final: no retry and no fallback padding.
"""

import hashlib
import hmac
import logging

from cryptography.exceptions import InvalidSignature
from cryptography.hazmat.primitives import hashes
from cryptography.hazmat.primitives.asymmetric import padding, utils
from cryptography.hazmat.primitives.asymmetric.rsa import RSAPublicKey

from decryption_client.schemas.commitment import (
    CommitmentErrorCode,
    CommitmentReport,
    RootCommitment,
)

logger = logging.getLogger(__name__)


def commitment_digest(root_hash: bytes, nonce: bytes) -> bytes:
    """Digest the oracle signs: SHA-256 over root hash then nonce."""
    return hashlib.sha256(root_hash + nonce).digest()


class RootCommitmentVerifier:
    """Checks freshness and signature of a root commitment.

    Usage:
        verifier = RootCommitmentVerifier()
        report = verifier.verify(commitment, sent_nonce, bundle.verification_key)
        report.raise_for_failure()
    """

    def verify(
        self,
        commitment: RootCommitment,
        expected_nonce: bytes,
        verification_key: RSAPublicKey,
    ) -> CommitmentReport:
        """Verify a commitment against the nonce that was sent.

        Args:
            commitment: Commitment returned by the oracle.
            expected_nonce: Nonce sent with the GetRootTreeHash request.
            verification_key: Attested verification key.

        Returns:
            CommitmentReport; ``valid`` is False with an error code on failure.
        """
        if not hmac.compare_digest(commitment.nonce, expected_nonce):
            logger.error(
                f"Root commitment nonce mismatch: expected {expected_nonce.hex()[:16]}..., "
                f"got {commitment.nonce.hex()[:16]}..."
            )
            return CommitmentReport(
                valid=False,
                root_hash=commitment.root_hash,
                nonce=commitment.nonce,
                error_code=CommitmentErrorCode.STALE_OR_FORGED_NONCE,
                error_details="commitment nonce does not match the nonce sent",
            )

        digest = commitment_digest(commitment.root_hash, commitment.nonce)
        try:
            verification_key.verify(
                commitment.signature,
                digest,
                padding.PKCS1v15(),
                utils.Prehashed(hashes.SHA256()),
            )
        except InvalidSignature:
            logger.error(
                f"Failed to verify signed root tree hash {commitment.root_hash.hex()}"
            )
            return CommitmentReport(
                valid=False,
                root_hash=commitment.root_hash,
                nonce=commitment.nonce,
                error_code=CommitmentErrorCode.SIGNATURE_INVALID,
                error_details="PKCS#1 v1.5 signature over sha256(root_hash || nonce) is invalid",
            )

        logger.info(f"Signed root tree hash verified: {commitment.root_hash.hex()}")
        return CommitmentReport(
            valid=True,
            root_hash=commitment.root_hash,
            nonce=commitment.nonce,
        )
