"""Tests for record and outcome schemas."""

import hashlib

import pytest
from pydantic import ValidationError

from decryption_client.schemas.records import (
    BatchSummary,
    DecryptionOutcome,
    Leaf,
    OutcomeStatus,
    ProofPair,
)

DIGEST = hashlib.sha256(b"record").digest()


class TestDigestValidation:
    def test_leaf_requires_32_bytes(self):
        assert Leaf(hash=DIGEST).hash == DIGEST
        with pytest.raises(ValidationError):
            Leaf(hash=b"short")

    def test_proof_pair_requires_32_bytes(self):
        with pytest.raises(ValidationError, match="32 bytes"):
            ProofPair(digest=DIGEST[:31], presence="p", extension="e")

    def test_proof_pair_is_frozen(self):
        proof = ProofPair(digest=DIGEST, presence="p", extension="e")
        with pytest.raises(ValidationError):
            proof.presence = "other"


class TestDecryptionOutcome:
    def test_display_dict(self):
        outcome = DecryptionOutcome(digest=DIGEST, status=OutcomeStatus.DECRYPTED, plaintext=b"abc")
        assert outcome.to_display_dict() == {
            "digest": DIGEST.hex(),
            "status": "decrypted",
            "plaintext_bytes": 3,
            "error": None,
            "authenticated": False,
        }

    def test_failed_outcome(self):
        outcome = DecryptionOutcome(digest=DIGEST, status=OutcomeStatus.CANCELLED, error="stop")
        assert not outcome.succeeded
        assert outcome.to_display_dict()["plaintext_bytes"] is None


class TestBatchSummary:
    def test_empty(self):
        summary = BatchSummary.from_outcomes([])
        assert summary.total == 0
        assert summary.by_status == {}

    def test_counts(self):
        other = hashlib.sha256(b"other").digest()
        summary = BatchSummary.from_outcomes(
            [
                DecryptionOutcome(digest=DIGEST, status=OutcomeStatus.DECRYPTED, plaintext=b"", authenticated=False),
                DecryptionOutcome(digest=other, status=OutcomeStatus.TRANSPORT_ERROR, error="down"),
            ]
        )
        assert summary.total == 2
        assert summary.succeeded == [DIGEST.hex()]
        assert summary.failed == [other.hex()]
        assert summary.by_status == {"decrypted": 1, "transport_error": 1}
        assert summary.unauthenticated == 1

    def test_authenticated_must_be_claimed_explicitly(self):
        """An outcome built without the flag does not claim trust."""
        outcome = DecryptionOutcome(digest=DIGEST, status=OutcomeStatus.DECRYPTED, plaintext=b"x")
        assert outcome.authenticated is False
        assert BatchSummary.from_outcomes([outcome]).unauthenticated == 1
