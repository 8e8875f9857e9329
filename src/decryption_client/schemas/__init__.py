"""Pydantic schemas for keys, commitments, records, and outcomes."""

from decryption_client.schemas.commitment import (
    ROOT_HASH_SIZE,
    CommitmentErrorCode,
    CommitmentReport,
    RootCommitment,
)
from decryption_client.schemas.keys import AttestedKeyBundle, QuoteResponse
from decryption_client.schemas.records import (
    DIGEST_SIZE,
    BatchSummary,
    DecryptionOutcome,
    DecryptionRequest,
    Leaf,
    OutcomeStatus,
    ProofPair,
)

__all__ = [
    "AttestedKeyBundle",
    "BatchSummary",
    "CommitmentErrorCode",
    "CommitmentReport",
    "DIGEST_SIZE",
    "DecryptionOutcome",
    "DecryptionRequest",
    "Leaf",
    "OutcomeStatus",
    "ProofPair",
    "QuoteResponse",
    "ROOT_HASH_SIZE",
    "RootCommitment",
]
