"""Record, proof, and outcome schemas.

Records are content-addressed: a record's digest is the SHA-256 of its
ciphertext. Proof tokens are opaque and only forwarded to the oracle.
"""

from __future__ import annotations

from enum import Enum
from typing import Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

DIGEST_SIZE = 32


def _check_digest(v: bytes) -> bytes:
    if len(v) != DIGEST_SIZE:
        raise ValueError(f"digest must be {DIGEST_SIZE} bytes, got {len(v)}")
    return v


class Leaf(BaseModel):
    """Opaque digest identifying one record in the log."""

    hash: bytes

    model_config = ConfigDict(frozen=True)

    @field_validator("hash")
    @classmethod
    def check_hash_size(cls, v: bytes) -> bytes:
        return _check_digest(v)


class ProofPair(BaseModel):
    """Proofs that a record belongs to the committed, append-only log."""

    digest: bytes = Field(..., description="SHA-256 of the record ciphertext")
    presence: str = Field(..., description="Proof that the leaf is in the committed tree")
    extension: str = Field(..., description="Proof that the committed tree extends an earlier one")

    model_config = ConfigDict(frozen=True)

    @field_validator("digest")
    @classmethod
    def check_digest_size(cls, v: bytes) -> bytes:
        return _check_digest(v)

    @property
    def digest_hex(self) -> str:
        return self.digest.hex()


class DecryptionRequest(BaseModel):
    """A reconciled request, ready to be sent to the oracle."""

    digest: bytes
    ciphertext: bytes
    proofs: ProofPair

    model_config = ConfigDict(frozen=True)

    @property
    def digest_hex(self) -> str:
        return self.digest.hex()


class OutcomeStatus(str, Enum):
    """Result class of one decryption request."""

    DECRYPTED = "decrypted"
    ORACLE_REJECTED = "oracle_rejected"
    TRANSPORT_ERROR = "transport_error"
    CANCELLED = "cancelled"


class DecryptionOutcome(BaseModel):
    """Outcome of one decryption request. Never persisted."""

    digest: bytes
    status: OutcomeStatus
    plaintext: Optional[bytes] = None
    error: Optional[str] = None
    authenticated: bool = Field(
        default=False,
        description="True only when dispatched under a verified root commitment",
    )

    model_config = ConfigDict(frozen=True)

    @property
    def succeeded(self) -> bool:
        return self.status == OutcomeStatus.DECRYPTED

    @property
    def digest_hex(self) -> str:
        return self.digest.hex()

    def to_display_dict(self) -> dict:
        """Hex/text rendering for logs and CLI output."""
        return {
            "digest": self.digest_hex,
            "status": self.status.value,
            "plaintext_bytes": len(self.plaintext) if self.plaintext is not None else None,
            "error": self.error,
            "authenticated": self.authenticated,
        }


class BatchSummary(BaseModel):
    """Outcomes of one batch, partitioned into successes and failures."""

    total: int = 0
    succeeded: List[str] = Field(default_factory=list, description="Digests (hex) decrypted")
    failed: List[str] = Field(default_factory=list, description="Digests (hex) not decrypted")
    by_status: Dict[str, int] = Field(default_factory=dict)
    unauthenticated: int = 0

    @classmethod
    def from_outcomes(cls, outcomes: List[DecryptionOutcome]) -> "BatchSummary":
        summary = cls()
        for outcome in outcomes:
            summary.total += 1
            key = outcome.status.value
            summary.by_status[key] = summary.by_status.get(key, 0) + 1
            if outcome.succeeded:
                summary.succeeded.append(outcome.digest_hex)
            else:
                summary.failed.append(outcome.digest_hex)
            if not outcome.authenticated:
                summary.unauthenticated += 1
        return summary
