"""Root commitment schemas.

A root commitment is the oracle's signature over the current root tree
hash of the record log, bound to a caller-chosen nonce.
"""

from __future__ import annotations

from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from decryption_client.errors import SignatureInvalid, StaleOrForgedNonce

ROOT_HASH_SIZE = 32


class RootCommitment(BaseModel):
    """Reply to a GetRootTreeHash call."""

    root_hash: bytes = Field(..., description="Root tree hash (32 bytes)")
    nonce: bytes = Field(..., description="Nonce echoed by the oracle")
    signature: bytes = Field(..., description="PKCS#1 v1.5 signature over sha256(root_hash || nonce)")

    model_config = ConfigDict(frozen=True)

    @field_validator("root_hash")
    @classmethod
    def check_root_hash_size(cls, v: bytes) -> bytes:
        if len(v) != ROOT_HASH_SIZE:
            raise ValueError(f"root_hash must be {ROOT_HASH_SIZE} bytes, got {len(v)}")
        return v

    @classmethod
    def from_hex(cls, rth: str, nonce: str, sig: str) -> "RootCommitment":
        """Build a commitment from hex-encoded fields."""
        return cls(
            root_hash=bytes.fromhex(rth),
            nonce=bytes.fromhex(nonce),
            signature=bytes.fromhex(sig),
        )


class CommitmentErrorCode(str, Enum):
    """Why a commitment was rejected."""

    STALE_OR_FORGED_NONCE = "stale_or_forged_nonce"
    SIGNATURE_INVALID = "signature_invalid"


class CommitmentReport(BaseModel):
    """Result of verifying a root commitment."""

    valid: bool = Field(..., description="Whether the commitment can be trusted")
    root_hash: bytes = Field(..., description="Root hash the report refers to")
    nonce: bytes = Field(..., description="Nonce carried by the commitment")
    error_code: Optional[CommitmentErrorCode] = Field(None, description="Failure class")
    error_details: Optional[str] = Field(None, description="Human-readable failure details")

    model_config = ConfigDict(frozen=True)

    @property
    def root_hash_hex(self) -> str:
        return self.root_hash.hex()

    def raise_for_failure(self) -> None:
        """Raise the typed verification error if the commitment was rejected.

        Raises:
            StaleOrForgedNonce: If the nonce did not match the one sent.
            SignatureInvalid: If the signature did not validate.
        """
        if self.valid:
            return
        if self.error_code == CommitmentErrorCode.STALE_OR_FORGED_NONCE:
            raise StaleOrForgedNonce(self.error_details or "nonce mismatch")
        raise SignatureInvalid(self.error_details or "signature verification failed")
