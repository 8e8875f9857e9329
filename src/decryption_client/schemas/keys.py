"""Attested key schemas.

The oracle publishes two RSA public keys inside its attestation response:
one for encrypting records to the enclave and one for verifying the
enclave's signatures over root tree hashes.
"""

from __future__ import annotations

from cryptography.hazmat.primitives.asymmetric.rsa import RSAPublicKey
from pydantic import BaseModel, ConfigDict, Field


class QuoteResponse(BaseModel):
    """Reply to a GetPublicKey call.

    The quote itself is opaque here; it is checked by an external
    attestation verifier.
    """

    quote: bytes = Field(default=b"", description="Opaque attestation quote")
    encryption_key_pem: bytes = Field(..., description="PEM SubjectPublicKeyInfo for record encryption")
    verification_key_pem: bytes = Field(..., description="PEM SubjectPublicKeyInfo for signature checks")

    model_config = ConfigDict(frozen=True)


class AttestedKeyBundle(BaseModel):
    """Typed keys imported from an attestation response.

    Created once per session and never modified.
    """

    encryption_key: RSAPublicKey
    verification_key: RSAPublicKey
    raw_quote: bytes = b""
    encryption_key_fingerprint: str = Field(..., description="SHA-256 of the DER SubjectPublicKeyInfo")
    verification_key_fingerprint: str = Field(..., description="SHA-256 of the DER SubjectPublicKeyInfo")

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    def describe(self) -> dict:
        """Summary suitable for logs and CLI output."""
        return {
            "encryption_key_bits": self.encryption_key.key_size,
            "encryption_key_sha256": self.encryption_key_fingerprint,
            "verification_key_bits": self.verification_key.key_size,
            "verification_key_sha256": self.verification_key_fingerprint,
            "quote_bytes": len(self.raw_quote),
        }
