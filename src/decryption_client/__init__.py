"""
Decryption Client - trust establishment and record authorization for an
attested decryption oracle.

This package imports the oracle's attested RSA keys, verifies its signed
root-hash commitments, and reconciles local ciphertexts with their log
proofs before submitting decryption requests.
"""

__version__ = "0.1.0"

from decryption_client.config import ClientConfig, OutcomeOrder, VerificationPolicy
from decryption_client.services.session import DecryptionSession

__all__ = [
    "ClientConfig",
    "DecryptionSession",
    "OutcomeOrder",
    "VerificationPolicy",
]
