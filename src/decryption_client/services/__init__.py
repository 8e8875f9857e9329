"""Services package for trust establishment and record decryption."""

from decryption_client.services.ciphertext_index import CiphertextIndex, record_digest
from decryption_client.services.commitment_verifier import (
    RootCommitmentVerifier,
    commitment_digest,
)
from decryption_client.services.interfaces import DecryptionOracle, SendFn, oracle_sender
from decryption_client.services.key_importer import KeyImporter, fingerprint, pem_to_der
from decryption_client.services.orchestrator import DecryptionOrchestrator
from decryption_client.services.proof_ledger import ProofLedger, parse_proof_line
from decryption_client.services.record_crypto import (
    PaddingScheme,
    ciphertext_line,
    encrypt_record,
)

__all__ = [
    "CiphertextIndex",
    "DecryptionOracle",
    "DecryptionOrchestrator",
    "KeyImporter",
    "PaddingScheme",
    "ProofLedger",
    "RootCommitmentVerifier",
    "SendFn",
    "ciphertext_line",
    "commitment_digest",
    "encrypt_record",
    "fingerprint",
    "oracle_sender",
    "parse_proof_line",
    "pem_to_der",
    "record_digest",
]
