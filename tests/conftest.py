"""
Pytest fixtures and configuration for decryption client tests.
Provides RSA key material, an in-memory oracle, and fixture file writers.
"""

import base64
import hashlib
import threading
from typing import Callable, List, Optional, Set

import pytest
from cryptography.hazmat.primitives import hashes, serialization
from cryptography.hazmat.primitives.asymmetric import padding, rsa, utils

from decryption_client.errors import OracleRejected, TransportError
from decryption_client.schemas.commitment import RootCommitment
from decryption_client.schemas.keys import QuoteResponse


def public_pem(private_key) -> bytes:
    """PEM SubjectPublicKeyInfo for a private key's public half."""
    return private_key.public_key().public_bytes(
        encoding=serialization.Encoding.PEM,
        format=serialization.PublicFormat.SubjectPublicKeyInfo,
    )


def sign_root(private_key, root_hash: bytes, nonce: bytes) -> bytes:
    """Sign sha256(root_hash || nonce) the way the oracle does."""
    digest = hashlib.sha256(root_hash + nonce).digest()
    return private_key.sign(digest, padding.PKCS1v15(), utils.Prehashed(hashes.SHA256()))


class InMemoryOracle:
    """Decryption oracle double holding the enclave private keys.

    Decrypts OAEP-SHA256 (label ``record``) or PKCS#1 v1.5 ciphertexts and
    can be told to reject or drop specific ciphertexts.
    """

    def __init__(self, encryption_private_key, verification_private_key):
        self.encryption_private_key = encryption_private_key
        self.verification_private_key = verification_private_key
        self.root_hash = hashlib.sha256(b"root tree hash").digest()
        self.quote = b"opaque-quote"
        self.reject: Set[bytes] = set()
        self.drop: Set[bytes] = set()
        self.replay_nonce: Optional[bytes] = None
        self.corrupt_signature = False
        self.on_decrypt: Optional[Callable[[bytes], None]] = None
        self.calls: List[tuple] = []
        self._lock = threading.Lock()

    def get_public_key(self, nonce: bytes) -> QuoteResponse:
        return QuoteResponse(
            quote=self.quote,
            encryption_key_pem=public_pem(self.encryption_private_key),
            verification_key_pem=public_pem(self.verification_private_key),
        )

    def get_root_tree_hash(self, nonce: bytes) -> RootCommitment:
        echoed = self.replay_nonce if self.replay_nonce is not None else nonce
        signature = sign_root(self.verification_private_key, self.root_hash, echoed)
        if self.corrupt_signature:
            signature = bytes([signature[0] ^ 0x01]) + signature[1:]
        return RootCommitment(root_hash=self.root_hash, nonce=echoed, signature=signature)

    def decrypt_record(self, ciphertext: bytes, proof_of_presence: str, proof_of_extension: str) -> bytes:
        with self._lock:
            self.calls.append((ciphertext, proof_of_presence, proof_of_extension))
        if self.on_decrypt is not None:
            self.on_decrypt(ciphertext)
        if ciphertext in self.drop:
            raise TransportError("connection reset")
        if ciphertext in self.reject:
            raise OracleRejected("proof of presence does not verify")
        try:
            return self.encryption_private_key.decrypt(
                ciphertext,
                padding.OAEP(
                    mgf=padding.MGF1(algorithm=hashes.SHA256()),
                    algorithm=hashes.SHA256(),
                    label=b"record",
                ),
            )
        except ValueError:
            pass
        try:
            return self.encryption_private_key.decrypt(ciphertext, padding.PKCS1v15())
        except ValueError as e:
            raise OracleRejected(f"could not decrypt record: {e}") from e


@pytest.fixture(scope="session")
def encryption_private_key():
    return rsa.generate_private_key(public_exponent=65537, key_size=2048)


@pytest.fixture(scope="session")
def verification_private_key():
    return rsa.generate_private_key(public_exponent=65537, key_size=2048)


@pytest.fixture(scope="session")
def weak_private_key():
    return rsa.generate_private_key(public_exponent=65537, key_size=1024)


@pytest.fixture
def encryption_pem(encryption_private_key) -> bytes:
    return public_pem(encryption_private_key)


@pytest.fixture
def verification_pem(verification_private_key) -> bytes:
    return public_pem(verification_private_key)


@pytest.fixture
def verification_key(verification_private_key):
    return verification_private_key.public_key()


@pytest.fixture
def sign_commitment(verification_private_key):
    """Return a signer: (root_hash, nonce) -> signature."""

    def _sign(root_hash: bytes, nonce: bytes) -> bytes:
        return sign_root(verification_private_key, root_hash, nonce)

    return _sign


@pytest.fixture
def oracle(encryption_private_key, verification_private_key) -> InMemoryOracle:
    return InMemoryOracle(encryption_private_key, verification_private_key)


@pytest.fixture
def write_tables(tmp_path):
    """Write ciphertext and proof tables; returns (records_path, proofs_path).

    Args (of the returned callable):
        ciphertexts: list of (label, ciphertext bytes)
        proof_lines: raw proof table lines
    """

    def _write(ciphertexts, proof_lines):
        records_path = tmp_path / "records.csv"
        proofs_path = tmp_path / "records_proofs.csv"
        records_path.write_text(
            "".join(f"{label},{base64.b64encode(ct).decode('ascii')}\n" for label, ct in ciphertexts)
        )
        proofs_path.write_text("".join(f"{line}\n" for line in proof_lines))
        return records_path, proofs_path

    return _write


@pytest.fixture
def key_files(tmp_path, encryption_pem, verification_pem):
    """Write both attested public keys to PEM files."""
    enc_path = tmp_path / "encryption.pem"
    ver_path = tmp_path / "verification.pem"
    enc_path.write_bytes(encryption_pem)
    ver_path.write_bytes(verification_pem)
    return enc_path, ver_path


@pytest.fixture
def make_oracle():
    """Return a factory building an oracle over arbitrary key pairs."""
    return InMemoryOracle
