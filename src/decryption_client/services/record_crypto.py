"""Record encryption under the oracle's attested encryption key.

Records are RSA-encrypted directly to the enclave key. Two padding schemes
are supported, and the oracle accepts either:

- RSA-OAEP with SHA-256 (MGF1-SHA256) and the label ``record``
- RSA PKCS#1 v1.5

Example:
    >>> ct = encrypt_record(b"secret", bundle.encryption_key)
    >>> line = ciphertext_line("rec-1", ct)
"""

import base64
from enum import Enum
from typing import Optional

from cryptography.hazmat.primitives import hashes
from cryptography.hazmat.primitives.asymmetric import padding
from cryptography.hazmat.primitives.asymmetric.rsa import RSAPublicKey

from decryption_client.errors import RecordEncryptionError

DEFAULT_OAEP_LABEL = b"record"

# Sample records for the oracle padding self-test
SELF_TEST_PLAINTEXTS = {
    "oaep_sha256": b"Decrypt RPC successful (OAEP padding)",
    "pkcs1v15": b"Decrypt RPC successful (PKCS1v15 padding)",
}


class PaddingScheme(str, Enum):
    """RSA encryption padding schemes accepted by the oracle."""

    OAEP_SHA256 = "oaep_sha256"
    PKCS1V15 = "pkcs1v15"


def _padding_for(scheme: PaddingScheme, label: Optional[bytes]) -> padding.AsymmetricPadding:
    if scheme == PaddingScheme.OAEP_SHA256:
        return padding.OAEP(
            mgf=padding.MGF1(algorithm=hashes.SHA256()),
            algorithm=hashes.SHA256(),
            label=DEFAULT_OAEP_LABEL if label is None else label,
        )
    return padding.PKCS1v15()


def max_plaintext_size(key: RSAPublicKey, scheme: PaddingScheme) -> int:
    """Largest plaintext that fits in a single RSA block."""
    key_bytes = (key.key_size + 7) // 8
    if scheme == PaddingScheme.OAEP_SHA256:
        return key_bytes - 2 * hashes.SHA256.digest_size - 2
    return key_bytes - 11


def encrypt_record(
    plaintext: bytes,
    encryption_key: RSAPublicKey,
    scheme: PaddingScheme = PaddingScheme.OAEP_SHA256,
    label: Optional[bytes] = None,
) -> bytes:
    """Encrypt one record to the oracle.

    Args:
        plaintext: Record bytes; must fit in one RSA block.
        encryption_key: Attested encryption key.
        scheme: Padding scheme.
        label: OAEP label (default ``record``); ignored for PKCS#1 v1.5.

    Returns:
        RSA ciphertext, one key length long.

    Raises:
        RecordEncryptionError: If the plaintext is too long or encryption fails.
    """
    limit = max_plaintext_size(encryption_key, scheme)
    if len(plaintext) > limit:
        raise RecordEncryptionError(
            f"Record of {len(plaintext)} bytes exceeds the {limit}-byte limit "
            f"for {scheme.value} with a {encryption_key.key_size}-bit key"
        )

    try:
        return encryption_key.encrypt(plaintext, _padding_for(scheme, label))
    except ValueError as e:
        raise RecordEncryptionError(f"Encryption failed: {e}") from e


def ciphertext_line(label: str, ciphertext: bytes) -> str:
    """Render a ciphertext table line: ``label,base64(ciphertext)``."""
    if "," in label:
        raise ValueError(f"Record label must not contain commas: {label!r}")
    return f"{label},{base64.b64encode(ciphertext).decode('ascii')}"
