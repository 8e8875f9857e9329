"""Import attested public keys from an oracle attestation response.

Decoding is two-phase:

1. PEM framing -> DER bytes. Missing or garbled framing raises
   ``MalformedKey``.
2. DER SubjectPublicKeyInfo -> typed public key. Anything other than an
   RSA key of at least the configured size raises ``UnsupportedKeyType``
   (``KeyTooWeak`` for undersized RSA keys).

Importing is a pure parse: no network access and no state.
"""

import base64
import binascii
import hashlib
import logging
import re
from typing import Optional, Union

from cryptography.exceptions import UnsupportedAlgorithm
from cryptography.hazmat.primitives import serialization
from cryptography.hazmat.primitives.asymmetric.rsa import RSAPublicKey

from decryption_client.config import MIN_RSA_KEY_BITS
from decryption_client.errors import KeyTooWeak, MalformedKey, UnsupportedKeyType
from decryption_client.schemas.keys import AttestedKeyBundle, QuoteResponse

logger = logging.getLogger(__name__)

_PEM_BLOCK = re.compile(
    rb"-----BEGIN ([A-Z0-9 ]+)-----\s*(.*?)\s*-----END \1-----",
    re.DOTALL,
)
_ACCEPTED_PEM_LABELS = (b"PUBLIC KEY",)


def pem_to_der(pem: Union[bytes, str]) -> bytes:
    """Strip PEM framing and return the DER payload of the first block.

    Args:
        pem: PEM text containing a ``PUBLIC KEY`` block.

    Returns:
        DER-encoded SubjectPublicKeyInfo bytes.

    Raises:
        MalformedKey: If no PEM block is found or the body is not valid base64.
        UnsupportedKeyType: If the block is not a ``PUBLIC KEY`` block.
    """
    if isinstance(pem, str):
        pem = pem.encode("ascii", errors="replace")

    match = _PEM_BLOCK.search(pem)
    if match is None:
        raise MalformedKey("no PEM block found in key material")

    label = match.group(1)
    if label not in _ACCEPTED_PEM_LABELS:
        raise UnsupportedKeyType(f"unexpected PEM block type: {label.decode('ascii', 'replace')}")

    body = b"".join(match.group(2).split())
    try:
        der = base64.b64decode(body, validate=True)
    except (binascii.Error, ValueError) as e:
        raise MalformedKey(f"PEM body is not valid base64: {e}") from e

    if not der:
        raise MalformedKey("PEM block is empty")
    return der


def fingerprint(key: RSAPublicKey) -> str:
    """SHA-256 hex digest of the key's DER SubjectPublicKeyInfo."""
    der = key.public_bytes(
        encoding=serialization.Encoding.DER,
        format=serialization.PublicFormat.SubjectPublicKeyInfo,
    )
    return hashlib.sha256(der).hexdigest()


class KeyImporter:
    """Parses attested RSA public keys into a typed key bundle.

    Example:
        >>> importer = KeyImporter()
        >>> bundle = importer.import_keys(enc_pem, ver_pem)
        >>> bundle.encryption_key.key_size
        2048
    """

    def __init__(self, min_key_bits: int = MIN_RSA_KEY_BITS):
        """Initialize the importer.

        Args:
            min_key_bits: Smallest accepted RSA modulus in bits; may raise
                the 2048-bit floor but never lower it.

        Raises:
            ValueError: If ``min_key_bits`` is below the policy floor.
        """
        if min_key_bits < MIN_RSA_KEY_BITS:
            raise ValueError(
                f"min_key_bits must be at least {MIN_RSA_KEY_BITS}, got {min_key_bits}"
            )
        self.min_key_bits = min_key_bits

    def load_public_key(self, pem: Union[bytes, str]) -> RSAPublicKey:
        """Decode one PEM public key and enforce the RSA policy.

        Raises:
            MalformedKey: If PEM framing is absent or unreadable.
            UnsupportedKeyType: If the key is not RSA.
            KeyTooWeak: If the RSA key is below ``min_key_bits``.
        """
        der = pem_to_der(pem)

        try:
            key = serialization.load_der_public_key(der)
        except (ValueError, TypeError, UnsupportedAlgorithm) as e:
            raise UnsupportedKeyType(f"DER payload is not a supported public key: {e}") from e

        if not isinstance(key, RSAPublicKey):
            raise UnsupportedKeyType(
                f"expected an RSA public key, got {type(key).__name__}"
            )

        if key.key_size < self.min_key_bits:
            raise KeyTooWeak(key.key_size, self.min_key_bits)

        return key

    def import_keys(
        self,
        encryption_key_pem: Union[bytes, str],
        verification_key_pem: Union[bytes, str],
        raw_quote: Optional[bytes] = None,
    ) -> AttestedKeyBundle:
        """Import the encryption and verification keys.

        Args:
            encryption_key_pem: PEM key used to encrypt records to the oracle.
            verification_key_pem: PEM key used to verify oracle signatures.
            raw_quote: Opaque attestation quote carried alongside the keys.

        Returns:
            Immutable AttestedKeyBundle.

        Raises:
            MalformedKey: If either key lacks valid PEM framing.
            UnsupportedKeyType: If either key is not an acceptable RSA key.
        """
        encryption_key = self.load_public_key(encryption_key_pem)
        verification_key = self.load_public_key(verification_key_pem)

        bundle = AttestedKeyBundle(
            encryption_key=encryption_key,
            verification_key=verification_key,
            raw_quote=raw_quote or b"",
            encryption_key_fingerprint=fingerprint(encryption_key),
            verification_key_fingerprint=fingerprint(verification_key),
        )
        logger.debug(
            f"Imported attested keys: encryption {encryption_key.key_size} bits "
            f"({bundle.encryption_key_fingerprint[:16]}...), verification "
            f"{verification_key.key_size} bits ({bundle.verification_key_fingerprint[:16]}...)"
        )
        return bundle

    def import_quote(self, response: QuoteResponse) -> AttestedKeyBundle:
        """Import both keys from a GetPublicKey reply."""
        return self.import_keys(
            response.encryption_key_pem,
            response.verification_key_pem,
            raw_quote=response.quote,
        )
