"""Unit tests for attested key import.

Tests:
- Valid RSA key import and fingerprints
- PEM framing errors
- Non-RSA and undersized keys
- Quote import
"""

import hashlib

import pytest
from cryptography.hazmat.primitives import serialization
from cryptography.hazmat.primitives.asymmetric import ec, ed25519

from decryption_client.errors import (
    KeyImportError,
    KeyTooWeak,
    MalformedKey,
    UnsupportedKeyType,
)
from decryption_client.schemas.keys import QuoteResponse
from decryption_client.services.key_importer import KeyImporter, fingerprint, pem_to_der


def _pem(public_key) -> bytes:
    return public_key.public_bytes(
        encoding=serialization.Encoding.PEM,
        format=serialization.PublicFormat.SubjectPublicKeyInfo,
    )


class TestPemToDer:
    """Tests for the PEM framing phase."""

    def test_returns_der_payload(self, encryption_private_key, encryption_pem):
        """DER bytes match the key's SubjectPublicKeyInfo encoding."""
        expected = encryption_private_key.public_key().public_bytes(
            encoding=serialization.Encoding.DER,
            format=serialization.PublicFormat.SubjectPublicKeyInfo,
        )
        assert pem_to_der(encryption_pem) == expected

    def test_accepts_str_input(self, encryption_pem):
        """PEM text may be passed as str."""
        assert pem_to_der(encryption_pem.decode("ascii")) == pem_to_der(encryption_pem)

    def test_missing_framing_raises_malformed(self):
        """Raw base64 without BEGIN/END lines is malformed."""
        with pytest.raises(MalformedKey, match="no PEM block"):
            pem_to_der(b"MIIBIjANBgkqhkiG9w0BAQEFAAOCAQ8AMIIBCgKCAQEA")

    def test_empty_input_raises_malformed(self):
        with pytest.raises(MalformedKey):
            pem_to_der(b"")

    def test_invalid_base64_body_raises_malformed(self):
        """Body characters outside the base64 alphabet are malformed."""
        pem = b"-----BEGIN PUBLIC KEY-----\n!!!not base64!!!\n-----END PUBLIC KEY-----\n"
        with pytest.raises(MalformedKey, match="not valid base64"):
            pem_to_der(pem)

    def test_wrong_block_type_raises_unsupported(self):
        """A certificate block is framed but is not a public key."""
        pem = b"-----BEGIN CERTIFICATE-----\nAAAA\n-----END CERTIFICATE-----\n"
        with pytest.raises(UnsupportedKeyType, match="CERTIFICATE"):
            pem_to_der(pem)

    def test_leading_text_is_ignored(self, encryption_pem):
        """Quote responses may carry text before the PEM block."""
        assert pem_to_der(b"quote header\n" + encryption_pem) == pem_to_der(encryption_pem)


class TestKeyImporter:
    """Tests for KeyImporter.import_keys."""

    def test_import_valid_keys(self, encryption_pem, verification_pem, encryption_private_key):
        """Two 2048-bit RSA keys import into a bundle."""
        bundle = KeyImporter().import_keys(encryption_pem, verification_pem, raw_quote=b"quote")

        assert bundle.encryption_key.key_size == 2048
        assert bundle.verification_key.key_size == 2048
        assert bundle.raw_quote == b"quote"
        assert (
            bundle.encryption_key.public_numbers()
            == encryption_private_key.public_key().public_numbers()
        )

    def test_fingerprints_are_der_sha256(self, encryption_pem, verification_pem):
        bundle = KeyImporter().import_keys(encryption_pem, verification_pem)
        assert bundle.encryption_key_fingerprint == hashlib.sha256(pem_to_der(encryption_pem)).hexdigest()
        assert bundle.verification_key_fingerprint == fingerprint(bundle.verification_key)

    def test_bundle_is_immutable(self, encryption_pem, verification_pem):
        bundle = KeyImporter().import_keys(encryption_pem, verification_pem)
        with pytest.raises(Exception):
            bundle.raw_quote = b"other"

    def test_weak_rsa_key_rejected(self, weak_private_key, verification_pem):
        """A 1024-bit key is an attestation downgrade."""
        with pytest.raises(KeyTooWeak) as exc_info:
            KeyImporter().import_keys(_pem(weak_private_key.public_key()), verification_pem)

        assert exc_info.value.key_size == 1024
        assert exc_info.value.min_key_bits == 2048
        assert isinstance(exc_info.value, UnsupportedKeyType)

    @pytest.mark.parametrize("bits", [512, 1024, 2047])
    def test_floor_cannot_be_lowered(self, bits):
        """An importer configured below 2048 bits is refused outright."""
        with pytest.raises(ValueError, match="at least 2048"):
            KeyImporter(min_key_bits=bits)

    def test_stricter_minimum_rejects_2048(self, encryption_pem, verification_pem):
        with pytest.raises(KeyTooWeak):
            KeyImporter(min_key_bits=3072).import_keys(encryption_pem, verification_pem)

    def test_ec_key_rejected(self, encryption_pem):
        """An EC public key is not an RSA key."""
        ec_pem = _pem(ec.generate_private_key(ec.SECP256R1()).public_key())
        with pytest.raises(UnsupportedKeyType, match="expected an RSA public key"):
            KeyImporter().import_keys(encryption_pem, ec_pem)

    def test_ed25519_key_rejected(self, verification_pem):
        ed_pem = _pem(ed25519.Ed25519PrivateKey.generate().public_key())
        with pytest.raises(UnsupportedKeyType):
            KeyImporter().import_keys(ed_pem, verification_pem)

    def test_garbage_der_rejected_as_unsupported(self, verification_pem):
        """Well-framed PEM with a non-key DER payload."""
        pem = b"-----BEGIN PUBLIC KEY-----\nAAECAwQFBgcICQ==\n-----END PUBLIC KEY-----\n"
        with pytest.raises(UnsupportedKeyType):
            KeyImporter().import_keys(pem, verification_pem)

    def test_missing_framing_on_verification_key(self, encryption_pem):
        with pytest.raises(MalformedKey):
            KeyImporter().import_keys(encryption_pem, b"not a key")

    def test_all_errors_share_base_class(self):
        assert issubclass(MalformedKey, KeyImportError)
        assert issubclass(UnsupportedKeyType, KeyImportError)


class TestImportQuote:
    """Tests for importing from a GetPublicKey reply."""

    def test_import_quote_carries_raw_quote(self, encryption_pem, verification_pem):
        response = QuoteResponse(
            quote=b"\x01\x02quote",
            encryption_key_pem=encryption_pem,
            verification_key_pem=verification_pem,
        )
        bundle = KeyImporter().import_quote(response)

        assert bundle.raw_quote == b"\x01\x02quote"
        assert bundle.describe()["quote_bytes"] == 7
