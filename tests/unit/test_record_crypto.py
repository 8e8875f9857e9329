"""Unit tests for record encryption to the attested key."""

import base64

import pytest

from decryption_client.errors import RecordEncryptionError
from decryption_client.services.record_crypto import (
    SELF_TEST_PLAINTEXTS,
    PaddingScheme,
    ciphertext_line,
    encrypt_record,
    max_plaintext_size,
)


class TestEncryptRecord:
    @pytest.mark.parametrize("scheme", list(PaddingScheme))
    def test_oracle_decrypts_both_schemes(self, oracle, encryption_private_key, scheme):
        key = encryption_private_key.public_key()
        ciphertext = encrypt_record(b"patient 42", key, scheme=scheme)

        assert len(ciphertext) == 256
        assert oracle.decrypt_record(ciphertext, "pop", "poe") == b"patient 42"

    def test_encryption_is_randomized(self, encryption_private_key):
        key = encryption_private_key.public_key()
        assert encrypt_record(b"same", key) != encrypt_record(b"same", key)

    def test_oaep_label_is_bound(self, encryption_private_key):
        """A ciphertext under another label does not decrypt as ``record``."""
        from cryptography.hazmat.primitives import hashes
        from cryptography.hazmat.primitives.asymmetric import padding

        ciphertext = encrypt_record(b"data", encryption_private_key.public_key(), label=b"other")
        with pytest.raises(ValueError):
            encryption_private_key.decrypt(
                ciphertext,
                padding.OAEP(
                    mgf=padding.MGF1(algorithm=hashes.SHA256()),
                    algorithm=hashes.SHA256(),
                    label=b"record",
                ),
            )

    def test_max_sizes_for_2048_bit_key(self, encryption_private_key):
        key = encryption_private_key.public_key()
        assert max_plaintext_size(key, PaddingScheme.OAEP_SHA256) == 190
        assert max_plaintext_size(key, PaddingScheme.PKCS1V15) == 245

    @pytest.mark.parametrize("scheme", list(PaddingScheme))
    def test_oversized_record_rejected(self, encryption_private_key, scheme):
        key = encryption_private_key.public_key()
        too_big = b"x" * (max_plaintext_size(key, scheme) + 1)
        with pytest.raises(RecordEncryptionError, match="exceeds"):
            encrypt_record(too_big, key, scheme=scheme)

    def test_self_test_samples_fit(self, encryption_private_key):
        key = encryption_private_key.public_key()
        for scheme in PaddingScheme:
            assert len(SELF_TEST_PLAINTEXTS[scheme.value]) <= max_plaintext_size(key, scheme)


class TestCiphertextLine:
    def test_line_format(self):
        assert ciphertext_line("A1B2C3D4", b"hello") == f"A1B2C3D4,{base64.b64encode(b'hello').decode()}"

    def test_comma_in_label_rejected(self):
        with pytest.raises(ValueError, match="commas"):
            ciphertext_line("a,b", b"x")
