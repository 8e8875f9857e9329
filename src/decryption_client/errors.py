"""Error taxonomy for the decryption client.

Errors fall into three propagation classes:

- Trust errors (key import, commitment verification): abort the session.
- Load errors: ``FixtureCorrupt`` aborts the whole ciphertext load, while
  ``ProofRecordMalformed`` only drops the offending proof entry.
- Per-request errors (``OracleRejected``, ``TransportError``, ``Cancelled``):
  recorded in the item's outcome; the batch continues.
"""

from typing import Optional


class DecryptionClientError(Exception):
    """Base exception for all decryption client errors."""

    pass


# --- Key import -------------------------------------------------------------


class KeyImportError(DecryptionClientError):
    """Error importing attested public key material."""

    pass


class MalformedKey(KeyImportError):
    """PEM framing is absent or the encoded payload cannot be read."""

    pass


class UnsupportedKeyType(KeyImportError):
    """The DER payload decodes to something other than an RSA public key."""

    pass


class KeyTooWeak(UnsupportedKeyType):
    """RSA key is smaller than the configured minimum size."""

    def __init__(self, key_size: int, min_key_bits: int):
        self.key_size = key_size
        self.min_key_bits = min_key_bits
        super().__init__(
            f"RSA key of {key_size} bits is below the {min_key_bits}-bit minimum"
        )


# --- Commitment verification ------------------------------------------------


class VerificationError(DecryptionClientError):
    """Root commitment could not be trusted."""

    pass


class StaleOrForgedNonce(VerificationError):
    """Commitment nonce does not match the nonce that was sent."""

    pass


class SignatureInvalid(VerificationError):
    """Commitment signature does not validate under the verification key."""

    pass


class UntrustedStateError(DecryptionClientError):
    """Dispatch refused because the record log commitment was not verified."""

    pass


# --- Fixture loading ----------------------------------------------------------


class FixtureCorrupt(DecryptionClientError):
    """Ciphertext table could not be loaded in full."""

    def __init__(self, message: str, line_number: Optional[int] = None):
        self.line_number = line_number
        if line_number is not None:
            message = f"line {line_number}: {message}"
        super().__init__(message)


class ProofRecordMalformed(DecryptionClientError):
    """A single proof table entry could not be parsed."""

    def __init__(self, message: str, line_number: Optional[int] = None, line: str = ""):
        self.line_number = line_number
        self.line = line
        if line_number is not None:
            message = f"line {line_number}: {message}"
        super().__init__(message)


# --- Per-request errors -------------------------------------------------------


class DecryptError(DecryptionClientError):
    """A single decryption request failed."""

    pass


class OracleRejected(DecryptError):
    """The oracle refused the request (bad proof, undecryptable record)."""

    pass


class TransportError(DecryptError):
    """The request did not reach the oracle or the reply was lost."""

    pass


class Cancelled(DecryptError):
    """The batch was cancelled before the request was issued."""

    pass


# --- Record encryption --------------------------------------------------------


class RecordEncryptionError(DecryptionClientError):
    """Error encrypting a record under the attested encryption key."""

    pass
