"""Content-addressed store of record ciphertexts.

The ciphertext table is one record per line, comma-separated, with the
base64 ciphertext in the second field. Other fields are ignored: records
are keyed by the SHA-256 of the decoded ciphertext, never by a supplied
label.

Loading is all-or-nothing. One undecodable line fails the whole load with
``FixtureCorrupt``.
"""

import base64
import binascii
import hashlib
import logging
from pathlib import Path
from typing import Dict, Iterable, Iterator, Mapping, Optional

from decryption_client.errors import FixtureCorrupt

logger = logging.getLogger(__name__)

CIPHERTEXT_FIELD = 1


def record_digest(ciphertext: bytes) -> bytes:
    """Content address of a record."""
    return hashlib.sha256(ciphertext).digest()


class CiphertextIndex(Mapping[bytes, bytes]):
    """Immutable digest -> ciphertext mapping.

    Identical ciphertexts collapse to a single entry (last write wins,
    which is harmless since the content is the same). Once built the
    index is read-only and may be shared across worker threads.
    """

    def __init__(self, records: Optional[Dict[bytes, bytes]] = None):
        self._records: Dict[bytes, bytes] = dict(records or {})

    @classmethod
    def from_ciphertexts(cls, ciphertexts: Iterable[bytes]) -> "CiphertextIndex":
        """Build an index directly from raw ciphertexts."""
        return cls({record_digest(ct): ct for ct in ciphertexts})

    @classmethod
    def load(cls, lines: Iterable[str]) -> "CiphertextIndex":
        """Parse ciphertext table lines.

        Args:
            lines: Iterable of table lines (trailing newlines allowed).

        Returns:
            Populated CiphertextIndex.

        Raises:
            FixtureCorrupt: If any line lacks a ciphertext field or its
                ciphertext is not valid base64.
        """
        records: Dict[bytes, bytes] = {}
        duplicates = 0

        for line_number, raw in enumerate(lines, start=1):
            line = raw.strip()
            if not line:
                continue

            fields = line.split(",")
            if len(fields) <= CIPHERTEXT_FIELD:
                raise FixtureCorrupt("missing ciphertext field", line_number=line_number)

            try:
                ciphertext = base64.b64decode(fields[CIPHERTEXT_FIELD].strip(), validate=True)
            except (binascii.Error, ValueError) as e:
                raise FixtureCorrupt(f"ciphertext is not valid base64: {e}", line_number=line_number) from e

            digest = record_digest(ciphertext)
            if digest in records:
                duplicates += 1
            records[digest] = ciphertext

        if duplicates:
            logger.debug(f"Ciphertext table contained {duplicates} duplicate records")
        logger.info(f"Loaded {len(records)} ciphertexts into index")
        return cls(records)

    @classmethod
    def load_file(cls, path: Path) -> "CiphertextIndex":
        """Load a ciphertext table from disk.

        Raises:
            FixtureCorrupt: If the file cannot be read or any line is corrupt.
        """
        try:
            with open(path, "r", encoding="utf-8") as f:
                return cls.load(f)
        except OSError as e:
            raise FixtureCorrupt(f"Failed to read ciphertext table {path}: {e}") from e
        except UnicodeDecodeError as e:
            raise FixtureCorrupt(f"Ciphertext table {path} is not UTF-8 text: {e}") from e

    def get(self, digest: bytes, default: Optional[bytes] = None) -> Optional[bytes]:
        """Ciphertext for ``digest``, or ``default`` if not held locally."""
        return self._records.get(bytes(digest), default)

    def digests(self) -> Iterator[bytes]:
        return iter(self._records)

    def __getitem__(self, digest: bytes) -> bytes:
        return self._records[bytes(digest)]

    def __iter__(self) -> Iterator[bytes]:
        return iter(self._records)

    def __len__(self) -> int:
        return len(self._records)

    def __repr__(self) -> str:
        return f"CiphertextIndex({len(self._records)} records)"
