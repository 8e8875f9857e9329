"""Store of per-record proof pairs from the tamper-evident log.

The proof table is one record per line, whitespace-separated:

    <hex digest> <presence proof> <extension proof>

The digest is the SHA-256 of the record ciphertext and doubles as the
lookup key into the CiphertextIndex. Unlike the ciphertext table, a bad
line only loses that entry: it is reported as ``ProofRecordMalformed``
and loading continues.
"""

import logging
from pathlib import Path
from typing import Dict, Iterable, Iterator, List, Optional

from decryption_client.errors import FixtureCorrupt, ProofRecordMalformed
from decryption_client.schemas.records import DIGEST_SIZE, ProofPair

logger = logging.getLogger(__name__)

PROOF_FIELDS = 3


def parse_proof_line(line: str, line_number: Optional[int] = None) -> ProofPair:
    """Parse one proof table line.

    Raises:
        ProofRecordMalformed: On too few fields, bad hex, or a digest that
            is not 32 bytes.
    """
    fields = line.split()
    if len(fields) < PROOF_FIELDS:
        raise ProofRecordMalformed(
            f"expected {PROOF_FIELDS} fields, got {len(fields)}",
            line_number=line_number,
            line=line,
        )

    digest_hex, presence, extension = fields[0], fields[1], fields[2]
    try:
        digest = bytes.fromhex(digest_hex)
    except ValueError as e:
        raise ProofRecordMalformed(
            f"digest is not valid hex: {e}", line_number=line_number, line=line
        ) from e

    if len(digest) != DIGEST_SIZE:
        raise ProofRecordMalformed(
            f"digest must be {DIGEST_SIZE} bytes, got {len(digest)}",
            line_number=line_number,
            line=line,
        )

    return ProofPair(digest=digest, presence=presence, extension=extension)


class ProofLedger:
    """Immutable digest -> ProofPair store in ledger order.

    Iteration follows the order digests first appeared in the proof table.
    A repeated digest keeps its first position and takes the latest proofs.

    Attributes:
        malformed: Entries rejected while loading, in table order.
    """

    def __init__(
        self,
        proofs: Optional[Iterable[ProofPair]] = None,
        malformed: Optional[List[ProofRecordMalformed]] = None,
    ):
        self._proofs: Dict[bytes, ProofPair] = {}
        for proof in proofs or ():
            self._proofs[proof.digest] = proof
        self.malformed: List[ProofRecordMalformed] = list(malformed or [])

    @classmethod
    def load(cls, lines: Iterable[str]) -> "ProofLedger":
        """Parse proof table lines, skipping malformed entries.

        Args:
            lines: Iterable of table lines (trailing newlines allowed).

        Returns:
            ProofLedger with every well-formed entry; rejected entries are
            listed in ``malformed``.
        """
        proofs: List[ProofPair] = []
        malformed: List[ProofRecordMalformed] = []

        for line_number, raw in enumerate(lines, start=1):
            line = raw.strip()
            if not line:
                continue
            try:
                proofs.append(parse_proof_line(line, line_number=line_number))
            except ProofRecordMalformed as e:
                logger.warning(f"Skipping malformed proof record: {e}")
                malformed.append(e)

        ledger = cls(proofs, malformed)
        logger.info(
            f"Loaded {len(ledger)} proof records ({len(malformed)} malformed)"
        )
        return ledger

    @classmethod
    def load_file(cls, path: Path) -> "ProofLedger":
        """Load a proof table from disk.

        Raises:
            FixtureCorrupt: If the file cannot be read at all.
        """
        try:
            with open(path, "r", encoding="utf-8") as f:
                return cls.load(f)
        except OSError as e:
            raise FixtureCorrupt(f"Failed to read proof table {path}: {e}") from e
        except UnicodeDecodeError as e:
            raise FixtureCorrupt(f"Proof table {path} is not UTF-8 text: {e}") from e

    def get(self, digest: bytes) -> Optional[ProofPair]:
        """Proof pair for ``digest``, or None."""
        return self._proofs.get(bytes(digest))

    def digests(self) -> Iterator[bytes]:
        return iter(self._proofs)

    def __iter__(self) -> Iterator[ProofPair]:
        return iter(self._proofs.values())

    def __contains__(self, digest: object) -> bool:
        return digest in self._proofs

    def __len__(self) -> int:
        return len(self._proofs)

    def __repr__(self) -> str:
        return f"ProofLedger({len(self._proofs)} proofs, {len(self.malformed)} malformed)"
