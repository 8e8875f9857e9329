"""End-to-end decryption session against an attested oracle.

A session runs the full client flow:

1. Request the attested public keys with a fresh nonce and import them.
2. Request a signed root tree hash with a fresh nonce and verify it under
   the attested verification key, applying the configured policy.
3. Optionally round-trip sample records through the oracle under both
   padding schemes.
4. Load the ciphertext and proof tables, reconcile, and dispatch.
"""

import logging
import secrets
import threading
from dataclasses import dataclass, field
from typing import Dict, Iterator, Optional, Tuple

from decryption_client.config import ClientConfig, VerificationPolicy
from decryption_client.errors import DecryptError, UntrustedStateError, VerificationError
from decryption_client.schemas.commitment import CommitmentReport
from decryption_client.schemas.keys import AttestedKeyBundle
from decryption_client.schemas.records import DecryptionOutcome
from decryption_client.services.ciphertext_index import CiphertextIndex
from decryption_client.services.commitment_verifier import RootCommitmentVerifier
from decryption_client.services.interfaces import DecryptionOracle, oracle_sender
from decryption_client.services.key_importer import KeyImporter
from decryption_client.services.orchestrator import DecryptionOrchestrator
from decryption_client.services.proof_ledger import ProofLedger
from decryption_client.services.record_crypto import (
    SELF_TEST_PLAINTEXTS,
    PaddingScheme,
    encrypt_record,
)

logger = logging.getLogger(__name__)


@dataclass
class TrustState:
    """Session trust established with the oracle."""

    keys: AttestedKeyBundle
    commitment: CommitmentReport

    @property
    def authenticated(self) -> bool:
        return self.commitment.valid


@dataclass
class SelfTestResult:
    """Outcome of the padding self-test for one scheme."""

    scheme: PaddingScheme
    passed: bool
    error: Optional[str] = None


@dataclass
class DecryptionSession:
    """Session-scoped client for one attested oracle.

    Usage:
        session = DecryptionSession(oracle, ClientConfig())
        session.establish_trust()
        index, ledger = session.load_stores()
        for outcome in session.decrypt(index, ledger):
            ...
    """

    oracle: DecryptionOracle
    config: ClientConfig = field(default_factory=ClientConfig)
    trust: Optional[TrustState] = None
    self_test: Optional[Dict[PaddingScheme, SelfTestResult]] = None

    def _nonce(self) -> bytes:
        return secrets.token_bytes(self.config.nonce_size)

    def establish_trust(self) -> TrustState:
        """Import the attested keys and verify the current root commitment.

        Returns:
            TrustState holding the key bundle and the commitment report.

        Raises:
            KeyImportError: If the attested keys are unusable.
            StaleOrForgedNonce: If the commitment is not fresh and the
                policy is abort_on_failure.
            SignatureInvalid: If the commitment signature is invalid and
                the policy is abort_on_failure.
        """
        key_nonce = self._nonce()
        quote = self.oracle.get_public_key(key_nonce)
        keys = KeyImporter(self.config.min_key_bits).import_quote(quote)
        logger.info(
            f"Imported attested keys (quote {len(quote.quote)} bytes, "
            f"encryption {keys.encryption_key.key_size} bits, "
            f"verification {keys.verification_key.key_size} bits)"
        )

        rth_nonce = self._nonce()
        commitment = self.oracle.get_root_tree_hash(rth_nonce)
        logger.info(
            f"RTH: {commitment.root_hash.hex()} Nonce: {commitment.nonce.hex()} "
            f"Signature: {commitment.signature[:31].hex()}..."
        )

        report = RootCommitmentVerifier().verify(commitment, rth_nonce, keys.verification_key)
        if not report.valid:
            if self.config.verification_policy == VerificationPolicy.ABORT_ON_FAILURE:
                report.raise_for_failure()
            logger.warning(
                "Continuing with an UNVERIFIED root commitment "
                "(verification_policy=proceed_unauthenticated)"
            )

        self.trust = TrustState(keys=keys, commitment=report)
        self.self_test = None
        return self.trust

    def _require_trust(self) -> TrustState:
        if self.trust is None:
            raise UntrustedStateError("Session trust not established; call establish_trust() first")
        return self.trust

    def padding_self_test(self) -> Dict[PaddingScheme, SelfTestResult]:
        """Round-trip a sample record through the oracle per padding scheme.

        The sample records carry no log proofs, so an oracle that enforces
        proofs will reject them; failures are reported, never raised. Results
        are kept on ``self_test`` until trust is re-established.
        """
        trust = self._require_trust()
        results: Dict[PaddingScheme, SelfTestResult] = {}

        for scheme in PaddingScheme:
            sample = SELF_TEST_PLAINTEXTS[scheme.value]
            ciphertext = encrypt_record(
                sample,
                trust.keys.encryption_key,
                scheme=scheme,
                label=self.config.oaep_label_bytes,
            )
            try:
                plaintext = self.oracle.decrypt_record(ciphertext, "{}", "{}")
            except DecryptError as e:
                logger.warning(f"Padding self-test ({scheme.value}) could not decrypt: {e}")
                results[scheme] = SelfTestResult(scheme=scheme, passed=False, error=str(e))
                continue

            passed = plaintext == sample
            if passed:
                logger.info(f"Padding self-test ({scheme.value}) passed")
            else:
                logger.warning(f"Padding self-test ({scheme.value}) returned unexpected plaintext")
            results[scheme] = SelfTestResult(
                scheme=scheme,
                passed=passed,
                error=None if passed else "plaintext mismatch",
            )

        self.self_test = results
        return results

    def load_stores(self) -> Tuple[CiphertextIndex, ProofLedger]:
        """Load both tables from the configured paths.

        Raises:
            FixtureCorrupt: If the ciphertext table cannot be fully loaded.
        """
        index = CiphertextIndex.load_file(self.config.records_path)
        ledger = ProofLedger.load_file(self.config.proofs_path)
        return index, ledger

    def decrypt(
        self,
        index: CiphertextIndex,
        ledger: ProofLedger,
        cancel_event: Optional[threading.Event] = None,
    ) -> Iterator[DecryptionOutcome]:
        """Dispatch the reconciled batch under the session's trust state.

        Raises:
            UntrustedStateError: If trust was not established, or the
                commitment failed and the policy is abort_on_failure.
        """
        trust = self._require_trust()
        if self.config.run_padding_self_test and self.self_test is None:
            self.padding_self_test()

        orchestrator = DecryptionOrchestrator(
            oracle_sender(self.oracle),
            self.config,
            verification=trust.commitment,
        )
        return orchestrator.decrypt_all(index, ledger, cancel_event=cancel_event)

    def run(self, cancel_event: Optional[threading.Event] = None) -> Iterator[DecryptionOutcome]:
        """Establish trust, load the configured tables, and decrypt.

        Raises:
            VerificationError: If the commitment is rejected under
                abort_on_failure.
        """
        try:
            self.establish_trust()
        except VerificationError:
            logger.error("Aborting session: root commitment could not be verified")
            raise
        index, ledger = self.load_stores()
        return self.decrypt(index, ledger, cancel_event=cancel_event)
