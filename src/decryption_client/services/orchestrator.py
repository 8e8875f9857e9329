"""Reconcile ciphertexts with log proofs and dispatch decryption requests.

Processing is split into two stages:

1. ``plan``: join the ProofLedger with the CiphertextIndex. Every ledger
   digest that has a local ciphertext becomes one DecryptionRequest, in
   ledger order. Ledger-only and index-only digests are skipped.
2. ``decrypt_all``: send each request to the oracle and yield one
   DecryptionOutcome per request.

Per-request failures (``OracleRejected``, ``TransportError``) are recorded
in that request's outcome; the rest of the batch still runs.

Dispatch is sequential when ``max_concurrent`` is 1, otherwise requests run
on a bounded thread pool. Outcomes are yielded in ledger order unless
``outcome_order`` is ``completion``. A cancellation event stops new
requests from being issued; requests that never went out are reported as
``cancelled``.
"""

import logging
import threading
from concurrent.futures import Future, ThreadPoolExecutor, as_completed
from typing import Dict, Iterable, Iterator, List, Optional

from decryption_client.config import ClientConfig, OutcomeOrder, VerificationPolicy
from decryption_client.errors import (
    Cancelled,
    OracleRejected,
    TransportError,
    UntrustedStateError,
    VerificationError,
)
from decryption_client.schemas.commitment import CommitmentReport
from decryption_client.schemas.records import (
    BatchSummary,
    DecryptionOutcome,
    DecryptionRequest,
    OutcomeStatus,
)
from decryption_client.services.ciphertext_index import CiphertextIndex
from decryption_client.services.interfaces import SendFn
from decryption_client.services.proof_ledger import ProofLedger

logger = logging.getLogger(__name__)


class DecryptionOrchestrator:
    """Builds authorized decrypt requests and collects their outcomes.

    Usage:
        orchestrator = DecryptionOrchestrator(send, config, verification=report)
        for outcome in orchestrator.decrypt_all(index, ledger):
            ...

    The index and ledger are only read, so one pair of stores can back
    several orchestrators or worker threads.
    """

    def __init__(
        self,
        send: SendFn,
        config: Optional[ClientConfig] = None,
        verification: Optional[CommitmentReport] = None,
    ):
        """Initialize the orchestrator.

        Args:
            send: Oracle boundary, ``(digest, ciphertext, proofs) -> plaintext``.
            config: Client configuration (policy, concurrency, ordering).
            verification: Result of verifying the root commitment the
                proofs refer to. When omitted, dispatch is not gated and
                outcomes are marked unauthenticated.
        """
        self._send = send
        self.config = config or ClientConfig()
        self.verification = verification
        self._cancel_event = threading.Event()

    def cancel(self) -> None:
        """Stop issuing new requests for batches using the default event."""
        self._cancel_event.set()

    # ------------------------------------------------------------------
    # Stage 1: reconciliation
    # ------------------------------------------------------------------

    def plan(self, index: CiphertextIndex, ledger: ProofLedger) -> List[DecryptionRequest]:
        """Join ledger proofs with local ciphertexts, in ledger order.

        The index is content-addressed, so a hit guarantees the ciphertext
        hashes to the ledger digest.
        """
        requests: List[DecryptionRequest] = []
        ledger_only = 0

        for proofs in ledger:
            ciphertext = index.get(proofs.digest)
            if ciphertext is None:
                ledger_only += 1
                continue
            requests.append(
                DecryptionRequest(digest=proofs.digest, ciphertext=ciphertext, proofs=proofs)
            )

        index_only = len(index) - len(requests)
        logger.debug(
            f"Reconciled {len(requests)} requests "
            f"({ledger_only} ledger-only, {index_only} index-only skipped)"
        )
        return requests

    # ------------------------------------------------------------------
    # Stage 2: dispatch
    # ------------------------------------------------------------------

    def _check_trust(self) -> bool:
        """Apply the verification policy.

        Returns:
            Whether outcomes are bound to a verified commitment.

        Raises:
            UntrustedStateError: If verification failed and the policy is
                abort_on_failure.
        """
        if self.verification is None:
            logger.warning(
                "No commitment report supplied; dispatching UNAUTHENTICATED requests "
                "not bound to a verified log"
            )
            return False

        if self.verification.valid:
            return True

        if self.config.verification_policy == VerificationPolicy.ABORT_ON_FAILURE:
            try:
                self.verification.raise_for_failure()
            except VerificationError as e:
                raise UntrustedStateError(
                    f"Refusing to dispatch decryption requests: {e}"
                ) from e

        logger.warning(
            "Root commitment verification FAILED; dispatching UNAUTHENTICATED "
            f"requests ({self.verification.error_code.value if self.verification.error_code else 'unknown'})"
        )
        return False

    def decrypt_all(
        self,
        index: CiphertextIndex,
        ledger: ProofLedger,
        cancel_event: Optional[threading.Event] = None,
    ) -> Iterator[DecryptionOutcome]:
        """Dispatch every reconciled request and yield its outcome.

        The trust gate is applied before anything is sent. The returned
        iterator is lazy and single-pass.

        Args:
            index: Ciphertexts keyed by content digest.
            ledger: Proof pairs in ledger order.
            cancel_event: Cancellation signal; defaults to the
                orchestrator's own event (see ``cancel``).

        Returns:
            Iterator of DecryptionOutcome, one per reconciled digest.

        Raises:
            UntrustedStateError: If the commitment failed verification and
                the policy is abort_on_failure.
        """
        authenticated = self._check_trust()
        requests = self.plan(index, ledger)
        event = cancel_event if cancel_event is not None else self._cancel_event

        if self.config.max_concurrent <= 1 or len(requests) <= 1:
            return self._run_sequential(requests, authenticated, event)
        return self._run_parallel(requests, authenticated, event)

    def _dispatch(
        self,
        request: DecryptionRequest,
        authenticated: bool,
        *events: threading.Event,
    ) -> DecryptionOutcome:
        """Send one request; never raises."""
        if any(e.is_set() for e in events):
            return DecryptionOutcome(
                digest=request.digest,
                status=OutcomeStatus.CANCELLED,
                error="batch cancelled before request was issued",
                authenticated=authenticated,
            )

        try:
            plaintext = self._send(request.digest, request.ciphertext, request.proofs)
        except OracleRejected as e:
            logger.warning(f"Oracle rejected record {request.digest_hex}: {e}")
            status, error = OutcomeStatus.ORACLE_REJECTED, str(e)
        except TransportError as e:
            logger.warning(f"Transport error for record {request.digest_hex}: {e}")
            status, error = OutcomeStatus.TRANSPORT_ERROR, str(e)
        except Cancelled as e:
            status, error = OutcomeStatus.CANCELLED, str(e)
        except Exception as e:
            logger.error(f"Unexpected error sending record {request.digest_hex}: {e}")
            status, error = OutcomeStatus.TRANSPORT_ERROR, f"{type(e).__name__}: {e}"
        else:
            if isinstance(plaintext, (bytes, bytearray)):
                logger.debug(f"DecryptRecord({request.digest_hex}) = {len(plaintext)} bytes")
                return DecryptionOutcome(
                    digest=request.digest,
                    status=OutcomeStatus.DECRYPTED,
                    plaintext=bytes(plaintext),
                    authenticated=authenticated,
                )
            logger.error(
                f"Oracle reply for record {request.digest_hex} is "
                f"{type(plaintext).__name__}, expected bytes"
            )
            status = OutcomeStatus.TRANSPORT_ERROR
            error = f"malformed reply: expected bytes, got {type(plaintext).__name__}"

        return DecryptionOutcome(
            digest=request.digest,
            status=status,
            error=error,
            authenticated=authenticated,
        )

    def _run_sequential(
        self,
        requests: List[DecryptionRequest],
        authenticated: bool,
        cancel_event: threading.Event,
    ) -> Iterator[DecryptionOutcome]:
        for request in requests:
            yield self._dispatch(request, authenticated, cancel_event)

    def _run_parallel(
        self,
        requests: List[DecryptionRequest],
        authenticated: bool,
        cancel_event: threading.Event,
    ) -> Iterator[DecryptionOutcome]:
        """Dispatch on a bounded thread pool.

        Abandoning the iterator early stops pending requests from being
        issued; in-flight requests finish before the pool shuts down.
        """
        max_workers = min(self.config.max_concurrent, len(requests))
        stop = threading.Event()
        in_input_order = self.config.outcome_order == OutcomeOrder.INPUT

        logger.info(
            f"Dispatching {len(requests)} decryption requests with {max_workers} workers"
        )

        with ThreadPoolExecutor(max_workers=max_workers) as executor:
            futures: Dict[Future, int] = {
                executor.submit(self._dispatch, request, authenticated, cancel_event, stop): i
                for i, request in enumerate(requests)
            }
            try:
                ready: Dict[int, DecryptionOutcome] = {}
                next_index = 0
                for future in as_completed(futures):
                    outcome = future.result()
                    if not in_input_order:
                        yield outcome
                        continue
                    ready[futures[future]] = outcome
                    while next_index in ready:
                        yield ready.pop(next_index)
                        next_index += 1
            finally:
                stop.set()
                for future in futures:
                    future.cancel()

    @staticmethod
    def summarize(outcomes: Iterable[DecryptionOutcome]) -> BatchSummary:
        """Partition outcomes into successes and failures."""
        return BatchSummary.from_outcomes(list(outcomes))
