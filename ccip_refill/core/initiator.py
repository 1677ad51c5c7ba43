from typing import Optional

from ccip_refill.chain.signer import TriggerSubmitter
from ccip_refill.core import state_machine as sm
from ccip_refill.core.errors import RefillUnavailable, classify_submission_error
from ccip_refill.core.monitor import RefillMonitor
from ccip_refill.notify.sink import ERROR, INFO
from ccip_refill.observability.logging import log
from ccip_refill.store.request_repo import PhaseStateStore


class RefillInitiator:
    def __init__(self, store: PhaseStateStore, monitor: RefillMonitor, submitter: Optional[TriggerSubmitter], sink):
        self.store = store
        self.monitor = monitor
        self.submitter = submitter
        self.sink = sink
        # Bumped by every initiate/reset so a submission can tell it was superseded
        self._attempt = 0

    async def initiate(self) -> bool:
        """
        Start a new refill request.

        Returns True once the trigger transaction was submitted and polling
        started. Returns False when a request is already running (no-op) or
        when submission failed; in the latter case the stored request is
        failed with a user-facing message.
        """
        if self.store.get().status == sm.RUNNING:
            log(event="refill_initiate_ignored", reason="already_running")
            return False
        if self.submitter is None:
            raise RefillUnavailable("Refill signer is not configured")

        self._attempt += 1
        attempt = self._attempt
        self.monitor.stop()
        self.store.reset()
        self.store.set(status=sm.RUNNING, currentPhase=sm.REQUEST_CLICKED, progress=sm.progress_for(sm.REQUEST_CLICKED))
        log(event="refill_initiate_start")

        try:
            await self.submitter.simulate()
            tx_hash = await self.submitter.write()
        except Exception as e:
            err = classify_submission_error(e)
            if self._superseded(attempt):
                log(event="refill_initiate_superseded", kind=type(err).__name__, error=str(e)[:300])
                return False
            self.monitor.stop()
            self.store.set(status=sm.FAILED, errorMessage=str(err))
            log(event="refill_initiate_failed", kind=type(err).__name__, errorType=type(e).__name__,
                error=str(e)[:300])
            self.sink.notify(ERROR, "Refill failed", str(err))
            return False

        if self._superseded(attempt):
            log(event="refill_initiate_superseded", txHash=tx_hash, status=self.store.get().status)
            return False

        self.store.set(initialTxHash=tx_hash)
        self.monitor.start(tx_hash)
        self.sink.notify(INFO, sm.PHASE_TITLES[sm.REQUEST_CLICKED], f"Refill transaction submitted: {tx_hash}")
        return True

    def _superseded(self, attempt: int) -> bool:
        current = self.store.get()
        return (
            attempt != self._attempt
            or current.status != sm.RUNNING
            or current.currentPhase != sm.REQUEST_CLICKED
            or bool(current.initialTxHash)
        )

    def reset_to_idle(self):
        self._attempt += 1
        self.monitor.stop()
        log(event="refill_reset_to_idle", previousStatus=self.store.get().status)
        return self.store.reset()
