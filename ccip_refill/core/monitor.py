import asyncio
from typing import Optional

from ccip_refill.chain.abi import (
    FAUCET_ABI,
    REFILL_TRIGGERED_TOPIC,
    RESERVOIR_REFILLED_TOPIC,
    VOLATILITY_RESPONSE_SENT_TOPIC,
)
from ccip_refill.chain.client import ChainReader
from ccip_refill.core import state_machine as sm
from ccip_refill.notify.sink import INFO, SUCCESS
from ccip_refill.observability.logging import log
from ccip_refill.settings import settings
from ccip_refill.store.models import RefillRequest
from ccip_refill.store.request_repo import PhaseStateStore


def _first_topic_match(logs: list, topic0: str) -> Optional[dict]:
    for entry in logs or []:
        topics = entry.get("topics") or []
        if topics and str(topics[0]).lower() == topic0:
            return entry
    return None


def _indexed_id(entry: Optional[dict]) -> Optional[str]:
    """First indexed argument (topics[1]) of a matched log, if any."""
    if not entry:
        return None
    topics = entry.get("topics") or []
    return topics[1] if len(topics) > 1 else None


class RefillMonitor:
    """
    Drives a running refill request through its phases.

    One asyncio task polls on a fixed interval. Every tick runs a skip-ahead
    scan over the phases followed by a reconciliation read of the faucet's
    refillInProgress flag. Writes are dropped once the task generation they
    started under has been superseded by stop() or a new start().
    """

    def __init__(
        self,
        store: PhaseStateStore,
        active: ChainReader,
        helper: ChainReader,
        sink,
        faucet_address: str = "",
        helper_address: str = "",
        interval_sec: Optional[float] = None,
        helper_lookback: Optional[int] = None,
        active_lookback: Optional[int] = None,
        degraded_after: Optional[int] = None,
        receipt_grace_ticks: Optional[int] = None,
        explorer_base_url: Optional[str] = None,
    ):
        self.store = store
        self.active = active
        self.helper = helper
        self.sink = sink
        self.faucet_address = faucet_address or settings.FAUCET_ADDRESS
        self.helper_address = helper_address or settings.HELPER_ADDRESS
        self.interval_sec = settings.POLL_INTERVAL_SEC if interval_sec is None else interval_sec
        self.helper_lookback = settings.HELPER_LOOKBACK_BLOCKS if helper_lookback is None else helper_lookback
        self.active_lookback = settings.ACTIVE_LOOKBACK_BLOCKS if active_lookback is None else active_lookback
        self.degraded_after = settings.POLL_DEGRADED_AFTER if degraded_after is None else degraded_after
        self.receipt_grace_ticks = settings.RECEIPT_GRACE_TICKS if receipt_grace_ticks is None else receipt_grace_ticks
        self.explorer_base_url = (explorer_base_url or settings.CCIP_EXPLORER_BASE_URL).rstrip("/")

        self._task: Optional[asyncio.Task] = None
        self._generation = 0
        self._consecutive_failures = 0
        self._pending_receipt_ticks = 0

    # ------------------------------------------------------------------
    # Timer lifecycle
    # ------------------------------------------------------------------
    @property
    def is_monitoring(self) -> bool:
        return self._task is not None and not self._task.done()

    def start(self, tx_hash: Optional[str] = None) -> bool:
        if self.is_monitoring:
            log(event="refill_monitor_already_running", txHash=tx_hash)
            return False
        self._generation += 1
        self._consecutive_failures = 0
        self._pending_receipt_ticks = 0
        self._task = asyncio.create_task(self._run(self._generation))
        log(event="refill_monitor_started", txHash=tx_hash, generation=self._generation,
            intervalSec=self.interval_sec)
        return True

    def stop(self) -> None:
        self._generation += 1
        task, self._task = self._task, None
        if task is None or task.done():
            return
        try:
            current = asyncio.current_task()
        except RuntimeError:
            current = None
        # A tick stopping its own task exits through the generation check instead.
        if task is not current:
            task.cancel()
        log(event="refill_monitor_stopped", generation=self._generation)

    async def _run(self, generation: int) -> None:
        while generation == self._generation:
            await asyncio.sleep(self.interval_sec)
            if generation != self._generation:
                break
            try:
                await self.tick()
            except Exception as e:
                self._note_failure("tick", e)

    def _is_current(self, generation: int) -> bool:
        return generation == self._generation and self.store.get().status == sm.RUNNING

    # ------------------------------------------------------------------
    # Startup
    # ------------------------------------------------------------------
    async def resume(self) -> RefillRequest:
        """Reconcile a persisted running request, then restart polling for it."""
        current = self.store.get()
        if current.status != sm.RUNNING:
            return current
        if not current.initialTxHash:
            # Interrupted before the trigger was ever submitted.
            log(event="refill_resume_without_tx", currentPhase=current.currentPhase)
            return self.store.reset()

        log(event="refill_resume", currentPhase=current.currentPhase, txHash=current.initialTxHash)
        # The flag is read before any scan, so a refill that completed while the
        # process was down ends as idle rather than success.
        await self.reconcile()
        if self.store.get().status == sm.RUNNING:
            self.start(current.initialTxHash)
        return self.store.get()

    # ------------------------------------------------------------------
    # One polling tick
    # ------------------------------------------------------------------
    async def tick(self) -> RefillRequest:
        generation = self._generation
        snapshot = self.store.get()
        if snapshot.status != sm.RUNNING:
            return snapshot

        failures_before = self._consecutive_failures
        receipt_pending = False
        try:
            receipt_pending = await self._scan(generation, snapshot)
        except Exception as e:
            self._note_failure("scan", e)

        if self._is_current(generation):
            if receipt_pending and self._within_receipt_grace(snapshot.initialTxHash):
                log(event="refill_reconcile_deferred", txHash=snapshot.initialTxHash,
                    pendingTicks=self._pending_receipt_ticks)
            else:
                await self.reconcile(generation=generation)

        if self._consecutive_failures == failures_before:
            self._consecutive_failures = 0
        return self.store.get()

    def _note_failure(self, stage: str, e: Exception) -> None:
        self._consecutive_failures += 1
        log(event="refill_poll_error", stage=stage, errorType=type(e).__name__, error=str(e)[:300],
            consecutiveFailures=self._consecutive_failures)
        if self._consecutive_failures == self.degraded_after:
            log(event="refill_poll_degraded", consecutiveFailures=self._consecutive_failures)

    def _within_receipt_grace(self, tx_hash: Optional[str]) -> bool:
        """Count a tick spent waiting for the trigger receipt; False once the grace window is used up."""
        if self._pending_receipt_ticks < self.receipt_grace_ticks:
            self._pending_receipt_ticks += 1
            return True
        if self._pending_receipt_ticks == self.receipt_grace_ticks:
            self._pending_receipt_ticks += 1
            log(event="refill_receipt_grace_expired", txHash=tx_hash, ticks=self.receipt_grace_ticks)
        return False

    async def _scan(self, generation: int, snapshot: RefillRequest) -> bool:
        """
        Skip-ahead scan. Returns True while the trigger receipt is still pending.

        Bookkeeping steps only fire for identifiers that were already known when
        the tick began; evidence steps look at the freshest state.
        """
        current = snapshot

        if current.currentPhase == sm.REQUEST_CLICKED:
            if not current.initialTxHash:
                return True
            receipt = await self.active.get_transaction_receipt(current.initialTxHash)
            if receipt is None:
                log(event="refill_receipt_pending", txHash=current.initialTxHash)
                return True
            if receipt.get("status") != 1:
                await self._log_revert_diagnostics(current.initialTxHash)
            else:
                outbound_id = _indexed_id(_first_topic_match(receipt.get("logs"), REFILL_TRIGGERED_TOPIC))
                if not outbound_id:
                    log(event="refill_trigger_event_missing", txHash=current.initialTxHash,
                        logsCount=len(receipt.get("logs") or []))
                elif not self._advance(generation, sm.REQUEST_CONFIRMED, outboundMessageId=outbound_id):
                    return False
                else:
                    current = self.store.get()

        if current.currentPhase == sm.REQUEST_CONFIRMED and snapshot.outboundMessageId:
            if not self._advance(generation, sm.OUTBOUND_SENT):
                return False
            current = self.store.get()

        if current.currentPhase in (sm.REQUEST_CONFIRMED, sm.OUTBOUND_SENT):
            logs = await self.helper.get_recent_logs(self.helper_address, self.helper_lookback)
            response_id = _indexed_id(_first_topic_match(logs, VOLATILITY_RESPONSE_SENT_TOPIC))
            if response_id:
                if not self._advance(generation, sm.OUTBOUND_RECEIVED, responseMessageId=response_id):
                    return False
                current = self.store.get()

        if current.currentPhase == sm.OUTBOUND_RECEIVED and snapshot.responseMessageId:
            if not self._advance(generation, sm.INBOUND_SENT):
                return False
            current = self.store.get()

        if current.currentPhase == sm.INBOUND_SENT:
            logs = await self.active.get_recent_logs(self.faucet_address, self.active_lookback)
            if _first_topic_match(logs, RESERVOIR_REFILLED_TOPIC):
                self._advance(generation, sm.INBOUND_RECEIVED)

        return False

    def _explorer_url(self, message_id: str) -> str:
        return f"{self.explorer_base_url}/{message_id}"

    def _advance(self, generation: int, target: str, **fields) -> bool:
        """Move forward to `target`. Returns False when the write was refused."""
        current = self.store.get()
        if not self._is_current(generation):
            log(event="refill_stale_result_dropped", target=target, status=current.status)
            return False
        if not sm.is_after(target, current.currentPhase):
            return True

        updates = dict(fields)
        updates["currentPhase"] = target
        updates["progress"] = sm.progress_for(target)

        urls = dict(current.explorerUrls)
        outbound_id = fields.get("outboundMessageId") or current.outboundMessageId
        response_id = fields.get("responseMessageId") or current.responseMessageId
        if sm.at_least(target, sm.OUTBOUND_SENT) and outbound_id and "outbound" not in urls:
            urls["outbound"] = self._explorer_url(outbound_id)
        if sm.at_least(target, sm.INBOUND_SENT) and response_id and "inbound" not in urls:
            urls["inbound"] = self._explorer_url(response_id)
        if urls != current.explorerUrls:
            updates["explorerUrls"] = urls

        completed = sm.phases_between(current.currentPhase, target)
        if target == sm.INBOUND_RECEIVED:
            updates["status"] = sm.SUCCESS

        updated = self.store.set(**updates)
        log(
            event="refill_phase_advanced",
            fromPhase=current.currentPhase,
            toPhase=target,
            progress=updated.progress,
            skipped=max(0, len(completed) - 1),
        )

        for phase in completed:
            if phase == sm.INBOUND_RECEIVED:
                continue
            self.sink.notify(INFO, sm.PHASE_TITLES[phase], f"Refill progress {sm.progress_for(phase)}%")
        if updated.status == sm.SUCCESS:
            self.stop()
            self.sink.notify(SUCCESS, sm.PHASE_TITLES[sm.INBOUND_RECEIVED],
                             "Faucet reservoirs were refilled through CCIP.")
        return True

    async def _log_revert_diagnostics(self, tx_hash: str) -> None:
        diagnostics = {}
        for fn in ("getReservoirStatus", "thresholdFactor", "refillInProgress"):
            try:
                value = await self.active.read_contract(self.faucet_address, FAUCET_ABI, fn)
                diagnostics[fn] = [int(v) for v in value] if isinstance(value, (list, tuple)) else value
            except Exception as e:
                diagnostics[fn] = f"unavailable: {type(e).__name__}"
        log(event="refill_trigger_reverted", txHash=tx_hash, diagnostics=diagnostics)

    # ------------------------------------------------------------------
    # Reconciliation
    # ------------------------------------------------------------------
    async def reconcile(self, generation: Optional[int] = None) -> bool:
        """
        Check the faucet's refillInProgress flag. Returns False when the local
        request was reset because the chain reports no refill in progress.
        """
        generation = self._generation if generation is None else generation
        current = self.store.get()
        if current.status != sm.RUNNING:
            return False

        try:
            in_progress = await self.active.read_contract(self.faucet_address, FAUCET_ABI, "refillInProgress")
        except Exception as e:
            self._note_failure("reconcile", e)
            return True

        if in_progress:
            return True
        if not self._is_current(generation):
            log(event="refill_stale_result_dropped", target="reconcile")
            return False

        log(
            event="refill_false_positive_reset",
            currentPhase=current.currentPhase,
            progress=current.progress,
            txHash=current.initialTxHash,
        )
        self.store.reset()
        self.stop()
        return False
