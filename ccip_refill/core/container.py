from dataclasses import dataclass
from typing import Optional

from ccip_refill.chain.client import ChainReader
from ccip_refill.chain.signer import TriggerSubmitter, build_submitter
from ccip_refill.core.initiator import RefillInitiator
from ccip_refill.core.monitor import RefillMonitor
from ccip_refill.notify.sink import QueueNotificationSink
from ccip_refill.settings import settings
from ccip_refill.store.request_repo import PhaseStateStore


@dataclass
class RefillContainer:
    """Everything one process needs to run refills, built once at startup."""
    store: PhaseStateStore
    active: ChainReader
    helper: ChainReader
    submitter: Optional[TriggerSubmitter]
    sink: QueueNotificationSink
    monitor: RefillMonitor
    initiator: RefillInitiator


def build_container() -> RefillContainer:
    store = PhaseStateStore()
    active = ChainReader("active", settings.ACTIVE_RPC_URL)
    helper = ChainReader("helper", settings.HELPER_RPC_URL)
    submitter = build_submitter(active.w3, settings.SIGNER_PRIVATE_KEY, settings.FAUCET_ADDRESS,
                                settings.REFILL_TX_VALUE_WEI)
    sink = QueueNotificationSink()
    monitor = RefillMonitor(store, active, helper, sink)
    initiator = RefillInitiator(store, monitor, submitter, sink)
    return RefillContainer(
        store=store,
        active=active,
        helper=helper,
        submitter=submitter,
        sink=sink,
        monitor=monitor,
        initiator=initiator,
    )
