import pytest
from unittest.mock import AsyncMock, MagicMock

from ccip_refill.core.monitor import RefillMonitor
from ccip_refill.store.request_repo import PhaseStateStore

FAUCET = "0x" + "fa" * 20
HELPER = "0x" + "be" * 20
EXPLORER = "https://ccip.example/msg"


class FakeRedis:
    """Just enough of the redis hash API for the state store."""

    def __init__(self):
        self.hashes = {}

    def hgetall(self, key):
        return dict(self.hashes.get(key, {}))

    def hset(self, key, mapping=None, **kwargs):
        bucket = self.hashes.setdefault(key, {})
        bucket.update(mapping or {})
        return len(mapping or {})


@pytest.fixture
def fake_redis():
    return FakeRedis()


@pytest.fixture
def store(fake_redis):
    return PhaseStateStore(redis=fake_redis, key="faucet-store")


def _reader(name):
    reader = MagicMock()
    reader.name = name
    reader.get_transaction_receipt = AsyncMock(return_value=None)
    reader.get_recent_logs = AsyncMock(return_value=[])
    reader.read_contract = AsyncMock(return_value=True)
    return reader


@pytest.fixture
def active():
    return _reader("active")


@pytest.fixture
def helper():
    return _reader("helper")


@pytest.fixture
def sink():
    return MagicMock()


@pytest.fixture
def monitor(store, active, helper, sink):
    return RefillMonitor(
        store,
        active,
        helper,
        sink,
        faucet_address=FAUCET,
        helper_address=HELPER,
        interval_sec=15,
        helper_lookback=100,
        active_lookback=50,
        degraded_after=2,
        receipt_grace_ticks=2,
        explorer_base_url=EXPLORER,
    )
