import pytest
from fastapi.testclient import TestClient
from unittest.mock import patch, AsyncMock, MagicMock

from ccip_refill.main import app
from ccip_refill.settings import settings
from ccip_refill.api.auth import require_api_key
from ccip_refill.api.routes import get_container
from ccip_refill.core import state_machine as sm
from ccip_refill.core.errors import RefillUnavailable

client = TestClient(app)


@pytest.fixture
def container(store):
    c = MagicMock()
    c.store = store
    c.monitor.is_monitoring = False
    c.initiator.initiate = AsyncMock(return_value=True)
    c.initiator.reset_to_idle.side_effect = lambda: store.reset()
    return c


@pytest.fixture(autouse=True)
def overrides(container):
    app.dependency_overrides[require_api_key] = lambda: None
    app.dependency_overrides[get_container] = lambda: container
    yield
    app.dependency_overrides = {}


def test_health():
    assert client.get("/health").json() == {"status": "ok"}


def test_snapshot(store, container):
    store.set(status=sm.RUNNING, currentPhase=sm.OUTBOUND_SENT, progress=10, initialTxHash="0xaa",
              outboundMessageId="0x11", explorerUrls={"outbound": "https://ccip.chain.link/msg/0x11"})
    container.monitor.is_monitoring = True

    body = client.get("/refill").json()

    assert body == {
        "status": "running",
        "currentPhase": "outbound_sent",
        "progress": 10,
        "initialTxHash": "0xaa",
        "outboundMessageId": "0x11",
        "responseMessageId": None,
        "errorMessage": None,
        "explorerUrls": {"outbound": "https://ccip.chain.link/msg/0x11"},
        "monitoring": True,
    }


def test_initiate_accepted(store, container):
    async def initiate():
        store.set(status=sm.RUNNING, initialTxHash="0xaa")
        return True

    container.initiator.initiate = AsyncMock(side_effect=initiate)

    response = client.post("/refill")

    assert response.status_code == 202
    assert response.json()["accepted"] is True
    assert response.json()["status"] == "running"


def test_initiate_while_running_conflicts(store, container):
    store.set(status=sm.RUNNING, initialTxHash="0xaa")

    response = client.post("/refill")

    assert response.status_code == 409
    assert response.json()["accepted"] is False
    container.initiator.initiate.assert_not_awaited()


def test_initiate_failure_reports_failed_state(store, container):
    async def initiate():
        store.set(status=sm.FAILED, errorMessage="Transaction was canceled by user.")
        return False

    container.initiator.initiate = AsyncMock(side_effect=initiate)

    response = client.post("/refill")

    assert response.status_code == 200
    assert response.json()["status"] == "failed"
    assert "canceled" in response.json()["errorMessage"]


def test_initiate_without_signer(container):
    container.initiator.initiate = AsyncMock(side_effect=RefillUnavailable("Refill signer is not configured"))

    response = client.post("/refill")

    assert response.status_code == 503


def test_reset(store, container):
    store.set(status=sm.SUCCESS, currentPhase=sm.INBOUND_RECEIVED, progress=100)

    body = client.post("/refill/reset").json()

    assert body["status"] == "idle"
    assert body["progress"] == 0
    container.initiator.reset_to_idle.assert_called_once()


def test_api_key_required_when_configured():
    app.dependency_overrides.pop(require_api_key, None)
    with patch.object(settings, "API_KEY", "secret"):
        assert client.get("/refill").status_code == 401
        assert client.get("/refill", headers={"x-api-key": "secret"}).status_code == 200


def test_container_missing_before_startup():
    app.dependency_overrides.pop(get_container, None)
    assert client.get("/refill").status_code == 503
