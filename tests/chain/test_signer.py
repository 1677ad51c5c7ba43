import asyncio
from unittest.mock import AsyncMock, MagicMock

from eth_account import Account
from web3 import Web3

from ccip_refill.chain.signer import TriggerSubmitter, build_submitter

KEY = "0x" + "11" * 32
FAUCET = "0x" + "fa" * 20


def _w3():
    w3 = MagicMock()
    trigger = MagicMock()
    trigger.call = AsyncMock(return_value=[])
    trigger.build_transaction = AsyncMock(return_value={
        "to": Web3.to_checksum_address(FAUCET),
        "value": 0,
        "gas": 120000,
        "gasPrice": 1_000_000_000,
        "nonce": 3,
        "chainId": 10143,
        "data": "0x1c6bb9f2",
    })
    w3.eth.contract.return_value.functions.triggerRefillCheck.return_value = trigger
    w3.eth.get_transaction_count = AsyncMock(return_value=3)
    w3.eth.send_raw_transaction = AsyncMock(return_value=bytes.fromhex("ab" * 32))
    return w3, trigger


def test_simulate_uses_signer_as_sender():
    w3, trigger = _w3()
    submitter = TriggerSubmitter(w3, KEY, FAUCET, value_wei=5)

    asyncio.run(submitter.simulate())

    params = trigger.call.await_args.args[0]
    assert params == {"from": Account.from_key(KEY).address, "value": 5}


def test_write_signs_and_sends():
    w3, trigger = _w3()

    async def chain_id():
        return 10143

    w3.eth.chain_id = chain_id()
    submitter = TriggerSubmitter(w3, KEY, FAUCET)

    tx_hash = asyncio.run(submitter.write())

    assert tx_hash == "0x" + "ab" * 32
    params = trigger.build_transaction.await_args.args[0]
    assert params["nonce"] == 3
    assert params["chainId"] == 10143
    w3.eth.send_raw_transaction.assert_awaited_once()


def test_build_submitter_requires_key_and_faucet():
    assert build_submitter(MagicMock(), "", FAUCET) is None
    assert build_submitter(MagicMock(), KEY, "") is None
    assert isinstance(build_submitter(MagicMock(), KEY, FAUCET), TriggerSubmitter)
