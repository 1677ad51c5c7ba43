from typing import Any, Dict, Optional

from eth_account import Account
from web3 import AsyncWeb3

from ccip_refill.chain.abi import FAUCET_ABI
from ccip_refill.observability.logging import log


class TriggerSubmitter:
    """Simulates and submits faucet.triggerRefillCheck() from a local key."""

    def __init__(self, w3: AsyncWeb3, private_key: str, faucet_address: str, value_wei: int = 0):
        self.w3 = w3
        self.account = Account.from_key(private_key)
        self.faucet_address = AsyncWeb3.to_checksum_address(faucet_address)
        self.value_wei = int(value_wei or 0)

    def _trigger_fn(self):
        contract = self.w3.eth.contract(address=self.faucet_address, abi=FAUCET_ABI)
        return contract.functions.triggerRefillCheck()

    def _tx_params(self) -> Dict[str, Any]:
        return {"from": self.account.address, "value": self.value_wei}

    async def simulate(self) -> None:
        """eth_call the trigger; raises with the revert reason if it would fail."""
        await self._trigger_fn().call(self._tx_params())

    async def write(self) -> str:
        params = self._tx_params()
        params["nonce"] = await self.w3.eth.get_transaction_count(self.account.address, "pending")
        params["chainId"] = await self.w3.eth.chain_id
        tx = await self._trigger_fn().build_transaction(params)

        signed = self.account.sign_transaction(tx)
        raw_tx = getattr(signed, "raw_transaction", None) or getattr(signed, "rawTransaction", None)
        if raw_tx is None:
            raise RuntimeError("Signed transaction missing raw_transaction")

        tx_hash = await self.w3.eth.send_raw_transaction(raw_tx)
        tx_hex = "0x" + bytes(tx_hash).hex().removeprefix("0x")
        log(event="refill_trigger_sent", txHash=tx_hex, sender=self.account.address, valueWei=self.value_wei)
        return tx_hex


def build_submitter(w3: AsyncWeb3, private_key: str, faucet_address: str, value_wei: int = 0) -> Optional[TriggerSubmitter]:
    if not private_key or not faucet_address:
        log(event="refill_signer_disabled", hasKey=bool(private_key), hasFaucet=bool(faucet_address))
        return None
    return TriggerSubmitter(w3, private_key, faucet_address, value_wei)
