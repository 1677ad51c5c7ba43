from typing import Any, Dict, List, Optional, Union

from web3 import AsyncWeb3, AsyncHTTPProvider
from web3.exceptions import TransactionNotFound

from ccip_refill.observability.logging import log

BlockId = Union[int, str]


def _hex(v) -> Optional[str]:
    """Normalize bytes/HexBytes/str values to lowercase 0x-prefixed hex."""
    if v is None:
        return None
    if isinstance(v, (bytes, bytearray)):
        return "0x" + bytes(v).hex()
    s = str(v).lower()
    return s if s.startswith("0x") else "0x" + s


def normalize_log(entry: Any) -> Dict[str, Any]:
    return {
        "address": _hex(entry.get("address")),
        "topics": [_hex(t) for t in (entry.get("topics") or [])],
        "data": _hex(entry.get("data")),
        "blockNumber": entry.get("blockNumber"),
        "transactionHash": _hex(entry.get("transactionHash")),
    }


def normalize_receipt(receipt: Any) -> Dict[str, Any]:
    return {
        "transactionHash": _hex(receipt.get("transactionHash")),
        "status": int(receipt.get("status") or 0),
        "blockNumber": receipt.get("blockNumber"),
        "logs": [normalize_log(entry) for entry in (receipt.get("logs") or [])],
    }


class ChainReader:
    """Read-only access to one chain through web3's async provider."""

    def __init__(self, name: str, rpc_url: str = "", w3: Optional[AsyncWeb3] = None):
        self.name = name
        self.w3 = w3 if w3 is not None else AsyncWeb3(AsyncHTTPProvider(rpc_url or None))

    async def get_transaction_receipt(self, tx_hash: str) -> Optional[Dict[str, Any]]:
        """Receipt as a plain dict, or None while the transaction is still pending."""
        try:
            receipt = await self.w3.eth.get_transaction_receipt(tx_hash)
        except TransactionNotFound:
            return None
        if receipt is None:
            return None
        return normalize_receipt(receipt)

    async def get_block_number(self) -> int:
        return int(await self.w3.eth.block_number)

    async def get_logs(self, address: str, from_block: BlockId, to_block: BlockId = "latest") -> List[Dict[str, Any]]:
        raw = await self.w3.eth.get_logs({
            "address": AsyncWeb3.to_checksum_address(address),
            "fromBlock": from_block,
            "toBlock": to_block,
        })
        return [normalize_log(entry) for entry in raw]

    async def get_recent_logs(self, address: str, lookback_blocks: int) -> List[Dict[str, Any]]:
        """Logs emitted by `address` within the last `lookback_blocks` blocks up to latest."""
        latest = await self.get_block_number()
        from_block = max(0, latest - int(lookback_blocks))
        logs = await self.get_logs(address, from_block, "latest")
        log(event="chain_logs_scanned", chain=self.name, fromBlock=from_block, toBlock=latest, count=len(logs))
        return logs

    async def read_contract(self, address: str, abi: list, function_name: str, *args) -> Any:
        contract = self.w3.eth.contract(address=AsyncWeb3.to_checksum_address(address), abi=abi)
        return await getattr(contract.functions, function_name)(*args).call()
