from web3 import Web3

# Canonical event signatures watched during a refill round trip
REFILL_TRIGGERED_SIG = "RefillTriggered(bytes32)"
VOLATILITY_RESPONSE_SENT_SIG = "VolatilityResponseSent(bytes32,bytes32,uint256,address)"
RESERVOIR_REFILLED_SIG = "ReservoirRefilled(address,uint256,uint256)"


def event_topic(signature: str) -> str:
    """0x-prefixed keccak256 of an event signature (topics[0] of its logs)."""
    return "0x" + Web3.keccak(text=signature).hex().removeprefix("0x")


REFILL_TRIGGERED_TOPIC = event_topic(REFILL_TRIGGERED_SIG)
VOLATILITY_RESPONSE_SENT_TOPIC = event_topic(VOLATILITY_RESPONSE_SENT_SIG)
RESERVOIR_REFILLED_TOPIC = event_topic(RESERVOIR_REFILLED_SIG)

FAUCET_ABI = [
    {
        "type": "function",
        "name": "triggerRefillCheck",
        "stateMutability": "payable",
        "inputs": [],
        "outputs": [],
    },
    {
        "type": "function",
        "name": "refillInProgress",
        "stateMutability": "view",
        "inputs": [],
        "outputs": [{"name": "", "type": "bool"}],
    },
    {
        "type": "function",
        "name": "thresholdFactor",
        "stateMutability": "view",
        "inputs": [],
        "outputs": [{"name": "", "type": "uint256"}],
    },
    {
        "type": "function",
        "name": "getReservoirStatus",
        "stateMutability": "view",
        "inputs": [],
        "outputs": [
            {"name": "activePool", "type": "uint256"},
            {"name": "activeDripRate", "type": "uint256"},
            {"name": "linkPool", "type": "uint256"},
            {"name": "linkDripRate", "type": "uint256"},
        ],
    },
    {
        "type": "function",
        "name": "owner",
        "stateMutability": "view",
        "inputs": [],
        "outputs": [{"name": "", "type": "address"}],
    },
]

HELPER_ABI = [
    {
        "type": "function",
        "name": "owner",
        "stateMutability": "view",
        "inputs": [],
        "outputs": [{"name": "", "type": "address"}],
    },
    {
        "type": "function",
        "name": "volatilityFeed",
        "stateMutability": "view",
        "inputs": [],
        "outputs": [{"name": "", "type": "address"}],
    },
]
