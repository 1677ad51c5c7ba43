#!/usr/bin/env python3
import asyncio
import sys
import os

from web3 import AsyncWeb3


async def _read_contracts() -> bool:
    from ccip_refill.chain.abi import FAUCET_ABI, HELPER_ABI
    from ccip_refill.chain.client import ChainReader
    from ccip_refill.chain.signer import build_submitter
    from ccip_refill.settings import settings

    ok = True
    active = ChainReader("active", settings.ACTIVE_RPC_URL)
    helper = ChainReader("helper", settings.HELPER_RPC_URL)

    checks = [
        (active, settings.FAUCET_ADDRESS, FAUCET_ABI, "owner"),
        (active, settings.FAUCET_ADDRESS, FAUCET_ABI, "refillInProgress"),
        (active, settings.FAUCET_ADDRESS, FAUCET_ABI, "thresholdFactor"),
        (active, settings.FAUCET_ADDRESS, FAUCET_ABI, "getReservoirStatus"),
        (helper, settings.HELPER_ADDRESS, HELPER_ABI, "owner"),
        (helper, settings.HELPER_ADDRESS, HELPER_ABI, "volatilityFeed"),
    ]
    for reader, address, abi, fn in checks:
        if not address:
            print(f"[{reader.name}] {fn}: SKIPPED (no contract address configured)")
            ok = False
            continue
        try:
            value = await reader.read_contract(address, abi, fn)
            print(f"[{reader.name}] {fn}: {value}")
        except Exception as e:
            print(f"[{reader.name}] {fn}: FAILED ({type(e).__name__}: {e})")
            ok = False

    submitter = build_submitter(active.w3, settings.SIGNER_PRIVATE_KEY, settings.FAUCET_ADDRESS)
    if submitter is None:
        print("Signer: not configured (POST /refill will return 503)")
    else:
        print(f"Signer: {submitter.account.address}")
        if settings.FAUCET_ADDRESS:
            owner = await active.read_contract(settings.FAUCET_ADDRESS, FAUCET_ABI, "owner")
            if AsyncWeb3.to_checksum_address(owner) != submitter.account.address:
                print("Signer is not the faucet owner; triggerRefillCheck may revert.")
    return ok


print("Running preflight check...")
try:
    os.environ.setdefault("REDIS_URL", "redis://localhost:6379/0")

    import ccip_refill.main
    print("Import ccip_refill.main: OK")

    if not asyncio.run(_read_contracts()):
        print("Preflight check FAILED: contract reads incomplete")
        sys.exit(1)

    print("Preflight check passed.")
    sys.exit(0)
except Exception as e:
    print(f"Preflight check FAILED: {e}")
    import traceback
    traceback.print_exc()
    sys.exit(1)
