import os
from dotenv import load_dotenv

load_dotenv()

class Settings:
    API_KEY: str = os.getenv("API_KEY", "")
    CORS_ORIGINS: str = os.getenv("CORS_ORIGINS", "*")

    REDIS_URL: str = os.getenv("REDIS_URL", "redis://localhost:6379/0")
    RQ_QUEUE_NAME: str = os.getenv("RQ_QUEUE_NAME", "notifications")

    # Hash holding the faucet's persisted UI state; refill fields live beside others.
    STATE_KEY: str = os.getenv("STATE_KEY", "faucet-store")

    # Chains
    ACTIVE_RPC_URL: str = os.getenv("ACTIVE_RPC_URL", "")
    HELPER_RPC_URL: str = os.getenv("HELPER_RPC_URL", "")
    FAUCET_ADDRESS: str = os.getenv("FAUCET_ADDRESS", "")
    HELPER_ADDRESS: str = os.getenv("HELPER_ADDRESS", "")

    # Signer used for triggerRefillCheck(); empty disables initiation.
    SIGNER_PRIVATE_KEY: str = os.getenv("SIGNER_PRIVATE_KEY", "")
    REFILL_TX_VALUE_WEI: int = int(os.getenv("REFILL_TX_VALUE_WEI", "0"))

    # Polling
    POLL_INTERVAL_SEC: float = float(os.getenv("POLL_INTERVAL_SEC", "15"))
    HELPER_LOOKBACK_BLOCKS: int = int(os.getenv("HELPER_LOOKBACK_BLOCKS", "100"))
    ACTIVE_LOOKBACK_BLOCKS: int = int(os.getenv("ACTIVE_LOOKBACK_BLOCKS", "50"))
    # Consecutive failing ticks before a degraded warning is logged (never fails the request)
    POLL_DEGRADED_AFTER: int = int(os.getenv("POLL_DEGRADED_AFTER", "5"))
    # Ticks the flag check waits for a pending trigger receipt before it runs anyway
    RECEIPT_GRACE_TICKS: int = int(os.getenv("RECEIPT_GRACE_TICKS", "4"))

    CCIP_EXPLORER_BASE_URL: str = os.getenv("CCIP_EXPLORER_BASE_URL", "https://ccip.chain.link/msg")

    # Notifications
    ENABLE_NOTIFICATIONS: bool = os.getenv("ENABLE_NOTIFICATIONS", "true").lower() == "true"
    NOTIFY_WEBHOOK_URL: str = os.getenv("NOTIFY_WEBHOOK_URL", "")
    NOTIFY_TIMEOUT_SEC: int = int(os.getenv("NOTIFY_TIMEOUT_SEC", "5"))

    ENABLE_PII_REDACTION: bool = os.getenv("ENABLE_PII_REDACTION", "true").lower() == "true"

settings = Settings()
