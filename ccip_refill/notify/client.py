import time

import httpx

from ccip_refill.observability.logging import log
from ccip_refill.settings import settings


def post_notification(payload: dict) -> bool:
    """
    POST one notification to the configured webhook.
    Returns False when no webhook is configured; raises on delivery failure
    so the queue worker records the job as failed.
    """
    if not settings.NOTIFY_WEBHOOK_URL:
        log(event="notification_webhook_unset", level=payload.get("level"), title=payload.get("title"))
        return False

    start = time.time()
    with httpx.Client(timeout=settings.NOTIFY_TIMEOUT_SEC) as client:
        resp = client.post(settings.NOTIFY_WEBHOOK_URL, json=payload)
    elapsed_ms = int((time.time() - start) * 1000)

    if 200 <= resp.status_code < 300:
        log(event="notification_send_success", statusCode=int(resp.status_code), elapsedMs=elapsed_ms)
        return True

    log(
        event="notification_send_failed",
        statusCode=int(resp.status_code),
        elapsedMs=elapsed_ms,
        responseText=(resp.text or "")[:500],
    )
    raise RuntimeError(f"Notification webhook failed: {resp.status_code}")
