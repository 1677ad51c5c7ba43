from ccip_refill.notify.client import post_notification
from ccip_refill.observability.logging import log

def deliver_notification_job(payload: dict):
    """
    Background job delivering one user-facing notification.
    """
    try:
        log(event="notification_job_start", level=payload.get("level"), title=payload.get("title"))
        return post_notification(payload)
    except Exception as e:
        log(event="notification_job_exception", level=payload.get("level"), error=str(e))
        raise
