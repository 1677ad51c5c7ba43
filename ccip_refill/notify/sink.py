from typing import Callable

from rq import Queue, Retry

from ccip_refill.observability.logging import log
from ccip_refill.queue.jobs import deliver_notification_job
from ccip_refill.queue.rq_conn import get_queue
from ccip_refill.settings import settings
from ccip_refill.utils.time import now_ms

SUCCESS = "success"
ERROR = "error"
INFO = "info"
WARNING = "warning"

LEVELS = (SUCCESS, ERROR, INFO, WARNING)


class QueueNotificationSink:
    """
    Fire-and-forget notifications: each call enqueues a delivery job.
    Enqueue failures are logged and never reach the caller.
    """

    def __init__(self, queue_factory: Callable[[], Queue] = get_queue):
        self._queue_factory = queue_factory
        self._queue = None

    def notify(self, level: str, title: str, message: str) -> None:
        if level not in LEVELS:
            level = INFO
        payload = {"level": level, "title": title, "message": message, "ts": now_ms()}
        log(event="notification", level=level, title=title, message=message)

        if not settings.ENABLE_NOTIFICATIONS:
            return
        try:
            if self._queue is None:
                self._queue = self._queue_factory()
            self._queue.enqueue(deliver_notification_job, payload, retry=Retry(max=3, interval=[5, 15, 30]))
        except Exception as e:
            log(event="notification_enqueue_failed", level=level, title=title, error=str(e)[:300])
