import json
import copy
from dataclasses import asdict, fields as dc_fields
from typing import Optional

from redis import Redis

from ccip_refill.core import state_machine as sm
from ccip_refill.observability.logging import log
from ccip_refill.settings import settings
from ccip_refill.store.models import RefillRequest
from ccip_refill.store.redis_conn import get_redis

FIELD_NAMES = tuple(f.name for f in dc_fields(RefillRequest))
ID_FIELDS = ("initialTxHash", "outboundMessageId", "responseMessageId")


def _migrate_refill_data(data: dict) -> dict:
    """
    Repair a persisted refill record before it is rehydrated.

    A stored record may predate a schema change or have been written by a
    client that crashed mid-update. Anything that cannot describe a valid
    request is collapsed back to the idle default.
    """
    repairs = []
    default = asdict(RefillRequest())

    for k in list(data.keys()):
        if k not in FIELD_NAMES:
            del data[k]
            repairs.append(f"dropped:{k}")

    if data.get("status", sm.IDLE) not in sm.STATUSES:
        repairs.append("unknown_status")
        data = dict(default)
    if data.get("currentPhase", sm.REQUEST_CLICKED) not in sm.PHASES:
        repairs.append("unknown_phase")
        data = dict(default)

    status = data.get("status", sm.IDLE)
    if status == sm.IDLE:
        dirty = int(data.get("progress") or 0) != 0 or any(data.get(k) for k in ID_FIELDS) \
            or data.get("currentPhase", sm.REQUEST_CLICKED) != sm.REQUEST_CLICKED \
            or bool(data.get("errorMessage")) or bool(data.get("explorerUrls"))
        if dirty:
            repairs.append("idle_not_clean")
            data = dict(default)
    else:
        phase = data.get("currentPhase", sm.REQUEST_CLICKED)
        expected = sm.progress_for(phase)
        if data.get("progress") != expected:
            repairs.append("progress_recomputed")
            data["progress"] = expected
        if status != sm.FAILED and data.get("errorMessage"):
            repairs.append("error_cleared")
            data["errorMessage"] = None

    if not isinstance(data.get("explorerUrls", {}), dict):
        repairs.append("explorer_urls_reset")
        data["explorerUrls"] = {}

    if repairs:
        log(event="refill_state_migrated", repairs=repairs, status=data.get("status", sm.IDLE))
    return data


def _decode_fields(raw: dict) -> dict:
    data = {}
    for name in FIELD_NAMES:
        if name not in raw:
            continue
        try:
            data[name] = json.loads(raw[name])
        except (TypeError, ValueError):
            log(event="refill_state_field_unreadable", field=name)
    return data


class PhaseStateStore:
    """
    Durable holder of the single RefillRequest.

    Fields live in one Redis hash next to other faucet UI state, one hash
    field per RefillRequest field, so partial writes only touch what changed.
    """

    def __init__(self, redis: Optional[Redis] = None, key: Optional[str] = None):
        self._redis = redis if redis is not None else get_redis()
        self._key = key or settings.STATE_KEY
        self._state = RefillRequest()

    def load(self) -> RefillRequest:
        try:
            raw = self._redis.hgetall(self._key) or {}
        except Exception as e:
            log(event="refill_state_load_failed", key=self._key, error=str(e)[:300])
            self._state = RefillRequest()
            return self.get()

        data = _migrate_refill_data(_decode_fields(raw))
        self._state = RefillRequest(**data)
        log(
            event="refill_state_loaded",
            status=self._state.status,
            currentPhase=self._state.currentPhase,
            progress=self._state.progress,
        )
        return self.get()

    def get(self) -> RefillRequest:
        return copy.deepcopy(self._state)

    def set(self, **partial) -> RefillRequest:
        unknown = [k for k in partial if k not in FIELD_NAMES]
        if unknown:
            raise ValueError(f"Unknown refill fields: {', '.join(sorted(unknown))}")
        if "status" in partial and partial["status"] not in sm.STATUSES:
            raise ValueError(f"Unknown status: {partial['status']}")
        if "currentPhase" in partial and partial["currentPhase"] not in sm.PHASES:
            raise ValueError(f"Unknown phase: {partial['currentPhase']}")
        if not partial:
            return self.get()

        self._write(partial)
        for k, v in partial.items():
            setattr(self._state, k, copy.deepcopy(v))
        return self.get()

    def reset(self) -> RefillRequest:
        return self.set(**asdict(RefillRequest()))

    def _write(self, partial: dict) -> None:
        mapping = {k: json.dumps(v) for k, v in partial.items()}
        try:
            self._redis.hset(self._key, mapping=mapping)
        except Exception as e:
            log(event="refill_state_write_failed", key=self._key, fields=sorted(mapping), error=str(e)[:300])
            raise
