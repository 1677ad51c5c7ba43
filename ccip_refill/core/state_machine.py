# Refill request lifecycle constants

# Request status
IDLE = "idle"
RUNNING = "running"
SUCCESS = "success"
FAILED = "failed"

STATUSES = (IDLE, RUNNING, SUCCESS, FAILED)
TERMINAL_STATUSES = (SUCCESS, FAILED)

# Phases of the round trip, in order.
# Active chain: trigger tx submitted
REQUEST_CLICKED = "request_clicked"
# Active chain: trigger tx mined, RefillTriggered carries the outbound message id
REQUEST_CONFIRMED = "request_confirmed"
# Bookkeeping: outbound CCIP message in flight to the helper chain
OUTBOUND_SENT = "outbound_sent"
# Helper chain: VolatilityResponseSent carries the response message id
OUTBOUND_RECEIVED = "outbound_received"
# Bookkeeping: response CCIP message in flight back to the active chain
INBOUND_SENT = "inbound_sent"
# Active chain: ReservoirRefilled observed
INBOUND_RECEIVED = "inbound_received"

PHASES = (
    REQUEST_CLICKED,
    REQUEST_CONFIRMED,
    OUTBOUND_SENT,
    OUTBOUND_RECEIVED,
    INBOUND_SENT,
    INBOUND_RECEIVED,
)

PHASE_PROGRESS = {
    REQUEST_CLICKED: 0,
    REQUEST_CONFIRMED: 5,
    OUTBOUND_SENT: 10,
    OUTBOUND_RECEIVED: 45,
    INBOUND_SENT: 70,
    INBOUND_RECEIVED: 100,
}

PHASE_TITLES = {
    REQUEST_CLICKED: "Refill requested",
    REQUEST_CONFIRMED: "Refill request confirmed",
    OUTBOUND_SENT: "CCIP message sent",
    OUTBOUND_RECEIVED: "Volatility data received",
    INBOUND_SENT: "Response message sent",
    INBOUND_RECEIVED: "Reservoir refilled",
}


def phase_index(phase: str) -> int:
    return PHASES.index(phase)


def progress_for(phase: str) -> int:
    return PHASE_PROGRESS[phase]


def is_after(phase: str, other: str) -> bool:
    """True when `phase` comes strictly later than `other` in the round trip."""
    return phase_index(phase) > phase_index(other)


def at_least(phase: str, other: str) -> bool:
    return phase_index(phase) >= phase_index(other)


def phases_between(current: str, target: str) -> tuple:
    """Phases completed when moving from `current` up to and including `target`."""
    return PHASES[phase_index(current) + 1 : phase_index(target) + 1]
