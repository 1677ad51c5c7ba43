from dataclasses import dataclass, field
from typing import Dict, Optional

from ccip_refill.core.state_machine import IDLE, REQUEST_CLICKED

@dataclass
class RefillRequest:
    status: str = IDLE  # idle/running/success/failed
    currentPhase: str = REQUEST_CLICKED
    # Always the phase table value for currentPhase
    progress: int = 0

    # Identifiers captured along the round trip
    initialTxHash: Optional[str] = None
    outboundMessageId: Optional[str] = None
    responseMessageId: Optional[str] = None

    # Only set when status is failed
    errorMessage: Optional[str] = None

    # CCIP explorer links keyed "outbound"/"inbound"
    explorerUrls: Dict[str, str] = field(default_factory=dict)
