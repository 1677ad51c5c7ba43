from typing import Dict, Literal, Optional
from pydantic import BaseModel, Field

Status = Literal["idle", "running", "success", "failed"]
Phase = Literal[
    "request_clicked",
    "request_confirmed",
    "outbound_sent",
    "outbound_received",
    "inbound_sent",
    "inbound_received",
]

class RefillSnapshot(BaseModel):
    status: Status
    currentPhase: Phase
    progress: int = Field(ge=0, le=100)
    initialTxHash: Optional[str] = None
    outboundMessageId: Optional[str] = None
    responseMessageId: Optional[str] = None
    errorMessage: Optional[str] = None
    explorerUrls: Dict[str, str] = Field(default_factory=dict)
    # True while this process has a polling task for the request
    monitoring: bool = False

class InitiateResponse(RefillSnapshot):
    accepted: bool
