from dataclasses import asdict

from fastapi import APIRouter, Depends, HTTPException, Request
from fastapi.responses import JSONResponse

from ccip_refill.api.auth import require_api_key
from ccip_refill.api.schemas import InitiateResponse, RefillSnapshot
from ccip_refill.core import state_machine as sm
from ccip_refill.core.container import RefillContainer
from ccip_refill.core.errors import RefillUnavailable

router = APIRouter(prefix="/refill", tags=["refill"])


def get_container(request: Request) -> RefillContainer:
    container = getattr(request.app.state, "container", None)
    if container is None:
        raise HTTPException(status_code=503, detail="Refill service is starting")
    return container


def _snapshot(container: RefillContainer) -> RefillSnapshot:
    return RefillSnapshot(**asdict(container.store.get()), monitoring=container.monitor.is_monitoring)


@router.get("", response_model=RefillSnapshot, dependencies=[Depends(require_api_key)])
async def get_refill(container: RefillContainer = Depends(get_container)):
    return _snapshot(container)


@router.post("", response_model=InitiateResponse, dependencies=[Depends(require_api_key)])
async def initiate_refill(container: RefillContainer = Depends(get_container)):
    if container.store.get().status == sm.RUNNING:
        body = InitiateResponse(accepted=False, **_snapshot(container).model_dump())
        return JSONResponse(status_code=409, content=body.model_dump())
    try:
        accepted = await container.initiator.initiate()
    except RefillUnavailable as e:
        raise HTTPException(status_code=503, detail=str(e))

    body = InitiateResponse(accepted=accepted, **_snapshot(container).model_dump())
    return JSONResponse(status_code=202 if accepted else 200, content=body.model_dump())


@router.post("/reset", response_model=RefillSnapshot, dependencies=[Depends(require_api_key)])
async def reset_refill(container: RefillContainer = Depends(get_container)):
    container.initiator.reset_to_idle()
    return _snapshot(container)
