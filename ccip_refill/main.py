from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from fastapi.middleware.cors import CORSMiddleware

from ccip_refill.api.routes import router
from ccip_refill.core.container import build_container
from ccip_refill.observability.logging import log
from ccip_refill.settings import settings


@asynccontextmanager
async def lifespan(app: FastAPI):
    container = build_container()
    container.store.load()
    app.state.container = container
    # Correct any desync that happened while the process was down.
    await container.monitor.resume()
    log(event="boot", status=container.store.get().status, monitoring=container.monitor.is_monitoring)
    yield
    container.monitor.stop()


app = FastAPI(title="CCIP Refill Monitor", lifespan=lifespan)

origins = [x.strip() for x in settings.CORS_ORIGINS.split(",") if x.strip()]
app.add_middleware(
    CORSMiddleware,
    allow_origins=origins,
    allow_credentials=False,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(router)


@app.get("/health")
def health():
    return {"status": "ok"}


@app.exception_handler(Exception)
async def universal_exception_handler(request: Request, exc: Exception):
    log(event="unhandled_exception", path=request.url.path, errorType=type(exc).__name__, error=str(exc)[:300])
    return JSONResponse(status_code=500, content={"detail": "Internal error"})
