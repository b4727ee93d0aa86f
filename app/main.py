from contextlib import asynccontextmanager

import sentry_sdk
from fastapi import FastAPI

from app.config import settings
from app.logger import setup_logging
from app.routes import triggers_router, webhooks_router
from app.services import trigger_registry

if settings.sentry_dsn:
    sentry_sdk.init(
        dsn=settings.sentry_dsn,
        traces_sample_rate=0.1,
        profiles_sample_rate=0.1,
    )


@asynccontextmanager
async def lifespan(app: FastAPI):
    setup_logging()
    if settings.enable_scheduler:
        await trigger_registry.start_all()
    yield
    await trigger_registry.stop_all()


app = FastAPI(lifespan=lifespan)


@app.get("/", tags=["health"])
async def read_root():
    return {"status": "ok", "active_triggers": len(trigger_registry.coordinators)}


app.include_router(webhooks_router)
app.include_router(triggers_router)
