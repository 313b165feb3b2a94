import asyncio
from contextlib import asynccontextmanager, suppress
from typing import AsyncIterator

import sentry_sdk
from fastapi import FastAPI

from consultbook.database import db
from consultbook.endpoints import ROUTERS
from consultbook.exceptions.store import StoreUnavailableError
from consultbook.logger import get_logger
from consultbook.scheduling import BookingService
from consultbook.service import get_service
from consultbook.settings import settings


logger = get_logger(__name__)


async def materialize_loop(service: BookingService, interval: float) -> None:
    """Keep the slots of all scheduled consultants generated for the rolling horizon."""

    while True:
        try:
            count = await service.materialize_all()
        except StoreUnavailableError:
            logger.warning("Store unavailable, skipping slot materialization")
        except Exception:
            logger.exception("Slot materialization failed")
        else:
            logger.debug(f"Materialized {count} slots")
        await asyncio.sleep(interval)


@asynccontextmanager
async def lifespan(_: FastAPI) -> AsyncIterator[None]:
    if settings.sentry_dsn:
        logger.debug("initializing sentry")
        sentry_sdk.init(dsn=settings.sentry_dsn, environment=settings.sentry_environment)

    if settings.store_backend == "sql":
        await db.create_tables()

    task = None
    if settings.materialize_interval > 0:
        task = asyncio.create_task(materialize_loop(get_service(), settings.materialize_interval))

    logger.info("Starting consultbook")
    yield
    logger.info("Shutting down consultbook")

    if task:
        task.cancel()
        with suppress(asyncio.CancelledError):
            await task
    await db.close()


app = FastAPI(
    title="consultbook",
    description="Scheduling and booking of consultation sessions",
    root_path=settings.root_path,
    debug=settings.debug,
    lifespan=lifespan,
)
for router in ROUTERS:
    app.include_router(router)


@app.head("/status", include_in_schema=False)
@app.get("/status", include_in_schema=False)
async def status() -> dict[str, str]:
    return {"status": "ok"}
