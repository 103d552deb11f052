"""Duty station request API entrypoint."""

import logging
import os

from fastapi import FastAPI

from services.api.app.routers.basket import router as basket_router
from services.api.app.routers.history import router as history_router
from services.api.app.routers.stations import router as stations_router
from services.api.app.routers.submission import router as submission_router
from services.api.app.services.container import get_services

app = FastAPI(title="Duty Station Requests API")

app.include_router(basket_router)
app.include_router(submission_router)
app.include_router(history_router)
app.include_router(stations_router)


@app.on_event("startup")
def _startup() -> None:
    logging.basicConfig(
        level=os.getenv("DSR_LOG_LEVEL", "INFO").upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    get_services()


@app.get("/health")
def health() -> dict:
    return {"status": "ok"}
