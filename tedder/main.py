"""FastAPI application setup for the Tedder weather data layer."""

import os

from fastapi import FastAPI

from tedder.api import router as api_router
from utils.logging_utils import setup_logging

setup_logging(level=os.getenv("LOG_LEVEL", "INFO"))

app = FastAPI(title="Tedder Weather")


@app.get("/healthz")
def healthz():
    """Liveness check."""
    return {"status": "ok"}


# API routes
app.include_router(api_router, prefix="/v1")
