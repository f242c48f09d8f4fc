import os

import uvicorn

from tedder.config import settings
from utils.logging_utils import get_tagged_logger

logger = get_tagged_logger(__name__, tag="server")


if __name__ == "__main__":
    logger.info(
        "Starting server",
        extra={"forecast_source": settings.forecast_source, "cache_backend": settings.historical_cache_backend},
    )
    uvicorn.run(
        "tedder.main:app",
        host="0.0.0.0",
        port=int(os.getenv("PORT", 8000)),
        reload=False,
    )
