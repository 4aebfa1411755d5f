import logging
import os
from contextlib import asynccontextmanager
from typing import AsyncIterator, Dict

from fastapi import Depends, FastAPI
from fastapi.middleware.cors import CORSMiddleware

from .config import Settings, get_settings
from .db import init_schema
from .logging_config import configure_logging
from .progress_routes import router as progress_router


configure_logging()
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(_: FastAPI) -> AsyncIterator[None]:
    settings = get_settings()
    if settings.database_url and settings.auto_create_schema:
        logger.info("Creating missing tables on startup")
        init_schema()
    yield


app = FastAPI(title="Ladderwork Backend", version="0.1.0", lifespan=lifespan)
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_methods=["*"],
    allow_headers=["*"],
)
app.include_router(progress_router)

settings_snapshot = get_settings()
logger.info("Backend starting with database configured: %s", bool(settings_snapshot.database_url))
logger.info("Family time zone: %s", settings_snapshot.timezone)


@app.get("/healthz")
def health(settings: Settings = Depends(get_settings)) -> Dict[str, str]:
    return {
        "status": "ok",
        "database": "configured" if settings.database_url else "unconfigured",
    }


def run() -> None:
    host = os.getenv("LADDERWORK_HOST", "0.0.0.0")
    port = int(os.getenv("LADDERWORK_PORT", "8000"))
    logger.info("Starting Ladderwork API on %s:%s", host, port)

    import uvicorn

    uvicorn.run(app, host=host, port=port, log_level="info")


if __name__ == "__main__":
    run()
