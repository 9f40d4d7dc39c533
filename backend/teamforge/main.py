import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator, Dict

from fastapi import Depends, FastAPI, HTTPException, status
from fastapi.middleware.cors import CORSMiddleware
from sqlalchemy import text

from .admin_routes import router as admin_router
from .config import Settings, get_settings
from .db.session import dispose_engine, get_engine, init_schema
from .exam_routes import router as exam_router
from .logging_config import configure_logging


configure_logging()
logger = logging.getLogger(__name__)


def prepare_database() -> None:
    settings = get_settings()
    if not settings.database_url:
        logger.warning("TEAMFORGE_DATABASE_URL is not set; exam and team endpoints will fail.")
        return
    init_schema()
    logger.info("Admin login enabled: %s", bool(settings.admin_password and settings.session_secret))


@asynccontextmanager
async def lifespan(_app: FastAPI) -> AsyncIterator[None]:
    prepare_database()
    try:
        yield
    finally:
        dispose_engine()
        logger.info("TeamForge backend shutting down")


app = FastAPI(title="TeamForge Backend", version="0.1.0", lifespan=lifespan)
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_methods=["*"],
    allow_headers=["*"],
)
app.include_router(exam_router)
app.include_router(admin_router)


@app.get("/healthz")
def health(settings: Settings = Depends(get_settings)) -> Dict[str, str]:
    return {"status": "ok", "default_mode": settings.default_matching_mode}


@app.get("/healthz/database")
def database_health() -> Dict[str, str]:
    try:
        engine = get_engine()
        with engine.connect() as connection:
            connection.execute(text("SELECT 1"))
    except Exception as exc:  # noqa: BLE001
        logger.exception("Database health check failed")
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail=str(exc)) from exc
    return {"status": "ok", "dialect": engine.dialect.name}
