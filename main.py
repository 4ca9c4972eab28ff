from contextlib import asynccontextmanager

import structlog
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from config import settings
from database import AsyncSessionLocal, init_db
from api.assessments import router as assessments_router
from api.configurations import router as configurations_router
from api.matching import router as matching_router
from services.configuration_store import SqlConfigurationStore, seed_default_configurations
from utils.logging import configure_logging

logger = structlog.get_logger()


@asynccontextmanager
async def lifespan(app: FastAPI):
    configure_logging(settings.log_level, json_output=settings.log_json and not settings.debug)
    await init_db()
    if settings.seed_defaults:
        async with AsyncSessionLocal() as session:
            await seed_default_configurations(SqlConfigurationStore(session))
            await session.commit()
    logger.info("startup_complete", app=settings.app_name)
    yield


app = FastAPI(
    title=settings.app_name,
    description="Instrument configuration, EVA risk scoring and lender matching API",
    version="0.1.0",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins.split(","),
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(configurations_router)
app.include_router(assessments_router)
app.include_router(matching_router)


@app.get("/health")
async def health():
    return {"status": "ok"}
