import logging
import sys
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from mindbridge.api.v1 import (
    admin,
    assessments,
    auth,
    chat,
    expert_sessions,
    health,
    profile,
    realtime,
)
from mindbridge.core.config import settings
from mindbridge.db.init_db import init_db
from mindbridge.db.session import engine


logging.basicConfig(
    level=settings.LOG_LEVEL,
    format="%(asctime)s | %(levelname)s | %(name)s | %(message)s",
    handlers=[logging.StreamHandler(sys.stdout)],
)

logger = logging.getLogger("mindbridge")


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info(f"🚀 {settings.PROJECT_NAME} starting up ({settings.ENVIRONMENT})")

    # local runs create tables directly; other environments use alembic
    if settings.ENVIRONMENT == "local":
        init_db()

    yield

    logger.info(f"🛑 {settings.PROJECT_NAME} shutting down")
    engine.dispose()


app = FastAPI(title=settings.PROJECT_NAME, lifespan=lifespan)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["GET", "POST", "PATCH", "DELETE", "OPTIONS"],
    allow_headers=["*"],
)

@app.get("/")
def root():
    return {"status": "ok"}

@app.get("/readyz")
def ready():
    return {"ready": True}

app.include_router(auth.router, prefix=settings.API_V1_STR, tags=["Auth"])
app.include_router(profile.router, prefix=settings.API_V1_STR, tags=["Profile"])
app.include_router(chat.router, prefix=settings.API_V1_STR, tags=["Chat"])
app.include_router(health.router, prefix=settings.API_V1_STR, tags=["Health"])
app.include_router(expert_sessions.router, prefix=settings.API_V1_STR, tags=["Expert Sessions"])
app.include_router(assessments.router, prefix=settings.API_V1_STR, tags=["Assessments"])
app.include_router(admin.router, prefix=settings.API_V1_STR, tags=["Admin"])
app.include_router(realtime.router, prefix=settings.API_V1_STR, tags=["Realtime"])
