import logging
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager
from importlib.metadata import PackageNotFoundError
from importlib.metadata import version as pkg_version

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from spellbinder.api import (
    containers_router,
    health_router,
    imports_router,
    ownership_router,
    plans_router,
    segments_router,
    sets_router,
)
from spellbinder.config import settings
from spellbinder.db.database import init_db

logging.basicConfig(
    level=logging.DEBUG if settings.debug else logging.INFO,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)


@asynccontextmanager
async def lifespan(_app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan handler for startup/shutdown."""
    await init_db()
    yield


try:
    _version = pkg_version("spellbinder")
except PackageNotFoundError:
    _version = "0.0.0"

app = FastAPI(
    title=settings.app_name,
    version=_version,
    lifespan=lifespan,
)

app.include_router(containers_router)
app.include_router(health_router)
app.include_router(imports_router)
app.include_router(ownership_router)
app.include_router(plans_router)
app.include_router(segments_router)
app.include_router(sets_router)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],  # Tighten in production
    allow_credentials=False,
    allow_methods=["*"],
    allow_headers=["*"],
)
