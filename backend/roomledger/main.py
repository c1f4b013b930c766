import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from roomledger.api.routes import router
from roomledger.core.config import settings
from roomledger.core.log import configure_logging
from roomledger.db.session import SessionLocal, init_db
from roomledger.services.categories import seed_default_categories

configure_logging()
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    # Create tables that might be missing (no migrations yet for SQLite workflow).
    init_db()
    with SessionLocal() as session:
        seed_default_categories(session)
    logger.info("%s %s started (%s)", settings.project_name, settings.version, settings.environment)
    yield


app = FastAPI(title=settings.project_name, version=settings.version, lifespan=lifespan)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(router)
