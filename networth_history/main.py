import logging
from contextlib import asynccontextmanager
from pathlib import Path
from typing import Optional
from fastapi import FastAPI

from .config import CONFIG_FILE, EngineSettings, load_settings
from .db import get_session, init_db
from .routes import snapshots, transactions
from .routes import settings as settings_routes
from .store import SQLSnapshotStore
from .triggers import RecalculationQueue

logger = logging.getLogger(__name__)


def create_app(settings: Optional[EngineSettings] = None, *, config_file: Optional[Path] = None,
               init_database: bool = True, configure_logging: bool = False) -> FastAPI:
    config_file = config_file or CONFIG_FILE
    settings = settings or load_settings(config_file)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        if configure_logging:
            logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s %(name)s: %(message)s")
        if init_database:
            init_db(settings.data_dir)
        logger.info("Reporting in %s at rate %s", settings.reporting_currency, settings.exchange_rate)
        yield

    app = FastAPI(title="networth-history", version="0.1.0", lifespan=lifespan)
    app.state.settings = settings
    app.state.config_file = config_file
    app.state.store = SQLSnapshotStore(get_session)
    app.state.queue = RecalculationQueue()

    app.include_router(snapshots.router)
    app.include_router(transactions.router)
    app.include_router(settings_routes.router)
    return app


app = create_app(configure_logging=True)
