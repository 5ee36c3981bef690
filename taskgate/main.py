from __future__ import annotations

import logging
from contextlib import asynccontextmanager

from fastapi import Depends, FastAPI

from taskgate.db import filters as _filters  # noqa: F401  (register SQLAlchemy filters)
from taskgate.db.init_db import init_db
from taskgate.logging_config import configure_app_logging
from taskgate.routers import audit, auth, health, tasks, users
from taskgate.security.config import load_security_config
from taskgate.security.dependencies import enforce_security
from taskgate.settings import get_settings

logger = logging.getLogger(__name__)


def create_app() -> FastAPI:
    @asynccontextmanager
    async def lifespan(app: FastAPI):
        settings = get_settings()
        configure_app_logging(settings.log_level)
        logger.info("App startup beginning")

        app.state.security_config = load_security_config(settings.resolved_security_config_path())
        logger.info("Loaded security config: %s", settings.resolved_security_config_path())
        init_db()
        logger.info("Database initialized (tables ensured + seed if needed)")

        yield

    # Global dependency: every route is matched against the security config.
    app = FastAPI(title="taskgate", dependencies=[Depends(enforce_security)], lifespan=lifespan)

    app.include_router(health.router)
    app.include_router(auth.router)
    app.include_router(users.router)
    app.include_router(tasks.router)
    app.include_router(audit.router)

    return app


app = create_app()
