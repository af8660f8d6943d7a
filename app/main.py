# app/main.py
import logging

from fastapi import FastAPI

from app.api.routes import events, health, members
from app.core.config import get_settings
from app.db.session import init_db


def configure_logging(level: str) -> None:
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    )


def create_app() -> FastAPI:
    """
    Application factory for the Family Calendar service.
    """
    settings = get_settings()
    configure_logging(settings.LOG_LEVEL)

    app = FastAPI(
        title=settings.APP_NAME,
        description=(
            "Self-hosted family calendar backend. Stores events and recurring\n"
            "series, expands series into concrete occurrences for calendar views,\n"
            "and warns about scheduling conflicts between family members."
        ),
        version="0.1.0",
    )

    # Routers
    app.include_router(health.router)
    app.include_router(members.router)
    app.include_router(events.router)

    @app.on_event("startup")
    async def on_startup() -> None:  # pragma: no cover
        await init_db()

    return app


app = create_app()
