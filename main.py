import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from app.config import get_settings
from app.infrastructure.database import engine, initialize_database
from app.infrastructure.notifications import (
    NotificationConnectionManager,
    WebSocketNotificationPublisher,
)
from app.interfaces.api.routes import register_routes


def configure_logging(level: str) -> None:
    """Apply ``LOG_LEVEL`` to the root logger without discarding existing handlers."""

    logging.basicConfig(
        level=level,
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    )
    logging.getLogger().setLevel(level)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Inicializa la base de datos y el canal en tiempo real, y los libera al cerrar."""

    initialize_database()
    manager = NotificationConnectionManager()
    app.state.notification_manager = manager
    app.state.notification_publisher = WebSocketNotificationPublisher(manager)
    yield
    await manager.close()
    app.state.notification_publisher = None
    engine.dispose()


def create_app() -> FastAPI:
    """Crea y configura la aplicación principal de FastAPI."""

    settings = get_settings()
    configure_logging(settings.log_level)

    app = FastAPI(title="Marketplace Notifications API", lifespan=lifespan)

    if settings.cors_origins:
        app.add_middleware(
            CORSMiddleware,
            allow_origins=settings.cors_origins,
            allow_credentials=True,
            allow_methods=["*"],
            allow_headers=["*"],
        )

    register_routes(app)
    return app


app = create_app()
