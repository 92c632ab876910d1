from __future__ import annotations

import logging
import os
from contextlib import asynccontextmanager

import uvicorn
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from . import __version__
from .config import Settings, load_settings
from .errors import UpstreamUnavailable
from .middleware.authorization import Authorizer, build_authorizer
from .middleware.error_handler import register_error_handlers
from .routes import students, system
from .services.bulk_import import BulkImporter
from .services.record_store import create_record_store, create_store_client
from .services.store_client import StoreClient
from .services.student_service import StudentService
from .utils.logging_setup import setup_logging

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    client: StoreClient = app.state.store_client
    try:
        client.connect()
    except UpstreamUnavailable as e:
        # Serve anyway; /health reports the state and /health/reconnect retries
        logger.error(f"Record store unavailable at start-up: {e}")
    yield
    client.disconnect()


def create_app(
    settings: Settings | None = None,
    store_client: StoreClient | None = None,
    authorizer: Authorizer | None = None,
) -> FastAPI:
    settings = settings or load_settings()
    store_client = store_client or create_store_client(settings)
    store = create_record_store(store_client)

    app = FastAPI(title="Student Registry", version=__version__, lifespan=lifespan)
    app.state.settings = settings
    app.state.store_client = store_client
    app.state.authorizer = authorizer or build_authorizer(settings)
    app.state.student_service = StudentService(store)
    app.state.bulk_importer = BulkImporter(store, delimiter=settings.import_delimiter)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=list(settings.cors_origins),
        allow_methods=["*"],
        allow_headers=["*"],
    )
    register_error_handlers(app)
    app.include_router(system.router)
    app.include_router(students.router)
    return app


app = create_app()


def main() -> None:
    setup_logging()
    host = os.getenv("HOST", "127.0.0.1")
    port = int(os.getenv("PORT", "5000"))
    logger.info(f"Server running on http://{host}:{port}")
    uvicorn.run("student_registry.entrypoint:app", host=host, port=port)


if __name__ == "__main__":
    main()
