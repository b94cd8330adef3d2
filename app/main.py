import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.encoders import jsonable_encoder
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError

from app.core.config import settings
from app.core.database import Store
from app.core.errors import AppError, StoreError
from app.routers import health, tasks, pomodoro, realtime
from app.services.broadcast_service import BroadcastHub

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    yield
    # Arrêt: ferme les connexions temps réel puis libère la base
    app.state.hub.close_all()
    app.state.store.dispose()


async def app_error_handler(request: Request, exc: AppError):
    if isinstance(exc, StoreError):
        return await store_error_handler(request, exc)
    return JSONResponse(status_code=exc.status_code, content={"detail": exc.message})


async def store_error_handler(request: Request, exc: Exception):
    # le détail reste dans les logs, jamais dans la réponse
    logger.error("Store failure on %s %s: %s", request.method, request.url.path, exc, exc_info=exc)
    return JSONResponse(status_code=500, content={"detail": "Internal server error"})


async def request_validation_handler(request: Request, exc: RequestValidationError):
    return JSONResponse(status_code=400, content={"detail": jsonable_encoder(exc.errors())})


def create_app(store: Store = None, hub: BroadcastHub = None) -> FastAPI:
    logging.basicConfig(
        level=settings.LOG_LEVEL,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    # Init DB
    if store is None:
        store = Store(settings.DATABASE_URL)
    store.create_schema()

    app = FastAPI(
        title="Weekly Tasks API",
        version="0.3.0",
        lifespan=lifespan,
    )
    app.state.store = store
    app.state.hub = hub or BroadcastHub(queue_size=settings.SUBSCRIBER_QUEUE_SIZE)

    app.add_exception_handler(AppError, app_error_handler)
    app.add_exception_handler(SQLAlchemyError, store_error_handler)
    app.add_exception_handler(RequestValidationError, request_validation_handler)

    # Routes
    app.include_router(health.router, prefix="/health")
    app.include_router(tasks.router)
    app.include_router(pomodoro.router)
    app.include_router(realtime.router)
    return app


app = create_app()
