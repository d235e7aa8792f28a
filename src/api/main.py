# src/api/main.py

from fastapi import FastAPI
from contextlib import asynccontextmanager

from analyzer.results.result_indexes import ensure_result_indexes
from analyzer.tasks.task_indexes import ensure_task_indexes
from core.config.settings import settings
from core.containers.app_containers import AppContainer
from core.logging.logger import get_logger
from api.routes.analysis_router import router as analysis_router
from api.routes.health_router import router as health_router

logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    container: AppContainer = app.container

    mongo_client = container.mongo_client()
    db = container.mongo_db()
    await ensure_task_indexes(db)
    await ensure_result_indexes(db)
    logger.info("Mongo Connected")

    yield

    mongo_client.close()
    logger.info("Mongo Disconnected")


def create_app(container: AppContainer = None, with_lifespan: bool = True) -> FastAPI:
    container = container or AppContainer()
    container.wire(modules=["api.routes.health_router", "api.routes.analysis_router"])
    app = FastAPI(
        title=settings.APP_NAME,
        lifespan=lifespan if with_lifespan else None,
    )

    app.container = container

    app.include_router(health_router)
    app.include_router(analysis_router)

    return app


app = create_app()
