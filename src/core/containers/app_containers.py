from dependency_injector import containers, providers
from motor.motor_asyncio import AsyncIOMotorClient

from analyzer.orchestrator import TaskOrchestrator
from analyzer.results.result_store import MongoResultStore
from analyzer.sources.github.client import GitHubClient
from analyzer.tasks.task_queue import MongoTaskQueue
from core.config.settings import settings


def _github_client(token, per_page: int, timeout: int):
    # token 없으면 client도 없음 → orchestrator가 task를 drop
    if not token:
        return None
    return GitHubClient(token, per_page=per_page, timeout=timeout)


class AppContainer(containers.DeclarativeContainer):

    mongo_client = providers.Singleton(
        AsyncIOMotorClient,
        settings.MONGO_URL
    )

    mongo_db = providers.Callable(
        lambda client: client[settings.MONGO_DB_NAME],
        mongo_client,
    )

    github_client = providers.Singleton(
        _github_client,
        settings.get_github_token(),
        per_page=settings.GITHUB_PER_PAGE,
        timeout=settings.GITHUB_REQUEST_TIMEOUT,
    )

    task_queue = providers.Factory(MongoTaskQueue, mongo_db)

    result_store = providers.Factory(MongoResultStore, mongo_db)

    orchestrator = providers.Factory(
        TaskOrchestrator,
        provider=github_client,
        result_store=result_store,
        credential=settings.get_github_token(),
        top_n=settings.TOP_CONTRIBUTORS_LIMIT,
        per_page=settings.GITHUB_PER_PAGE,
        store_timeout=settings.RESULT_WRITE_TIMEOUT_SECONDS,
    )
