import asyncio
import signal

from analyzer.results.result_indexes import ensure_result_indexes
from analyzer.tasks.task_indexes import ensure_task_indexes
from analyzer.tasks.task_monitor import monitor_tasks_periodically, print_task_status
from analyzer.worker import AnalysisWorker
from core.config.settings import settings
from core.containers.app_containers import AppContainer
from core.logging.logger import get_logger

logger = get_logger(__name__)

# Global worker reference for signal handler
worker_instance = None


async def run_worker(container: AppContainer):
    """Worker 실행"""
    global worker_instance

    worker = AnalysisWorker(
        queue=container.task_queue(),
        orchestrator=container.orchestrator(),
        worker_id=settings.WORKER_ID,
    )
    worker_instance = worker
    await worker.run(poll_interval=settings.WORKER_POLL_INTERVAL)


async def main():
    """메인 진입점"""
    container = AppContainer()
    mongo = container.mongo_client()
    db = container.mongo_db()

    logger.info("=" * 60)
    logger.info("Contributor Analyzer Starting")
    logger.info("=" * 60)

    if settings.get_github_token() is None:
        logger.warning("GITHUB_TOKEN is not set. Every task will be dropped until it is configured.")

    # MongoDB 연결 테스트
    await mongo.admin.command("ping")
    logger.info("MongoDB connected")

    # 인덱스 생성
    logger.info("🔧 Ensuring indexes...")
    await ensure_task_indexes(db)
    await ensure_result_indexes(db)
    logger.info("Indexes ready")

    # 이 worker가 이전 실행에서 남긴 running task만 복구
    restored = await container.task_queue().restore_stale_running(settings.WORKER_ID)
    if restored > 0:
        logger.info(f"🔧 Restored {restored} stale running tasks of worker-{settings.WORKER_ID} to pending")
    await print_task_status(db)

    monitor = asyncio.create_task(monitor_tasks_periodically(db))

    # Worker 시작
    logger.info("=" * 60)
    try:
        await run_worker(container)
    finally:
        monitor.cancel()
        mongo.close()


def signal_handler(signum, frame):
    """Signal 처리 (Ctrl+C, Docker stop 등)"""
    global worker_instance

    logger.info(f"Received signal {signum}. Initiating graceful shutdown...")

    if worker_instance:
        worker_instance.shutdown_requested = True


if __name__ == "__main__":
    # Signal 등록
    signal.signal(signal.SIGINT, signal_handler)   # Ctrl+C
    signal.signal(signal.SIGTERM, signal_handler)  # Docker stop

    try:
        asyncio.run(main())
    except (KeyboardInterrupt, SystemExit):
        logger.info("Shutdown complete")
