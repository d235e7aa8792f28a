import asyncio

from motor.motor_asyncio import AsyncIOMotorDatabase

from analyzer.tasks.task_queue import TASKS_COLLECTION
from core.logging.logger import get_logger


async def collect_status_counts(db: AsyncIOMotorDatabase) -> dict:
    """상태별 task 개수 집계"""
    pipeline = [
        {"$group": {"_id": "$status", "count": {"$sum": 1}}},
        {"$sort": {"_id": 1}},
    ]

    status_counts = {}
    async for doc in db[TASKS_COLLECTION].aggregate(pipeline):
        status_counts[doc["_id"]] = doc["count"]
    return status_counts


async def print_task_status(db: AsyncIOMotorDatabase):
    """
    Task 상태 요약 출력
    """
    logger = get_logger(__name__)
    status_counts = await collect_status_counts(db)

    total = sum(status_counts.values())

    logger.info("=" * 60)
    logger.info("📊 Analysis Task Status Summary")
    logger.info("=" * 60)
    logger.info(f"Total:    {total:6d}")
    for status in ("pending", "running", "done", "failed"):
        count = status_counts.get(status, 0)
        label = f"{status.capitalize()}:"
        if total > 0:
            logger.info(f"{label:<10}{count:6d}  ({count/total*100:.1f}%)")
        else:
            logger.info(f"{label:<10}{0:6d}")
    logger.info("=" * 60)

    # Failed task 세부 정보 (최근 5개)
    if status_counts.get("failed", 0) > 0:
        logger.info("Recent Failed Tasks:")
        failed_tasks = db[TASKS_COLLECTION].find({"status": "failed"}).sort("updated_at", -1).limit(5)
        async for task in failed_tasks:
            logger.error(
                f"  - {task['task_id']} | {task['repo_url']} | "
                f"{task.get('failure_reason') or 'unknown'}: {task.get('error_message', 'Unknown')}"
            )
        logger.info("=" * 60)


async def monitor_tasks_periodically(db: AsyncIOMotorDatabase, interval: int = 600):
    """
    주기적으로 task 상태 출력

    Args:
        interval: 출력 간격 (초, 기본 10분)
    """
    logger = get_logger(__name__)
    logger.info(f"Task monitor started (interval: {interval}s)")

    while True:
        try:
            await asyncio.sleep(interval)
            await print_task_status(db)
        except asyncio.CancelledError:
            logger.info("Task monitor stopped")
            break
        except Exception as e:
            logger.error(f"Monitor error: {e}", exc_info=True)
