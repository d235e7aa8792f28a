from datetime import datetime, timezone
from typing import Optional

from motor.motor_asyncio import AsyncIOMotorDatabase
from pymongo import ReturnDocument

from analyzer.tasks.task_schema import create_task_document
from core.logging.logger import get_logger

TASKS_COLLECTION = "analysis_tasks"


class MongoTaskQueue:
    """
    analysis_tasks 컬렉션 기반 work queue

    pending → running 전환이 atomic하므로 한 task는 한 worker만 처리한다.
    """

    def __init__(self, db: AsyncIOMotorDatabase):
        self.tasks_col = db[TASKS_COLLECTION]
        self.logger = get_logger(__name__)

    async def enqueue(self, task_id: str, repo_url: str, max_attempts: int = 1) -> dict:
        document = create_task_document(task_id, repo_url, max_attempts=max_attempts)
        await self.tasks_col.insert_one(document)
        self.logger.info(f"Published task {task_id} for repo {repo_url}")
        return document

    async def acquire(self, worker_id: int) -> Optional[dict]:
        """
        pending task를 atomic하게 가져와 running으로 변경 (worker_id 기록)
        """
        return await self.tasks_col.find_one_and_update(
            {
                "status": "pending",
                "$expr": {"$lt": ["$attempts", "$max_attempts"]},
            },
            {
                "$set": {
                    "status": "running",
                    "worker_id": worker_id,
                    "started_at": datetime.now(timezone.utc),
                    "updated_at": datetime.now(timezone.utc),
                },
                "$inc": {"attempts": 1},
            },
            sort=[("created_at", 1)],
            return_document=ReturnDocument.AFTER,
        )

    async def mark_done(self, task_doc_id):
        await self.tasks_col.update_one(
            {"_id": task_doc_id},
            {
                "$set": {
                    "status": "done",
                    "completed_at": datetime.now(timezone.utc),
                    "updated_at": datetime.now(timezone.utc),
                    "error_message": None,
                    "failure_reason": None,
                }
            },
        )

    async def mark_failed(self, task: dict, reason: str, error_message: str, retryable: bool = False) -> str:
        """
        Task를 failed로 마킹 (retryable이면 재시도 제한 고려)

        Returns:
            최종 status ("failed" | "pending")
        """
        attempts = task.get("attempts", 0)
        max_attempts = task.get("max_attempts", 1)

        if retryable and attempts < max_attempts:
            status = "pending"
            self.logger.warning(
                f"Task {task.get('task_id')} failed (attempt {attempts}/{max_attempts}), will retry"
            )
        else:
            status = "failed"

        await self.tasks_col.update_one(
            {"_id": task["_id"]},
            {
                "$set": {
                    "status": status,
                    "completed_at": datetime.now(timezone.utc) if status == "failed" else None,
                    "updated_at": datetime.now(timezone.utc),
                    "error_message": error_message,
                    "failure_reason": reason,
                }
            },
        )
        return status

    async def restore(self, task_doc_id) -> bool:
        """
        Shutdown 시 running task를 pending으로 복구
        """
        result = await self.tasks_col.update_one(
            {"_id": task_doc_id, "status": "running"},
            {
                "$set": {
                    "status": "pending",
                    "updated_at": datetime.now(timezone.utc),
                },
                "$inc": {"attempts": -1},
            },
        )
        return result.modified_count > 0

    async def restore_stale_running(self, worker_id: int) -> int:
        """
        같은 worker_id의 이전 프로세스가 남긴 running task 복구 (worker 시작 시)

        다른 worker가 처리 중인 task는 건드리지 않는다.
        """
        result = await self.tasks_col.update_many(
            {"status": "running", "worker_id": worker_id},
            {
                "$set": {
                    "status": "pending",
                    "worker_id": None,
                    "updated_at": datetime.now(timezone.utc),
                },
                "$inc": {"attempts": -1},
            },
        )
        return result.modified_count

    async def count_active(self) -> int:
        return await self.tasks_col.count_documents({"status": {"$in": ["pending", "running"]}})

    async def get_task(self, task_id: str) -> Optional[dict]:
        return await self.tasks_col.find_one({"task_id": task_id}, {"_id": 0})
