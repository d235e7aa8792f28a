from typing import Optional

from motor.motor_asyncio import AsyncIOMotorDatabase
from pymongo.errors import PyMongoError

from core.errors import StorageWriteError
from core.logging.logger import get_logger

RESULTS_COLLECTION = "analysis_results"


class MongoResultStore:
    """
    task_id 기준 결과 저장소 (analysis_results)
    """

    def __init__(self, db: AsyncIOMotorDatabase):
        self.results_col = db[RESULTS_COLLECTION]
        self.logger = get_logger(__name__)

    async def save_result(self, document: dict):
        """
        같은 task_id로 재시도되면 이전 document를 덮어쓴다
        """
        task_id = document["task_id"]
        try:
            await self.results_col.replace_one({"task_id": task_id}, document, upsert=True)
        except PyMongoError as e:
            raise StorageWriteError(f"Failed to store result for task {task_id}: {e}") from e

    async def get_result(self, task_id: str) -> Optional[dict]:
        # 내부 _id는 제외하고 반환
        return await self.results_col.find_one({"task_id": task_id}, {"_id": 0})
