from motor.motor_asyncio import AsyncIOMotorDatabase

from analyzer.tasks.task_queue import TASKS_COLLECTION


async def ensure_task_indexes(db: AsyncIOMotorDatabase):
    """analysis_tasks 컬렉션 인덱스 생성"""
    col = db[TASKS_COLLECTION]

    # task_id unique: 같은 task 중복 enqueue 방지
    await col.create_index(
        [("task_id", 1)],
        unique=True,
        name="task_id_unique",
    )

    # status + created_at: pending task를 오래된 순서로 가져오기
    await col.create_index(
        [("status", 1), ("created_at", 1)],
        name="status_created_asc",
    )

    # status + worker_id: worker 재시작 시 자기 running task 복구
    await col.create_index(
        [("status", 1), ("worker_id", 1)],
        name="status_worker_id",
    )

    # updated_at: 모니터링용
    await col.create_index(
        [("updated_at", -1)],
        name="updated_at_desc",
    )
