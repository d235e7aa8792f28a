from motor.motor_asyncio import AsyncIOMotorDatabase

from analyzer.results.result_store import RESULTS_COLLECTION


async def ensure_result_indexes(db: AsyncIOMotorDatabase):
    """analysis_results 컬렉션 인덱스 생성"""
    col = db[RESULTS_COLLECTION]

    # task 당 결과 1개 (재시도 시 덮어쓰기)
    await col.create_index(
        [("task_id", 1)],
        unique=True,
        name="task_id_unique",
    )

    # processed_at: 모니터링용
    await col.create_index(
        [("processed_at", -1)],
        name="processed_at_desc",
    )
