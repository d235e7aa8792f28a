# src/api/routes/analysis_router.py
import uuid
from typing import Optional

from dependency_injector.wiring import Provide, inject
from fastapi import APIRouter, Depends, HTTPException
from fastapi.responses import JSONResponse
from pydantic import BaseModel

from analyzer.results.result_store import MongoResultStore
from analyzer.tasks.task_queue import MongoTaskQueue
from core.config.settings import settings
from core.containers.app_containers import AppContainer
from core.logging.logger import get_logger

router = APIRouter(prefix="/api", tags=["Analysis"])
logger = get_logger(__name__)


class AnalysisRequest(BaseModel):
    repo_url: Optional[str] = None


@router.post("/analyze", status_code=202)
@inject
async def analyze(
    request: AnalysisRequest,
    queue: MongoTaskQueue = Depends(Provide[AppContainer.task_queue]),
):
    if not request.repo_url or not request.repo_url.strip():
        raise HTTPException(status_code=400, detail="repo_url is required")

    task_id = str(uuid.uuid4())
    await queue.enqueue(task_id, request.repo_url.strip(), max_attempts=settings.TASK_MAX_ATTEMPTS)

    return {"task_id": task_id}


@router.get("/results/{task_id}")
@inject
async def get_result(
    task_id: str,
    store: MongoResultStore = Depends(Provide[AppContainer.result_store]),
    queue: MongoTaskQueue = Depends(Provide[AppContainer.task_queue]),
):
    result = await store.get_result(task_id)
    if result is not None:
        return result

    # 결과가 없으면 task 상태로 구분 (failed / 진행 중 / not found)
    task = await queue.get_task(task_id)
    if task is None:
        raise HTTPException(status_code=404, detail="Result not found")

    if task["status"] == "failed":
        return {
            "task_id": task_id,
            "repo_url": task.get("repo_url"),
            "status": "failed",
            "reason": task.get("failure_reason"),
            "error_message": task.get("error_message"),
        }

    if task["status"] in ("pending", "running"):
        return JSONResponse(status_code=202, content={"task_id": task_id, "status": task["status"]})

    # done인데 결과가 없는 경우
    logger.warning(f"Task {task_id} is {task['status']} but has no stored result")
    raise HTTPException(status_code=404, detail="Result not found")
