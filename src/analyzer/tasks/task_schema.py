import json
from datetime import datetime, timezone
from typing import Literal, Optional, Union

from pydantic import BaseModel, ValidationError, field_validator

from core.errors import MalformedInput

TaskStatus = Literal["pending", "running", "done", "failed"]


class AnalysisTask(BaseModel):
    """
    큐에서 전달되는 task 메시지: {task_id, repo_url}
    """

    task_id: str
    repo_url: str

    @field_validator("task_id", "repo_url")
    @classmethod
    def not_blank(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("must not be empty")
        return value


def parse_task_message(payload: Union[dict, str, bytes]) -> AnalysisTask:
    """
    JSON 메시지 또는 queue document → AnalysisTask

    Raises:
        MalformedInput: JSON이 아니거나 필드가 없거나 비어 있는 경우
    """
    if isinstance(payload, (str, bytes)):
        try:
            payload = json.loads(payload)
        except json.JSONDecodeError as e:
            raise MalformedInput(f"Failed to unmarshal task: {e}") from e

    if not isinstance(payload, dict):
        raise MalformedInput("Task body must be a JSON object")

    try:
        return AnalysisTask(task_id=payload.get("task_id"), repo_url=payload.get("repo_url"))
    except ValidationError as e:
        raise MalformedInput(f"Invalid task body: {e.errors()[0]['msg']}") from e


def create_task_document(
    task_id: str,
    repo_url: str,
    max_attempts: int = 1,
    now: Optional[datetime] = None,
) -> dict:
    """
    analysis_tasks 컬렉션용 document 생성

    Args:
        task_id: API가 발급한 uuid
        repo_url: "https://github.com/<owner>/<name>"
        max_attempts: store write 실패 시 재시도 허용 횟수 (기본 1 = 재시도 없음)
    """
    now = now or datetime.now(timezone.utc)

    return {
        "task_id": task_id,
        "repo_url": repo_url,
        "status": "pending",
        "attempts": 0,
        "max_attempts": max_attempts,
        "created_at": now,
        "updated_at": now,
        "worker_id": None,       # running 전환 시 처리 worker 기록
        "started_at": None,      # running 전환 시 기록
        "completed_at": None,    # done/failed 전환 시 기록
        "error_message": None,   # failed 시 원인 기록
        "failure_reason": None,  # bad_reference | missing_credential | store_write_error
    }
