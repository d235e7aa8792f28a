import asyncio
from typing import Optional

from analyzer.orchestrator import FailureReason, TaskOrchestrator, TaskOutcome
from analyzer.tasks.task_queue import MongoTaskQueue
from analyzer.tasks.task_schema import parse_task_message
from core.errors import MalformedInput
from core.logging.logger import get_logger


class AnalysisWorker:
    """
    analysis_tasks를 하나씩 가져와 orchestrator로 처리하는 워커
    """

    def __init__(self, queue: MongoTaskQueue, orchestrator: TaskOrchestrator, worker_id: int):
        self.queue = queue
        self.orchestrator = orchestrator
        self.worker_id = worker_id
        self.logger = get_logger(__name__)
        self.current_task_doc_id = None
        self.shutdown_requested = False

        # 진행상황 추적용
        self.processed_count = 0
        self.stored_count = 0
        self.failed_count = 0

    async def cleanup(self):
        """
        Shutdown 시 running task를 pending으로 복구
        """
        if self.current_task_doc_id:
            restored = await self.queue.restore(self.current_task_doc_id)
            if restored:
                self.logger.info(
                    f"Restored task {self.current_task_doc_id} to pending on shutdown"
                )
            self.current_task_doc_id = None

    async def process_task(self, task_doc: dict) -> Optional[TaskOutcome]:
        """
        단일 task 처리 (parse → orchestrator → queue 상태 반영)
        """
        self.current_task_doc_id = task_doc["_id"]
        self.processed_count += 1

        try:
            task = parse_task_message(task_doc)
        except MalformedInput as e:
            self.logger.error(f"[worker-{self.worker_id}] [Task {self.current_task_doc_id}] Dropped: {e}")
            await self.queue.mark_failed(task_doc, FailureReason.BAD_REFERENCE.value, str(e))
            self.failed_count += 1
            self.current_task_doc_id = None
            return None

        self.logger.info(
            f"[worker-{self.worker_id}] [Task {task.task_id}] Received "
            f"(attempt {task_doc.get('attempts')}/{task_doc.get('max_attempts')})"
        )

        try:
            outcome = await self.orchestrator.process(task)
        except Exception as e:
            self.logger.error(
                f"[worker-{self.worker_id}] [Task {task.task_id}] Unexpected error: {e}",
                exc_info=True,
            )
            await self.queue.mark_failed(task_doc, "unexpected_error", f"Unexpected error: {e}", retryable=True)
            self.failed_count += 1
            self.current_task_doc_id = None
            return None

        if outcome.stored:
            await self.queue.mark_done(task_doc["_id"])
            self.stored_count += 1
        else:
            # store write 실패만 transport 레벨 재시도 대상
            retryable = outcome.failure is FailureReason.STORE_WRITE_ERROR
            status = await self.queue.mark_failed(
                task_doc, outcome.failure.value, outcome.error_message or "", retryable=retryable
            )
            self.failed_count += 1
            self.logger.error(
                f"[worker-{self.worker_id}] [Task {task.task_id}] ❌ {outcome.failure.value} "
                f"(status={status})"
            )

        self.current_task_doc_id = None
        return outcome

    def _log_progress(self):
        """진행상황 로그 출력"""
        self.logger.info(
            f"[worker-{self.worker_id}] Progress: {self.processed_count} tasks processed "
            f"(✅ {self.stored_count} stored, ❌ {self.failed_count} failed)"
        )

    async def run(self, poll_interval: int = 2, auto_exit: bool = False):
        """
        무한 루프로 task 처리 (Docker에서 실행)

        shutdown_requested가 켜지면 현재 task까지 끝내고 종료
        """
        self.logger.info(f"[worker-{self.worker_id}] Analyzer worker started. Polling for tasks...")

        consecutive_empty = 0

        try:
            while not self.shutdown_requested:
                task_doc = await self.queue.acquire(self.worker_id)

                if task_doc:
                    consecutive_empty = 0
                    await self.process_task(task_doc)
                    if self.processed_count % 10 == 0:
                        self._log_progress()
                    continue

                consecutive_empty += 1
                if auto_exit:
                    active_count = await self.queue.count_active()
                    if active_count == 0:
                        self.logger.info(f"[worker-{self.worker_id}] No active tasks. Exiting...")
                        break

                if consecutive_empty == 1:
                    self.logger.info(f"[worker-{self.worker_id}] No pending tasks. Waiting...")
                elif consecutive_empty % 30 == 0:
                    self.logger.info(
                        f"[worker-{self.worker_id}] Still waiting for tasks... "
                        f"({consecutive_empty} polls, {consecutive_empty * poll_interval}s elapsed)"
                    )

                # Sleep을 1초씩 쪼개서 shutdown 체크
                for _ in range(poll_interval):
                    if self.shutdown_requested:
                        break
                    await asyncio.sleep(1)

        except asyncio.CancelledError:
            self.logger.info("Worker task cancelled, initiating cleanup...")
            raise
        except KeyboardInterrupt:
            self.logger.info("KeyboardInterrupt received, initiating cleanup...")
        except Exception as e:
            self.logger.error(
                f"Unexpected error in worker loop: {e}",
                exc_info=True
            )
        finally:
            # 항상 cleanup 실행
            self.logger.info("Running cleanup before exit...")
            await self.cleanup()
            self._log_progress()
