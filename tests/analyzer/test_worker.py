import asyncio
import signal
from unittest.mock import AsyncMock, MagicMock, patch
from bson import ObjectId

import pytest

from analyzer.orchestrator import FailureReason, TaskOutcome, TaskState
from analyzer.worker import AnalysisWorker


def make_task_doc(**overrides):
    base = {
        "_id": ObjectId(),
        "task_id": "task-1",
        "repo_url": "https://github.com/acme/widgets",
        "attempts": 1,
        "max_attempts": 1,
        "status": "running",
    }
    base.update(overrides)
    return base


def make_worker(outcome=None):
    queue = AsyncMock()
    queue.mark_failed.return_value = "failed"
    orchestrator = AsyncMock()
    orchestrator.process.return_value = outcome or TaskOutcome(task_id="task-1", state=TaskState.STORED)
    return AnalysisWorker(queue=queue, orchestrator=orchestrator, worker_id=1)


class TestProcessTask:
    @pytest.mark.asyncio
    async def test_stored_outcome_marks_done(self):
        worker = make_worker()
        task_doc = make_task_doc()

        await worker.process_task(task_doc)

        worker.queue.mark_done.assert_awaited_once_with(task_doc["_id"])
        worker.queue.mark_failed.assert_not_called()
        assert worker.current_task_doc_id is None

    @pytest.mark.asyncio
    async def test_orchestrator_receives_parsed_task(self):
        worker = make_worker()

        await worker.process_task(make_task_doc())

        task = worker.orchestrator.process.call_args[0][0]
        assert task.task_id == "task-1"
        assert task.repo_url == "https://github.com/acme/widgets"

    @pytest.mark.asyncio
    async def test_malformed_task_body_is_dropped(self):
        worker = make_worker()
        task_doc = make_task_doc(repo_url="")

        await worker.process_task(task_doc)

        worker.orchestrator.process.assert_not_called()
        args = worker.queue.mark_failed.call_args[0]
        assert args[0] is task_doc
        assert args[1] == "bad_reference"
        assert worker.current_task_doc_id is None

    @pytest.mark.asyncio
    async def test_dropped_task_is_not_retried(self):
        outcome = TaskOutcome(
            task_id="task-1",
            state=TaskState.FAILED,
            failure=FailureReason.MISSING_CREDENTIAL,
            error_message="GitHub credential is not configured",
        )
        worker = make_worker(outcome)

        await worker.process_task(make_task_doc())

        call = worker.queue.mark_failed.call_args
        assert call[0][1] == "missing_credential"
        assert call.kwargs["retryable"] is False

    @pytest.mark.asyncio
    async def test_store_write_error_is_retryable_by_queue(self):
        outcome = TaskOutcome(
            task_id="task-1",
            state=TaskState.FAILED,
            failure=FailureReason.STORE_WRITE_ERROR,
            error_message="timeout",
        )
        worker = make_worker(outcome)

        await worker.process_task(make_task_doc())

        call = worker.queue.mark_failed.call_args
        assert call[0][1] == "store_write_error"
        assert call.kwargs["retryable"] is True
        assert worker.failed_count == 1

    @pytest.mark.asyncio
    async def test_unexpected_error_marks_failed(self):
        worker = make_worker()
        worker.orchestrator.process.side_effect = RuntimeError("boom")

        await worker.process_task(make_task_doc())

        assert worker.queue.mark_failed.call_args[0][1] == "unexpected_error"
        assert worker.current_task_doc_id is None


class TestCleanup:
    @pytest.mark.asyncio
    async def test_cleanup_skips_when_no_current_task(self):
        worker = make_worker()
        worker.current_task_doc_id = None
        await worker.cleanup()
        worker.queue.restore.assert_not_called()

    @pytest.mark.asyncio
    async def test_cleanup_restores_running_task(self):
        worker = make_worker()
        doc_id = ObjectId()
        worker.current_task_doc_id = doc_id
        await worker.cleanup()
        worker.queue.restore.assert_awaited_once_with(doc_id)
        assert worker.current_task_doc_id is None


class TestSignalHandler:
    def test_signal_sets_shutdown(self):
        from analyzer import main
        worker = MagicMock(shutdown_requested=False)
        main.worker_instance = worker
        main.signal_handler(signal.SIGTERM, None)
        assert worker.shutdown_requested is True


class TestGracefulShutdown:
    @pytest.mark.asyncio
    async def test_exits_on_shutdown(self):
        worker = make_worker()
        worker.queue.acquire.return_value = None
        worker.queue.count_active.return_value = 1

        original_sleep = asyncio.sleep

        async def fake_sleep(n):
            worker.shutdown_requested = True
            await original_sleep(0)

        with patch("asyncio.sleep", side_effect=fake_sleep):
            await worker.run(poll_interval=1)

        assert worker.shutdown_requested is True

    @pytest.mark.asyncio
    async def test_finishes_current_task_before_exit(self):
        worker = make_worker()
        worker.queue.acquire.side_effect = [make_task_doc(), None]

        async def process(task):
            worker.shutdown_requested = True
            return TaskOutcome(task_id=task.task_id, state=TaskState.STORED)

        worker.orchestrator.process.side_effect = process

        await worker.run(poll_interval=1)

        worker.queue.mark_done.assert_awaited_once()
        assert worker.queue.acquire.await_count == 1
        worker.queue.acquire.assert_awaited_with(worker.worker_id)

    @pytest.mark.asyncio
    async def test_auto_exit_when_queue_empty(self):
        worker = make_worker()
        worker.queue.acquire.return_value = None
        worker.queue.count_active.return_value = 0

        await worker.run(poll_interval=1, auto_exit=True)

        worker.queue.count_active.assert_awaited_once()


class TestCancellation:
    @pytest.mark.asyncio
    async def test_cancel_during_task_propagates_after_cleanup(self):
        worker = make_worker()
        task_doc = make_task_doc()
        worker.queue.acquire.side_effect = [task_doc]
        started = asyncio.Event()

        async def process(task):
            started.set()
            await asyncio.Event().wait()

        worker.orchestrator.process.side_effect = process

        run = asyncio.create_task(worker.run(poll_interval=1))
        await started.wait()
        run.cancel()

        with pytest.raises(asyncio.CancelledError):
            await run

        worker.queue.restore.assert_awaited_once_with(task_doc["_id"])
        worker.queue.mark_failed.assert_not_called()
        assert worker.current_task_doc_id is None

    @pytest.mark.asyncio
    async def test_cancel_while_idle_propagates(self):
        worker = make_worker()
        worker.queue.acquire.return_value = None
        polled = asyncio.Event()

        async def acquire(worker_id):
            polled.set()
            return None

        worker.queue.acquire.side_effect = acquire

        run = asyncio.create_task(worker.run(poll_interval=5))
        await polled.wait()
        run.cancel()

        with pytest.raises(asyncio.CancelledError):
            await run

        assert run.cancelled()
        worker.queue.restore.assert_not_called()
