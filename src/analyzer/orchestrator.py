import asyncio
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Dict, List, Optional

from analyzer.contributors.aggregator import ContributorAggregator
from analyzer.contributors.models import ResourceKind
from analyzer.contributors.ranker import DEFAULT_TOP_N, rank_contributors
from analyzer.results.result_mapper import map_result
from analyzer.results.result_schema import AggregationResult
from analyzer.sources.github.fetcher import FetchOutcome, PageProvider, PaginatedFetcher
from analyzer.sources.github.repo_ref import RepoReference, parse_repo_url
from analyzer.tasks.task_schema import AnalysisTask
from core.errors import MalformedInput, MissingCredential, StorageWriteError
from core.logging.logger import get_logger


class TaskState(str, Enum):
    RECEIVED = "received"
    FETCHING = "fetching"
    AGGREGATING = "aggregating"
    RANKING = "ranking"
    STORED = "stored"
    FAILED = "failed"


class FailureReason(str, Enum):
    BAD_REFERENCE = "bad_reference"
    MISSING_CREDENTIAL = "missing_credential"
    # partial fetch: 결과는 저장되고 degradation으로만 기록
    FETCH_ERROR_PARTIAL_USED = "fetch_error_partial_used"
    STORE_WRITE_ERROR = "store_write_error"


@dataclass
class TaskOutcome:
    task_id: str
    state: TaskState = TaskState.RECEIVED
    result: Optional[AggregationResult] = None
    failure: Optional[FailureReason] = None
    degradations: List[FailureReason] = field(default_factory=list)
    error_message: Optional[str] = None

    @property
    def stored(self) -> bool:
        return self.state is TaskState.STORED


class TaskOrchestrator:
    """
    One task: validate → fetch (3 kinds, concurrently) → aggregate → rank → store

    The only place that decides whether a task is dropped, continued with
    partial data, or failed.
    """

    def __init__(
        self,
        provider: Optional[PageProvider],
        result_store,
        credential: Optional[str],
        top_n: int = DEFAULT_TOP_N,
        per_page: int = 100,
        store_timeout: float = 30.0,
    ):
        self.provider = provider
        self.result_store = result_store
        self.credential = credential
        self.top_n = top_n
        self.per_page = per_page
        self.store_timeout = store_timeout
        self.logger = get_logger(__name__)

    async def process(self, task: AnalysisTask) -> TaskOutcome:
        outcome = TaskOutcome(task_id=task.task_id)
        self.logger.info(f"[Task {task.task_id}] Processing repo {task.repo_url}")

        try:
            repo = parse_repo_url(task.repo_url)
        except MalformedInput as e:
            self.logger.error(f"[Task {task.task_id}] Dropped: {e}")
            return self._fail(outcome, FailureReason.BAD_REFERENCE, str(e))

        try:
            self._require_credential()
        except MissingCredential as e:
            self.logger.error(f"[Task {task.task_id}] Dropped: {e}")
            return self._fail(outcome, FailureReason.MISSING_CREDENTIAL, str(e))

        outcome.state = TaskState.FETCHING
        aggregator = ContributorAggregator()
        fetched = await self._fetch_and_aggregate(repo, aggregator)

        fetch_errors: Dict[str, str] = {}
        for kind, fetch_outcome in fetched.items():
            if fetch_outcome.partial:
                fetch_errors[kind.value] = str(fetch_outcome.error)
        if fetch_errors:
            outcome.degradations.append(FailureReason.FETCH_ERROR_PARTIAL_USED)
            self.logger.warning(
                f"[Task {task.task_id}] Continuing with partial data for {repo.full_name}: "
                f"{', '.join(fetch_errors)}"
            )

        outcome.state = TaskState.AGGREGATING
        stats = aggregator.finalize()

        outcome.state = TaskState.RANKING
        ranked = rank_contributors(stats, limit=self.top_n)

        result = AggregationResult(
            task_id=task.task_id,
            repo_url=task.repo_url,
            repo=repo,
            processed_at=datetime.now(timezone.utc),
            total_commits=aggregator.total(ResourceKind.COMMITS),
            total_pull_requests=aggregator.total(ResourceKind.PULL_REQUESTS),
            total_issues=aggregator.total(ResourceKind.ISSUES),
            top_contributors=tuple(ranked),
            fetch_errors=fetch_errors,
        )
        outcome.result = result

        try:
            await self._store(result)
        except StorageWriteError as e:
            self.logger.error(f"[Task {task.task_id}] Failed to store result: {e}")
            return self._fail(outcome, FailureReason.STORE_WRITE_ERROR, str(e))

        outcome.state = TaskState.STORED
        self.logger.info(
            f"[Task {task.task_id}] ✅ Stored result for {repo.full_name} "
            f"(commits={result.total_commits}, prs={result.total_pull_requests}, "
            f"issues={result.total_issues}, contributors={len(stats)})"
        )
        return outcome

    def _require_credential(self):
        if not self.credential or self.provider is None:
            raise MissingCredential("GITHUB_TOKEN not set. Cannot fetch GitHub data.")

    async def _fetch_and_aggregate(
        self, repo: RepoReference, aggregator: ContributorAggregator
    ) -> Dict[ResourceKind, FetchOutcome]:
        """
        PyGithub는 동기 API → resource kind마다 thread 하나
        page는 받는 즉시 event loop로 넘겨 aggregator에 반영 (single writer)
        """
        loop = asyncio.get_running_loop()
        pages: asyncio.Queue = asyncio.Queue()
        kinds = list(ResourceKind)

        def deliver(kind: ResourceKind):
            def on_page(items):
                loop.call_soon_threadsafe(pages.put_nowait, (kind, items))
            return on_page

        async def fetch_all():
            try:
                return await asyncio.gather(*(
                    asyncio.to_thread(
                        PaginatedFetcher(self.provider, kind, per_page=self.per_page).fetch,
                        repo,
                        deliver(kind),
                    )
                    for kind in kinds
                ))
            finally:
                # 모든 page 전달 이후에 종료 표시
                pages.put_nowait(None)

        fetching = asyncio.create_task(fetch_all())
        while True:
            entry = await pages.get()
            if entry is None:
                break
            kind, items = entry
            aggregator.consume(kind, items)

        outcomes = await fetching
        return dict(zip(kinds, outcomes))

    async def _store(self, result: AggregationResult):
        document = map_result(result)
        # shutdown 중에도 진행 중인 write는 끝까지 (shield)
        write = asyncio.ensure_future(self.result_store.save_result(document))
        try:
            await asyncio.wait_for(asyncio.shield(write), timeout=self.store_timeout)
        except asyncio.TimeoutError as e:
            write.cancel()
            raise StorageWriteError(
                f"Result write for task {result.task_id} exceeded {self.store_timeout}s"
            ) from e

    def _fail(self, outcome: TaskOutcome, reason: FailureReason, message: str) -> TaskOutcome:
        outcome.state = TaskState.FAILED
        outcome.failure = reason
        outcome.error_message = message
        return outcome
