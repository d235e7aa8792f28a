from dataclasses import dataclass, field
from datetime import datetime
from typing import Dict, Tuple

from analyzer.contributors.models import ContributorStats
from analyzer.sources.github.repo_ref import RepoReference


@dataclass(frozen=True)
class AggregationResult:
    """
    analysis_results 컬렉션에 한 번 쓰이는 task 단위 결과
    """

    task_id: str
    repo_url: str
    repo: RepoReference
    processed_at: datetime
    total_commits: int
    total_pull_requests: int
    total_issues: int
    top_contributors: Tuple[ContributorStats, ...] = ()
    # partial fetch된 resource kind → error message
    fetch_errors: Dict[str, str] = field(default_factory=dict)

    @property
    def partial(self) -> bool:
        return bool(self.fetch_errors)
