from dataclasses import dataclass
from enum import Enum


class ResourceKind(str, Enum):
    COMMITS = "commits"
    PULL_REQUESTS = "pull_requests"
    ISSUES = "issues"


@dataclass(frozen=True)
class ContributorStats:
    """
    Per-contributor activity counters for one task run.

    identity is an account handle, or an author email for commits
    without a linked account.
    """

    identity: str
    commit_count: int = 0
    pull_request_count: int = 0
    issue_count: int = 0

    @property
    def total_count(self) -> int:
        return self.commit_count + self.pull_request_count + self.issue_count

    def count_for(self, kind: ResourceKind) -> int:
        if kind is ResourceKind.COMMITS:
            return self.commit_count
        if kind is ResourceKind.PULL_REQUESTS:
            return self.pull_request_count
        return self.issue_count
