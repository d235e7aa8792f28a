from types import MappingProxyType
from typing import Dict, Iterable, Mapping, Optional

from analyzer.contributors.models import ContributorStats, ResourceKind


def resolve_identity(kind: ResourceKind, item) -> Optional[str]:
    """
    item → contributor identity

    - commit: 연결된 GitHub 계정 login, 없으면 author email
    - PR / issue: 작성자 login
    - 둘 다 없으면 None (skip)

    NOTE: email로 잡힌 identity는 같은 사람의 login identity와 합쳐지지 않는다.
    """
    if kind is ResourceKind.COMMITS:
        author = getattr(item, "author", None)
        login = getattr(author, "login", None) if author is not None else None
        if login:
            return login

        git_commit = getattr(item, "commit", None)
        git_author = getattr(git_commit, "author", None) if git_commit is not None else None
        email = getattr(git_author, "email", None) if git_author is not None else None
        return email or None

    user = getattr(item, "user", None)
    login = getattr(user, "login", None) if user is not None else None
    return login or None


class ContributorAggregator:
    """
    Accumulates per-contributor counters from commits, pull requests and issues.

    Counter increments commute, so the order in which the three streams are
    consumed does not change the result. One writer per instance.
    """

    def __init__(self):
        self._counts: Dict[str, Dict[ResourceKind, int]] = {}
        self._totals: Dict[ResourceKind, int] = {kind: 0 for kind in ResourceKind}
        self._finalized = False

    def add(self, kind: ResourceKind, item) -> Optional[str]:
        if self._finalized:
            raise RuntimeError("aggregator already finalized")

        # skip된 item도 raw total에는 포함
        self._totals[kind] += 1

        identity = resolve_identity(kind, item)
        if identity is None:
            return None

        counters = self._counts.setdefault(identity, {k: 0 for k in ResourceKind})
        counters[kind] += 1
        return identity

    def consume(self, kind: ResourceKind, items: Iterable) -> int:
        consumed = 0
        for item in items:
            self.add(kind, item)
            consumed += 1
        return consumed

    def total(self, kind: ResourceKind) -> int:
        return self._totals[kind]

    def finalize(self) -> Mapping[str, ContributorStats]:
        self._finalized = True
        return MappingProxyType({
            identity: ContributorStats(
                identity=identity,
                commit_count=counters[ResourceKind.COMMITS],
                pull_request_count=counters[ResourceKind.PULL_REQUESTS],
                issue_count=counters[ResourceKind.ISSUES],
            )
            for identity, counters in self._counts.items()
        })
