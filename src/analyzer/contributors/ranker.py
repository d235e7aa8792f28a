from typing import List, Mapping

from analyzer.contributors.models import ContributorStats

DEFAULT_TOP_N = 10


def ranking_key(stats: ContributorStats):
    # total 내림차순, 동점이면 identity 오름차순
    return (-stats.total_count, stats.identity)


def rank_contributors(stats: Mapping[str, ContributorStats], limit: int = DEFAULT_TOP_N) -> List[ContributorStats]:
    """
    Top-N contributors by total_count.

    Ties are ordered by identity (ascending), so the output never depends
    on mapping iteration order. Fewer than `limit` contributors are
    returned as-is, never padded.
    """
    if limit <= 0:
        return []
    return sorted(stats.values(), key=ranking_key)[:limit]
