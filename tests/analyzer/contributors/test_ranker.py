from analyzer.contributors.models import ContributorStats
from analyzer.contributors.ranker import rank_contributors


def stats_map(*entries):
    return {s.identity: s for s in entries}


class TestRankContributors:
    def test_sorted_by_total_descending(self):
        stats = stats_map(
            ContributorStats("alice", commit_count=1),
            ContributorStats("bob", commit_count=5, issue_count=1),
            ContributorStats("carol", pull_request_count=3),
        )

        ranked = rank_contributors(stats)

        assert [s.identity for s in ranked] == ["bob", "carol", "alice"]

    def test_ties_broken_by_identity(self):
        entries = [
            ContributorStats("zed", commit_count=2),
            ContributorStats("amy", issue_count=2),
            ContributorStats("kim", pull_request_count=1, commit_count=1),
        ]

        forward = rank_contributors(stats_map(*entries))
        backward = rank_contributors(stats_map(*reversed(entries)))

        assert [s.identity for s in forward] == ["amy", "kim", "zed"]
        assert forward == backward

    def test_truncated_to_ten(self):
        stats = stats_map(*(ContributorStats(f"user{i:02d}", commit_count=i) for i in range(25)))

        ranked = rank_contributors(stats)

        assert len(ranked) == 10
        assert ranked[0].identity == "user24"
        totals = [s.total_count for s in ranked]
        assert totals == sorted(totals, reverse=True)

    def test_fewer_than_limit_not_padded(self):
        stats = stats_map(ContributorStats("alice", commit_count=1), ContributorStats("bob", issue_count=4))

        assert len(rank_contributors(stats)) == 2
        assert rank_contributors({}) == []

    def test_custom_limit(self):
        stats = stats_map(*(ContributorStats(f"u{i}", commit_count=i) for i in range(5)))

        assert [s.identity for s in rank_contributors(stats, limit=2)] == ["u4", "u3"]
