from analyzer.contributors.models import ContributorStats
from analyzer.results.result_schema import AggregationResult


def map_contributor(stats: ContributorStats) -> dict:
    return {
        "user": stats.identity,
        "commits": stats.commit_count,
        "pull_requests": stats.pull_request_count,
        "issues": stats.issue_count,
        "total": stats.total_count,
    }


def map_result(result: AggregationResult) -> dict:
    """
    AggregationResult → analysis_results document

    모든 task가 같은 shape를 사용한다 (partial이어도 동일).
    """
    return {
        # --------------------
        # Identity
        # --------------------
        "task_id": result.task_id,
        "repo_url": result.repo_url,
        "repo": {
            "owner": result.repo.owner,
            "name": result.repo.name,
        },
        "processed_at": result.processed_at,

        # --------------------
        # Fetch health
        # --------------------
        "partial": result.partial,
        "fetch_errors": dict(result.fetch_errors),

        # --------------------
        # Summary
        # --------------------
        "summary": {
            "total_commits": result.total_commits,
            "total_issues": result.total_issues,
            "total_prs": result.total_pull_requests,
            "top_contributors": [map_contributor(c) for c in result.top_contributors],
        },
    }
