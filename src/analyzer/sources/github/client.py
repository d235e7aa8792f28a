# src/analyzer/sources/github/client.py

from github import Auth, Github
from github.Repository import Repository
from typing import List

from analyzer.contributors.models import ResourceKind
from core.logging.logger import get_logger


class GitHubClient:
    """
    Low-level GitHub API wrapper.
    Only responsible for HTTP communication.
    """

    def __init__(self, token: str, per_page: int = 100, timeout: int = 15):
        self.client = Github(auth=Auth.Token(token), per_page=per_page, timeout=timeout)
        self.per_page = per_page
        self.logger = get_logger(__name__)

    def get_repo(self, full_name: str) -> Repository:
        # lazy: 실제 요청은 page 조회 시점에 발생
        return self.client.get_repo(full_name, lazy=True)

    def get_page(self, full_name: str, kind: ResourceKind, page: int) -> List:
        """
        한 페이지(0-based)만 가져오기

        Args:
            full_name: owner/repo
            kind: commits | pull_requests | issues
            page: 0부터 시작하는 page index
        Returns:
            PyGithub object list (마지막 이후 page는 빈 list)
        """
        repo = self.get_repo(full_name)

        if kind is ResourceKind.COMMITS:
            paginated = repo.get_commits()
        elif kind is ResourceKind.PULL_REQUESTS:
            paginated = repo.get_pulls(state="all")
        else:
            # issues API는 PR도 함께 반환한다
            paginated = repo.get_issues(state="all")

        items = paginated.get_page(page)
        self.logger.debug(f"Fetched {kind.value} page {page} for {full_name} ({len(items)} items)")
        return items
