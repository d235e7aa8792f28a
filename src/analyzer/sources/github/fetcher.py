# src/analyzer/sources/github/fetcher.py

from dataclasses import dataclass
from typing import Callable, Iterator, List, Optional, Protocol

import requests
from github import GithubException

from analyzer.contributors.models import ResourceKind
from analyzer.sources.github.repo_ref import RepoReference
from core.errors import ProviderFetchError
from core.logging.logger import get_logger


class PageProvider(Protocol):
    def get_page(self, full_name: str, kind: ResourceKind, page: int) -> List: ...


@dataclass
class FetchOutcome:
    kind: ResourceKind
    item_count: int = 0
    pages: int = 0
    error: Optional[ProviderFetchError] = None

    @property
    def partial(self) -> bool:
        return self.error is not None


class PaginatedFetcher:
    """
    One resource kind, page by page, until the provider runs out.

    A page shorter than per_page (or empty) is the last one.
    Errors stop iteration; nothing is retried here.
    """

    def __init__(self, provider: PageProvider, kind: ResourceKind, per_page: int = 100):
        self.provider = provider
        self.kind = kind
        self.per_page = per_page
        self.logger = get_logger(__name__)
        self.pages_fetched = 0

    def iter_pages(self, repo: RepoReference) -> Iterator[List]:
        """
        Lazily yield non-empty raw pages. Raises ProviderFetchError after
        every successful page has been yielded.
        """
        self.pages_fetched = 0
        page = 0

        while True:
            try:
                items = self.provider.get_page(repo.full_name, self.kind, page)
            except GithubException as e:
                message = e.data.get("message", str(e)) if isinstance(e.data, dict) else str(e)
                raise ProviderFetchError(self.kind.value, page, message, status=e.status) from e
            except requests.RequestException as e:
                raise ProviderFetchError(self.kind.value, page, str(e)) from e

            self.pages_fetched += 1
            if items:
                yield items

            if len(items) < self.per_page:
                return
            page += 1

    def iter_items(self, repo: RepoReference) -> Iterator:
        for items in self.iter_pages(repo):
            yield from items

    def fetch(self, repo: RepoReference, on_page: Callable[[List], None]) -> FetchOutcome:
        """
        page를 받는 즉시 on_page로 넘기고 보관하지 않는다.
        에러가 나도 이미 넘긴 page는 유효 (partial)
        """
        outcome = FetchOutcome(kind=self.kind)
        try:
            for items in self.iter_pages(repo):
                on_page(items)
                outcome.item_count += len(items)
        except ProviderFetchError as e:
            outcome.error = e
            self.logger.warning(
                f"Failed to fetch {self.kind.value} for {repo.full_name}: {e.message} "
                f"(kept {outcome.item_count} items from {self.pages_fetched} pages)"
            )

        outcome.pages = self.pages_fetched
        return outcome
