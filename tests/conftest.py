from types import SimpleNamespace
from unittest.mock import AsyncMock, MagicMock

import pytest
from github import GithubException

from core.errors import StorageWriteError


class FakePageProvider:
    """
    Scripted pages per resource kind. A page entry that is an Exception
    is raised instead of returned.
    """

    def __init__(self, pages=None):
        self.pages = pages or {}
        self.calls = []

    def get_page(self, full_name, kind, page):
        self.calls.append((full_name, kind, page))
        scripted = self.pages.get(kind, [])
        if page >= len(scripted):
            return []
        entry = scripted[page]
        if isinstance(entry, Exception):
            raise entry
        return list(entry)


class InMemoryResultStore:
    def __init__(self, fail_with=None):
        self.documents = {}
        self.fail_with = fail_with

    async def save_result(self, document):
        if self.fail_with is not None:
            raise self.fail_with
        self.documents[document["task_id"]] = document

    async def get_result(self, task_id):
        return self.documents.get(task_id)


def commit(login=None, email=None):
    author = SimpleNamespace(login=login) if login else None
    git_author = SimpleNamespace(email=email) if email else None
    return SimpleNamespace(author=author, commit=SimpleNamespace(author=git_author))


def pull(login=None):
    return SimpleNamespace(user=SimpleNamespace(login=login) if login else None)


def issue(login=None):
    return SimpleNamespace(user=SimpleNamespace(login=login) if login else None)


def github_error(status=500, message="Server Error"):
    return GithubException(status, {"message": message}, None)


@pytest.fixture
def items():
    return SimpleNamespace(commit=commit, pull=pull, issue=issue, github_error=github_error)


@pytest.fixture
def provider_factory():
    return FakePageProvider


@pytest.fixture
def result_store():
    return InMemoryResultStore()


@pytest.fixture
def failing_result_store():
    return InMemoryResultStore(fail_with=StorageWriteError("connection reset"))


def make_mongo_db_mock():
    db = MagicMock()
    db.__getitem__ = MagicMock(return_value=AsyncMock())
    return db


@pytest.fixture
def mongo_db():
    return make_mongo_db_mock()


@pytest.fixture
def store_factory():
    return InMemoryResultStore
