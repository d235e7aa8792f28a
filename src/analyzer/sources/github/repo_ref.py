# src/analyzer/sources/github/repo_ref.py

from dataclasses import dataclass
from urllib.parse import urlparse

from core.errors import MalformedInput


@dataclass(frozen=True)
class RepoReference:
    owner: str
    name: str

    @property
    def full_name(self) -> str:
        return f"{self.owner}/{self.name}"


def parse_repo_url(repo_url: str) -> RepoReference:
    """
    https://github.com/<owner>/<name>[.git] → RepoReference

    나머지 path segment (/tree/main 등)는 무시한다.
    """
    if not repo_url or not repo_url.strip():
        raise MalformedInput("repo_url is empty")

    parsed = urlparse(repo_url.strip())
    if parsed.scheme not in ("http", "https") or not parsed.netloc:
        raise MalformedInput(f"Invalid repo URL format: {repo_url}")

    parts = [part for part in parsed.path.split("/") if part]
    if len(parts) < 2:
        raise MalformedInput(f"Invalid repo URL format: {repo_url}")

    owner = parts[0]
    name = parts[1]
    if name.endswith(".git"):
        name = name[: -len(".git")]

    if not name:
        raise MalformedInput(f"Invalid repo URL format: {repo_url}")

    return RepoReference(owner=owner, name=name)
