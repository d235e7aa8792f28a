from typing import Optional


class ContribPulseError(Exception):
    """Base error for the analysis pipeline"""


class MalformedInput(ContribPulseError):
    """
    Task body or repository URL could not be parsed.
    Task is dropped, no result is written.
    """


class MissingCredential(ContribPulseError):
    """
    No GitHub token configured. Hard stop, not a degraded mode.
    """


class ProviderFetchError(ContribPulseError):
    """
    A page request failed. Items fetched before the failure are kept.
    """

    def __init__(self, kind: str, page: int, message: str, status: Optional[int] = None):
        super().__init__(f"{kind} page {page}: {message}")
        self.kind = kind
        self.page = page
        self.message = message
        self.status = status


class StorageWriteError(ContribPulseError):
    """
    Result document could not be written. Terminal for the task.
    """
