"""Custom exception classes for the coordinator."""

from typing import List


class PartVaultException(Exception):
    """
    Base exception class for all partvault errors.
    """
    pass


class ValidationError(PartVaultException):
    """
    Raised when input is malformed or missing (e.g. no file payload).
    """
    pass


class CapacityExceededError(PartVaultException):
    """
    Raised when a file exceeds the aggregate size cap.
    """
    pass


class NotFoundError(PartVaultException):
    """
    Raised when a file id is unknown or has no parts.
    """
    pass


class UpstreamFailureError(PartVaultException):
    """
    Raised when a blob sink call fails, times out, or returns an unusable response.
    """
    pass


class PartialFailureError(UpstreamFailureError):
    """
    Raised when some, but not all, parts of an upload were stored.

    The upload is aborted as a whole; the counts are for diagnostics only.
    """

    def __init__(self, message: str, stored_count: int, failed_count: int):
        super().__init__(message)
        self.stored_count = stored_count
        self.failed_count = failed_count


class PartialContentMissingError(PartVaultException):
    """
    Raised when one or more parts cannot be fetched during a merge.
    """

    def __init__(self, message: str, missing_indices: List[int]):
        super().__init__(message)
        self.missing_indices = missing_indices


class CatalogError(PartVaultException):
    """
    Raised when a metadata catalog read or write fails.
    """
    pass
