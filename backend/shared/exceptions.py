"""Error taxonomy shared by the tracker client, the synchronizer, and the store."""


class TrackerError(Exception):
    """Base class for sync and storage failures."""


class AuthError(TrackerError):
    """Missing or rejected credential. Fatal for the current operation."""


class RemoteSourceError(TrackerError):
    """Failure talking to the remote score-tracking API."""


class TransientError(RemoteSourceError):
    """Server-side (5xx) failure on a single request. Callers may skip and continue."""

    def __init__(self, message: str, *, status_code: int) -> None:
        super().__init__(message)
        self.status_code = status_code


class NetworkError(RemoteSourceError):
    """Connectivity failure, unexpected status, or an undecodable response."""


class StorageError(TrackerError):
    """Persistence failure. The failed transaction has been rolled back."""


class RecordValidationError(TrackerError):
    """A single malformed record. The record is skipped, the batch continues."""

    def __init__(self, *, record_id: str | None, reason: str) -> None:
        self.record_id = record_id
        self.reason = reason
        super().__init__(f"invalid record {record_id or '<no id>'}: {reason}")
