"""Exceptions raised by the embedded store."""


class StoreError(Exception):
    """Base class for all store errors."""

    def __init__(self, message: str, collection: str | None = None) -> None:
        self.message = message
        self.collection = collection
        super().__init__(message)


class StoreConnectionError(StoreError, ConnectionError):
    """Raised when the store cannot be opened or its handle was invalidated."""
    pass


class ReadError(StoreError):
    """Raised when a read fails (undeclared collection, transport failure)."""
    pass


class WriteError(StoreError):
    """Raised when a write fails (invalid record, quota, aborted transaction)."""
    pass


class OperationTimeoutError(StoreError, TimeoutError):
    """Raised when a caller stops waiting for an operation.

    The outcome of the operation is unknown: a write may still land.
    """

    def __init__(self, message: str, timeout: float) -> None:
        self.timeout = timeout
        super().__init__(message)
