"""Error taxonomy for the CodeKit client."""

from typing import Any


class CodeKitError(Exception):
    """Base class for all client errors."""


class APIError(CodeKitError):
    """The server rejected the request or reported a logical failure."""

    def __init__(
        self,
        message: str,
        status: int,
        code: str | None = None,
        details: Any = None,
    ):
        super().__init__(message)
        self.message = message
        self.status = status
        self.code = code if code is not None else str(status)
        self.details = details

    def __repr__(self) -> str:
        return f"APIError({self.message!r}, status={self.status}, code={self.code!r})"


class NetworkError(CodeKitError):
    """The request never reached the server or no response came back."""

    def __init__(self, message: str = "Could not connect to server"):
        super().__init__(message)
        self.message = message


class StorageError(CodeKitError):
    """Local persistence is unavailable. Absorbed at the storage boundary."""


class ChunkLoadError(CodeKitError):
    """A lazily loaded page variant could not be imported, even after a reload."""

    def __init__(self, message: str, chunk_name: str | None = None):
        super().__init__(message)
        self.chunk_name = chunk_name


class ImportFormatError(CodeKitError):
    """An import file is not valid JSON or holds no collection to import."""
