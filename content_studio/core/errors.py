class ContentStudioError(Exception):
    """Base class for errors raised by the content studio."""


class UpstreamFormatError(ContentStudioError, ValueError):
    """A generative API answered, but not in the shape we asked for."""


class UpstreamTransportError(ContentStudioError):
    """A generative API returned a non-2xx status."""

    def __init__(self, message: str, status_code: int | None = None, body: str = ""):
        super().__init__(message)
        self.status_code = status_code
        self.body = body


class InstructionsValidationError(ContentStudioError):
    def __init__(self, errors: list[str]):
        super().__init__("Invalid brand instructions: " + "; ".join(errors))
        self.errors = errors


class AssetValidationError(ContentStudioError):
    pass


class AssetNotFoundError(ContentStudioError):
    pass


class StorageError(ContentStudioError):
    """Raised when a document or blob store operation fails."""
