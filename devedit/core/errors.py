"""Domain-specific errors for devedit."""


class DeveditError(Exception):
    """Base error for devedit."""


class DocumentError(DeveditError):
    """Raised when a backend document does not conform to schema or semantics."""


class UnknownTemplateError(DeveditError):
    """Raised when a template id is not in the registry catalog."""


class SettingsError(DeveditError):
    """Raised when the settings file cannot be read or is invalid."""


class BackendError(DeveditError):
    """Base backend error."""


class BackendHTTPError(BackendError):
    """Raised when the backend answers with a non-2xx status."""

    def __init__(self, status_code: int, message: str | None = None) -> None:
        super().__init__(message or f"HTTP {status_code}")
        self.status_code = status_code


class BackendTransportError(BackendError):
    """Raised when the backend cannot be reached or the request times out."""


class BackendResponseError(BackendError):
    """Raised when a backend response body cannot be decoded."""
