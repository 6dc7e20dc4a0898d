"""Error types shared by the remote client and the screens."""

from core.config import ERROR_DISPLAY_LIMIT


class ErrorCodes:
    """Error code constants."""

    NETWORK = "NETWORK"
    TIMEOUT = "TIMEOUT"
    AUTH = "AUTH"
    VALIDATION = "VALIDATION"
    NOT_FOUND = "NOT_FOUND"
    SERVER = "SERVER"
    INTERNAL = "INTERNAL"


class RemoteError(Exception):
    """A remote call failed. Never retried automatically."""

    def __init__(self, code: str, message: str, status_code: int | None = None):
        super().__init__(message)
        self.code = code
        self.message = message
        self.status_code = status_code

    def __str__(self) -> str:
        return self.message

    def __repr__(self) -> str:
        return f"RemoteError(code={self.code!r}, message={self.message!r})"


class ValidationError(ValueError):
    """Local validation failure for a single form field."""

    def __init__(self, field: str, message: str):
        super().__init__(message)
        self.field = field
        self.message = message


def truncate_error(text: str, limit: int = ERROR_DISPLAY_LIMIT) -> str:
    """Shorten long error strings for the status line."""
    if len(text) > limit:
        return text[: limit - 3] + "..."
    return text
