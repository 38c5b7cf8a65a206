"""Domain errors, translated to JSON responses by the handlers in app.main."""


class AppError(Exception):
    status_code = 500

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ValidationError(AppError):
    """Bad user input (empty title, empty chat message, unknown filter)."""
    status_code = 400


class NotFoundError(AppError):
    status_code = 404


class ChatBusyError(AppError):
    """A chat message is already in flight for this client."""
    status_code = 409


class StorageError(AppError):
    """Persistence medium failure or malformed stored contents."""
    status_code = 500


class ConfigurationError(AppError):
    status_code = 500


class UpstreamError(AppError):
    """The chat service answered with a non-success status or was unreachable."""
    status_code = 500


class ChatTimeoutError(AppError):
    status_code = 504
