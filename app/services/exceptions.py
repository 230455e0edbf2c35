class ServiceError(Exception):
    """Base exception for service layer failures."""

    def __init__(self, message: str, *, cause: Exception | None = None):
        super().__init__(message)
        self.cause = cause


class DownstreamServiceError(ServiceError):
    """Raised when the remote data gateway returns an error response."""

    def __init__(self, message: str, status_code: int | None = None, *, cause: Exception | None = None):
        super().__init__(message, cause=cause)
        self.status_code = status_code


class LoginRequired(Exception):
    """Raised by admin routes when no authenticated identity is present."""

    def __init__(self, next_path: str = "/admin"):
        super().__init__("Authentication required")
        self.next_path = next_path
