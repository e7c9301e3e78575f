from typing import Iterable, Optional


class SheetError(Exception):
    """Base class for failures talking to the booking spreadsheet."""


class AuthError(SheetError):
    """Missing or expired access token; callers should force a logout."""

    def __init__(self, message: str = "Not authenticated"):
        super().__init__(message)


class NotFoundError(SheetError):
    def __init__(self, message: str, missing: Optional[Iterable[str]] = None):
        super().__init__(message)
        self.missing = list(missing or [])


class DuplicateError(SheetError):
    pass


class RemoteError(SheetError):
    def __init__(self, message: str, status: Optional[int] = None):
        super().__init__(message)
        self.status = status


# Substrings that mark an auth failure inside a plain error message
AUTH_FAILURE_MARKERS = ("Not authenticated", "Token expired")


def is_auth_failure(exc: BaseException) -> bool:
    if isinstance(exc, AuthError):
        return True
    msg = str(exc)
    return any(marker in msg for marker in AUTH_FAILURE_MARKERS)
