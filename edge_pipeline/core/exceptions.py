"""Exception hierarchy carrying HTTP semantics for the error responder."""
from typing import Optional

from fastapi import status


class ApplicationError(Exception):
    """Base application error with an HTTP status hint"""

    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR

    def __init__(self, message: str, *, status_code: Optional[int] = None):
        super().__init__(message)
        if status_code is not None:
            self.status_code = status_code
        self.message = message


class NotFoundError(ApplicationError):
    status_code = status.HTTP_404_NOT_FOUND


class ForbiddenError(ApplicationError):
    status_code = status.HTTP_403_FORBIDDEN
