"""Typed errors raised by the blog services.

Each class carries the HTTP status the API boundary renders it with; services
raise them at the point of detection and never translate them locally.
"""

from fastapi import status


class BlogError(Exception):
    """Base class for blog domain errors."""

    status_code: int = status.HTTP_400_BAD_REQUEST
    detail: str = "blog_error"

    def __init__(self, detail: str | None = None) -> None:
        super().__init__(detail or self.detail)
        if detail:
            self.detail = detail


class NotFoundError(BlogError):
    """A post, comment, parent comment or tag does not exist."""

    status_code = status.HTTP_404_NOT_FOUND
    detail = "not_found"


class ForbiddenError(BlogError):
    """The acting user does not own the entity being mutated."""

    status_code = status.HTTP_403_FORBIDDEN
    detail = "Access denied"

    def __init__(self) -> None:
        # never echo anything about the real owner
        super().__init__()


class InvalidArgumentError(BlogError):
    """Malformed combination of inputs, e.g. both like targets or bad image URLs."""

    status_code = status.HTTP_400_BAD_REQUEST
    detail = "invalid_argument"


class DatabaseOperationError(BlogError):
    """A storage write failed; raise it ``from`` the original exception."""

    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    detail = "database_operation_failed"
