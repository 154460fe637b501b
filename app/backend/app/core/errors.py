"""Error taxonomy raised by the planning engine services.

Each error is an ``HTTPException`` so FastAPI renders it as ``{"detail": ...}``
with the matching status code, while service callers outside HTTP can still
catch the specific class.
"""

from fastapi import HTTPException, status


class EngineError(HTTPException):
    """Base class for deterministic, non-retryable engine errors."""

    status_code = status.HTTP_400_BAD_REQUEST

    def __init__(self, detail: str) -> None:
        super().__init__(status_code=self.status_code, detail=detail)


class ValidationError(EngineError):
    """Malformed or out-of-range input."""

    status_code = status.HTTP_422_UNPROCESSABLE_ENTITY


class ConflictError(EngineError):
    """Write rejected because it collides with existing state."""

    status_code = status.HTTP_409_CONFLICT


class NotFoundError(EngineError):
    """Referenced project, phase, user or record is absent."""

    status_code = status.HTTP_404_NOT_FOUND
