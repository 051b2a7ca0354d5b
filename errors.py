"""Error types raised by the data layer and how the API reports them."""

from fastapi import Request, status
from fastapi.responses import JSONResponse


class TrackerError(Exception):
    status_code = status.HTTP_400_BAD_REQUEST

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class NotFoundError(TrackerError):
    status_code = status.HTTP_404_NOT_FOUND


class ValidationError(TrackerError):
    status_code = status.HTTP_422_UNPROCESSABLE_ENTITY


class PermissionDeniedError(TrackerError):
    status_code = status.HTTP_403_FORBIDDEN


class BackendError(TrackerError):
    """A call to the hosted backend failed."""

    status_code = status.HTTP_502_BAD_GATEWAY


async def tracker_error_handler(request: Request, exc: TrackerError):
    return JSONResponse(
        status_code=exc.status_code,
        content={"status": "error", "message": exc.message},
    )
