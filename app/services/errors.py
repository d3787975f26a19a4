from __future__ import annotations

from typing import Any


class ParkingError(Exception):
    """Base for every failure the parking API reports to callers."""

    status_code: int = 500
    code: str = "internal"

    def __init__(self, message: str, **detail: Any):
        super().__init__(message)
        self.message = message
        self.detail = detail

    def to_dict(self) -> dict[str, Any]:
        return {"message": self.message, "code": self.code, "detail": self.detail}


class NotFoundError(ParkingError):
    status_code = 404
    code = "not_found"


class ForbiddenError(ParkingError):
    status_code = 403
    code = "forbidden"


class ConflictError(ParkingError):
    # Clients of the marketplace expect 400 for "already reserved".
    status_code = 400
    code = "conflict"


class InvalidOperationError(ParkingError):
    status_code = 400
    code = "invalid_operation"


class InvalidArgumentError(ParkingError):
    status_code = 400
    code = "invalid_argument"


class UnauthorizedError(ParkingError):
    status_code = 401
    code = "unauthorized"


class InternalError(ParkingError):
    status_code = 500
    code = "internal"
