"""
Domain exceptions and their HTTP mapping.

Services raise these; the global handler in ``app.main`` (or
``to_http_exception`` inside a service) turns them into HTTP responses.
"""
from typing import Any, Optional

from fastapi import HTTPException, status


class PharmaTrackException(Exception):
    code = "PHARMATRACK_ERROR"
    status_code = status.HTTP_400_BAD_REQUEST

    def __init__(self, message: str, details: Optional[dict] = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}


class EntityNotFoundException(PharmaTrackException):
    code = "NOT_FOUND"
    status_code = status.HTTP_404_NOT_FOUND

    def __init__(self, entity: str, entity_id: Any):
        super().__init__(
            f"{entity} with id {entity_id} not found",
            details={"entity": entity, "id": str(entity_id)},
        )
        self.entity = entity
        self.entity_id = entity_id


class InvalidInventorySnapshotException(PharmaTrackException):
    code = "INVALID_INVENTORY_SNAPSHOT"
    status_code = status.HTTP_422_UNPROCESSABLE_ENTITY


def to_http_exception(exc: PharmaTrackException) -> HTTPException:
    detail = {"code": exc.code, "message": exc.message}
    if exc.details:
        detail["details"] = exc.details
    return HTTPException(status_code=exc.status_code, detail=detail)
