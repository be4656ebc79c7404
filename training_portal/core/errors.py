import logging
from typing import Any

from fastapi import FastAPI, HTTPException, Request
from fastapi.responses import JSONResponse
from pymongo.errors import DuplicateKeyError, PyMongoError

logger = logging.getLogger(__name__)


# ==================== ERROR TAXONOMY ====================

class Unauthorized(HTTPException):
    def __init__(self, detail: Any = "Unauthorized"):
        super().__init__(status_code=401, detail=detail)


class Forbidden(HTTPException):
    """Actor lacks ownership, role or enrollment"""

    def __init__(self, detail: Any = "Not authorized"):
        super().__init__(status_code=403, detail=detail)


class NotFound(HTTPException):
    """Referenced course, enrollment or user is absent"""

    def __init__(self, detail: Any = "Not found"):
        super().__init__(status_code=404, detail=detail)


class ValidationFailed(HTTPException):
    """Missing or out-of-range values, duplicate submissions, unmet gates"""

    def __init__(self, detail: Any):
        super().__init__(status_code=400, detail=detail)


class Conflict(HTTPException):
    """Unique-constraint violation"""

    def __init__(self, detail: Any = "Resource already exists"):
        super().__init__(status_code=409, detail=detail)


# ==================== HANDLERS ====================

async def duplicate_key_handler(request: Request, exc: DuplicateKeyError):
    logger.warning("Duplicate key on %s %s: %s", request.method, request.url.path, exc)
    return JSONResponse(status_code=409, content={"detail": "Resource already exists"})


async def store_error_handler(request: Request, exc: PyMongoError):
    logger.exception("Database error on %s %s", request.method, request.url.path, exc_info=exc)
    return JSONResponse(status_code=500, content={"detail": "Server error"})


def register_error_handlers(app: FastAPI):
    # DuplicateKeyError subclasses PyMongoError; the more specific handler wins
    app.add_exception_handler(DuplicateKeyError, duplicate_key_handler)
    app.add_exception_handler(PyMongoError, store_error_handler)
