"""
API errors.

Every failure a handler reports to the client is one of these. They are
plain ``HTTPException`` subclasses, so FastAPI renders them as
``{"detail": message}`` with the matching status code.
"""
from fastapi import HTTPException


class Unauthorized(HTTPException):
    def __init__(self, detail: str = "Unauthorized"):
        super().__init__(status_code=401, detail=detail, headers={"WWW-Authenticate": "Bearer"})


class Forbidden(HTTPException):
    def __init__(self, detail: str = "Forbidden"):
        super().__init__(status_code=403, detail=detail)


class NotFound(HTTPException):
    def __init__(self, detail: str = "Not found"):
        super().__init__(status_code=404, detail=detail)


class Conflict(HTTPException):
    # the mobile client expects 400 for a duplicate email
    def __init__(self, detail: str = "Already exists"):
        super().__init__(status_code=400, detail=detail)


class InsufficientStock(HTTPException):
    def __init__(self, detail: str = "Insufficient stock"):
        super().__init__(status_code=400, detail=detail)


class InternalError(HTTPException):
    def __init__(self, detail: str = "Internal server error"):
        super().__init__(status_code=500, detail=detail)
