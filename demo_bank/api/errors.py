"""
Translation of banking errors into HTTP responses
"""

from fastapi import HTTPException, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from ..errors import (
    AccountNotFound, AlreadyFavorite, BankingError, DestinationNotFound,
    DuplicateEmail, FavoriteNotFound, FavoriteRequiredForLargeAmount,
    InvalidCredentials, InvalidToken, SenderNotFound, UserNotFound
)


STATUS_BY_ERROR = {
    InvalidCredentials: 401,
    InvalidToken: 401,
    FavoriteRequiredForLargeAmount: 403,
    SenderNotFound: 404,
    DestinationNotFound: 404,
    AccountNotFound: 404,
    FavoriteNotFound: 404,
    UserNotFound: 404,
    DuplicateEmail: 409,
    AlreadyFavorite: 409,
}


def status_for(error: BankingError) -> int:
    """HTTP status for a banking error; rule violations default to 400"""
    return STATUS_BY_ERROR.get(type(error), 400)


def http_error(error: BankingError) -> HTTPException:
    return HTTPException(
        status_code=status_for(error),
        detail={"error": str(error), "code": error.code}
    )


async def validation_exception_handler(request: Request, exc: RequestValidationError):
    """Report request body validation failures as 400 with field details"""
    details = []
    for error in exc.errors():
        location = ".".join(str(part) for part in error.get("loc", ()) if part != "body")
        details.append(f"{location}: {error.get('msg')}" if location else error.get("msg"))
    return JSONResponse(
        status_code=400,
        content={"detail": {"error": "Invalid data", "code": "validation_error", "details": details}}
    )
