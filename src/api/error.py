"""HTTP error handling

Routes raise ClientError with the use case's Error; the handlers render every
failure in one envelope: {"success": false, "error": <message>, "code": <code>}.
"""

import logging
from typing import Optional
from fastapi import FastAPI, Request, status
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from libs.result import Error
from src.domain.errors import ErrorCode

logger = logging.getLogger(__name__)

ERROR_STATUS_CODES = {
    ErrorCode.INVALID_AMOUNT.value: status.HTTP_400_BAD_REQUEST,
    ErrorCode.INVALID_BUNDLE.value: status.HTTP_400_BAD_REQUEST,
    ErrorCode.ACCOUNT_EMAIL_MISSING.value: status.HTTP_400_BAD_REQUEST,
    ErrorCode.PAYMENT_NOT_SUCCESSFUL.value: status.HTTP_400_BAD_REQUEST,
    ErrorCode.AMOUNT_MISMATCH.value: status.HTTP_400_BAD_REQUEST,
    ErrorCode.INVALID_STATUS.value: status.HTTP_400_BAD_REQUEST,
    ErrorCode.INSUFFICIENT_FUNDS.value: status.HTTP_402_PAYMENT_REQUIRED,
    ErrorCode.ACCOUNT_NOT_FOUND.value: status.HTTP_404_NOT_FOUND,
    ErrorCode.TRANSACTION_NOT_FOUND.value: status.HTTP_404_NOT_FOUND,
    ErrorCode.ORDER_NOT_FOUND.value: status.HTTP_404_NOT_FOUND,
    ErrorCode.DUPLICATE_REFERENCE.value: status.HTTP_409_CONFLICT,
    ErrorCode.ALREADY_PROCESSED.value: status.HTTP_409_CONFLICT,
    ErrorCode.ORDER_STATUS_LOCKED.value: status.HTTP_409_CONFLICT,
    ErrorCode.SIGNATURE_INVALID.value: status.HTTP_401_UNAUTHORIZED,
    ErrorCode.OPERATOR_UNAUTHORIZED.value: status.HTTP_401_UNAUTHORIZED,
    ErrorCode.PAYMENT_PENDING.value: status.HTTP_202_ACCEPTED,
    ErrorCode.GATEWAY_UNAVAILABLE.value: status.HTTP_502_BAD_GATEWAY,
    ErrorCode.PROVIDER_UNAVAILABLE.value: status.HTTP_502_BAD_GATEWAY,
}


def status_code_for(error: Error) -> int:
    code = str(error.code)
    if code in ERROR_STATUS_CODES:
        return ERROR_STATUS_CODES[code]
    if code.endswith("_FAILED"):
        return status.HTTP_500_INTERNAL_SERVER_ERROR
    return status.HTTP_400_BAD_REQUEST


class ClientError(Exception):
    def __init__(self, error: Error, status_code: Optional[int] = None):
        super().__init__(error.message)
        self.error = error
        self.status_code = status_code or status_code_for(error)


async def client_error_handler(request: Request, exc: ClientError):
    log = logger.error if exc.status_code >= 500 else logger.info
    log(
        f"{request.method} {request.url.path} -> {exc.status_code} "
        f"{exc.error.code}: {exc.error.reason or exc.error.message}"
    )
    return JSONResponse(
        status_code=exc.status_code,
        content={
            "success": False,
            "error": exc.error.message,
            "code": str(exc.error.code),
        },
    )


async def validation_error_handler(request: Request, exc: RequestValidationError):
    return JSONResponse(
        status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
        content={
            "success": False,
            "error": "Invalid request parameters",
            "code": "VALIDATION_ERROR",
            "details": jsonable_encoder(exc.errors()),
        },
    )


def register_error_handlers(app: FastAPI):
    app.add_exception_handler(ClientError, client_error_handler)
    app.add_exception_handler(RequestValidationError, validation_error_handler)
