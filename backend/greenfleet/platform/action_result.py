"""
Uniform outcome envelope for every server-side operation.

An operation returns either Success(data) or Failure(error, code). The two
shapes are separate frozen dataclasses discriminated by their `success`
literal; a Failure never carries data and a Success never carries an error.

Recoverable conditions (bad input, missing permission, missing tenant, not
found, duplicates) are returned as Failure at the point of detection and
propagated unchanged by callers. Unexpected storage errors are caught at the
outermost operation boundary and turned into an INTERNAL failure with a
generic message via internal_error(), which logs the real cause.

Usage:
    auth = require_auth(db, headers)
    if isinstance(auth, Failure):
        return auth
    ctx = auth.data
    ...
    return ok(employee)
"""

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Any, Generic, Literal, Optional, TypeVar, Union

from fastapi import status

from greenfleet.platform.normalize import numberify

logger = logging.getLogger(__name__)

T = TypeVar("T")

GENERIC_INTERNAL_MESSAGE = "An unexpected error occurred"


class ErrorCode(str, Enum):
    """Closed set of failure kinds."""
    VALIDATION = "VALIDATION"
    NOT_FOUND = "NOT_FOUND"
    UNAUTHORIZED = "UNAUTHORIZED"
    FORBIDDEN = "FORBIDDEN"
    CONFLICT = "CONFLICT"
    INTERNAL = "INTERNAL"


_HTTP_STATUS = {
    ErrorCode.VALIDATION: status.HTTP_400_BAD_REQUEST,
    ErrorCode.NOT_FOUND: status.HTTP_404_NOT_FOUND,
    ErrorCode.UNAUTHORIZED: status.HTTP_401_UNAUTHORIZED,
    ErrorCode.FORBIDDEN: status.HTTP_403_FORBIDDEN,
    ErrorCode.CONFLICT: status.HTTP_409_CONFLICT,
    ErrorCode.INTERNAL: status.HTTP_500_INTERNAL_SERVER_ERROR,
}


@dataclass(frozen=True)
class Success(Generic[T]):
    data: T
    success: Literal[True] = True


@dataclass(frozen=True)
class Failure:
    error: str
    code: ErrorCode
    success: Literal[False] = False


ActionResult = Union[Success[T], Failure]


def ok(data: T) -> Success[T]:
    return Success(data=data)


def fail(code: ErrorCode, message: str) -> Failure:
    return Failure(error=message, code=code)


def internal_error(
    operation: str,
    exc: BaseException,
    message: str = GENERIC_INTERNAL_MESSAGE,
    user_id: Optional[str] = None,
    tenant_id: Optional[str] = None,
    **context: Any,
) -> Failure:
    """
    Log an unexpected failure with its context and return a generic INTERNAL result.

    The exception text goes to the log only; the caller sees `message`.
    """
    logger.error(
        f"Failed to {operation}",
        extra={
            "operation": operation,
            "user_id": user_id,
            "tenant_id": tenant_id,
            "error": f"{type(exc).__name__}: {exc}",
            **context,
        },
        exc_info=exc,
    )
    return Failure(error=message, code=ErrorCode.INTERNAL)


def http_status_for(result: ActionResult) -> int:
    """HTTP status matching a result: 200 for success, mapped code otherwise."""
    if isinstance(result, Success):
        return status.HTTP_200_OK
    return _HTTP_STATUS[result.code]


def to_dict(result: ActionResult) -> dict:
    """
    JSON-ready envelope.

    Success -> {"success": True, "data": ...}
    Failure -> {"success": False, "error": ..., "code": ...}
    """
    if isinstance(result, Success):
        return {"success": True, "data": numberify(result.data)}
    return {"success": False, "error": result.error, "code": result.code.value}
