"""Error taxonomy shared by the path gate, the find engine and every tool."""

from __future__ import annotations

from enum import Enum
from typing import Any


class ErrorCode(str, Enum):
    PATH_NOT_FOUND = "PathNotFound"
    PATH_IS_FILE = "PathIsFile"
    PATH_IS_DIRECTORY = "PathIsDirectory"
    ACCESS_DENIED = "AccessDenied"
    INVALID_PATH = "InvalidPath"
    INVALID_CRITERION = "InvalidCriterion"
    INVALID_PARAMETER = "InvalidParameter"
    OPERATION_FAILED = "OperationFailed"
    RESOURCE_LIMIT_EXCEEDED = "ResourceLimitExceeded"
    UNKNOWN_OPERATION = "UnknownOperation"
    INTERNAL_ERROR = "InternalError"


class GatewayError(Exception):
    """Raised when a request cannot be served.  Carries a stable error code."""

    def __init__(self, code: ErrorCode, message: str):
        super().__init__(message)
        self.code = code
        self.message = message

    def to_result(self) -> dict[str, Any]:
        return error_result(self.code, self.message)


def error_result(code: ErrorCode | str, message: str) -> dict[str, Any]:
    """The error shape every tool returns: status / error_code / error_message."""
    value = code.value if isinstance(code, ErrorCode) else str(code)
    return {"status": "error", "error_code": value, "error_message": message}
