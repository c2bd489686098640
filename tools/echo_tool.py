"""Diagnostic tool: echoes parameters back or produces a requested error result."""

from __future__ import annotations

import logging
from typing import Any

from core.errors import ErrorCode, error_result

logger = logging.getLogger(__name__)


def run_echo(params: dict[str, Any]) -> dict[str, Any]:
    operation = params.get("operation")
    logger.info("echo tool called with operation=%r", operation)

    if not operation:
        return error_result(ErrorCode.INVALID_PARAMETER, "Missing 'operation' parameter for echo tool.")

    if operation == "echo":
        if "params_to_echo" not in params:
            return error_result(ErrorCode.INVALID_PARAMETER, "Missing 'params_to_echo' for echo operation.")
        return {"status": "success", "echoed_params": params["params_to_echo"]}

    if operation == "generate_error":
        code = params.get("error_code_to_generate")
        message = params.get("error_message_to_generate")
        if not code:
            return error_result(
                ErrorCode.INVALID_PARAMETER, "Missing 'error_code_to_generate' for generate_error operation."
            )
        if not message:
            return error_result(
                ErrorCode.INVALID_PARAMETER, "Missing 'error_message_to_generate' for generate_error operation."
            )
        return error_result(code, message)

    return error_result(ErrorCode.UNKNOWN_OPERATION, f"Unknown operation {operation!r} for echo tool.")
