"""Error taxonomy for tm-sync.

Every error raised by tm-sync derives from ``TmSyncError`` and carries a
shared payload (message, code, context) plus a ``kind`` discriminator.
Formatting and retryability are decided from the kind, so callers can
handle any tm-sync error uniformly without isinstance ladders.

Validation failures are NOT errors: the validator returns them as values.
"""

from __future__ import annotations

from enum import StrEnum
from typing import Any

import httpx


class ErrorKind(StrEnum):
    PARSER = "parser"
    MAPPING_STORE = "mapping_store"
    FILE_SYSTEM = "file_system"
    CONFIG = "config"
    TMS = "tms"
    NETWORK = "network"
    TIMEOUT = "timeout"


class TmSyncError(Exception):
    """Base exception for all tm-sync errors."""

    kind: ErrorKind

    def __init__(self, message: str, code: str, context: dict[str, Any] | None = None):
        super().__init__(message)
        self.message = message
        self.code = code
        self.context: dict[str, Any] = dict(context or {})

    def to_dict(self) -> dict[str, Any]:
        return {
            "name": type(self).__name__,
            "kind": self.kind.value,
            "message": self.message,
            "code": self.code,
            "context": self.context,
        }


class ParserError(TmSyncError):
    """A test file could not be read or decoded."""

    kind = ErrorKind.PARSER

    def __init__(self, message: str, file_path: str, line_number: int | None = None):
        self.file_path = file_path
        self.line_number = line_number
        super().__init__(message, "PARSER_ERROR", {"filePath": file_path, "lineNumber": line_number})


class MappingStoreError(TmSyncError):
    """A mapping document is corrupt (bad JSON, wrong shape, missing field)."""

    kind = ErrorKind.MAPPING_STORE

    def __init__(self, message: str, file_path: str):
        self.file_path = file_path
        super().__init__(message, "MAPPING_STORE_ERROR", {"filePath": file_path})


class FileSystemError(TmSyncError):
    """A read/write/create/delete operation failed."""

    kind = ErrorKind.FILE_SYSTEM

    OPERATIONS = ("read", "write", "create", "delete")

    def __init__(self, message: str, operation: str, file_path: str):
        if operation not in self.OPERATIONS:
            raise ValueError(f"operation must be one of {self.OPERATIONS}; got {operation!r}")
        self.operation = operation
        self.file_path = file_path
        super().__init__(message, "FILE_SYSTEM_ERROR", {"operation": operation, "filePath": file_path})


class ConfigError(TmSyncError):
    """Configuration could not be loaded or failed validation."""

    kind = ErrorKind.CONFIG

    def __init__(self, message: str, config_path: str | None = None):
        self.config_path = config_path
        super().__init__(message, "CONFIG_ERROR", {"configPath": config_path})


class TmsError(TmSyncError):
    """The test management system answered with an error status."""

    kind = ErrorKind.TMS

    def __init__(self, message: str, status_code: int, endpoint: str, response_body: Any = None):
        self.status_code = status_code
        self.endpoint = endpoint
        self.response_body = response_body
        super().__init__(
            message,
            f"TMS_ERROR_{status_code}",
            {"statusCode": status_code, "endpoint": endpoint, "responseBody": response_body},
        )

    def is_rate_limit_error(self) -> bool:
        return self.status_code == 429

    def is_auth_error(self) -> bool:
        return self.status_code in (401, 403)

    def is_not_found_error(self) -> bool:
        return self.status_code == 404


class NetworkError(TmSyncError):
    """A request never produced a response."""

    kind = ErrorKind.NETWORK

    def __init__(self, message: str, url: str, cause: BaseException | None = None):
        self.url = url
        self.cause = cause
        super().__init__(
            message,
            "NETWORK_ERROR",
            {"url": url, "cause": str(cause) if cause is not None else None},
        )


class OperationTimeoutError(TmSyncError):
    """A single attempt exceeded its time budget."""

    kind = ErrorKind.TIMEOUT

    def __init__(self, timeout: float):
        self.timeout = timeout
        super().__init__(f"Operation timed out after {timeout}s", "TIMEOUT_ERROR", {"timeout": timeout})


def is_tm_sync_error(error: object) -> bool:
    return isinstance(error, TmSyncError)


def format_error(error: BaseException | object) -> str:
    """Render an error for display: ``[CODE] message`` plus kind-specific detail."""
    if not isinstance(error, TmSyncError):
        return str(error)

    message = f"[{error.code}] {error.message}"
    if error.kind is ErrorKind.PARSER and error.context.get("lineNumber"):
        message += f" (line {error.context['lineNumber']})"
    elif error.kind is ErrorKind.TMS:
        message += f" (HTTP {error.context['statusCode']})"
    elif error.kind is ErrorKind.FILE_SYSTEM:
        message += f" ({error.context['operation']} {error.context['filePath']})"
    return message


def get_error_code(error: object) -> str:
    if isinstance(error, TmSyncError):
        return error.code
    return "UNKNOWN_ERROR"


def is_retryable_error(error: object) -> bool:
    """Return True for failures a caller may retry.

    Server errors (5xx), rate limiting (429), network failures and httpx
    transport errors are retryable; everything else is permanent.
    """
    if isinstance(error, TmSyncError):
        if error.kind is ErrorKind.TMS:
            status_code = error.context["statusCode"]
            return status_code >= 500 or status_code == 429
        return error.kind is ErrorKind.NETWORK
    return isinstance(error, httpx.TransportError)
