"""Result codes reported by the lidar layer and the exceptions they map to."""

from __future__ import annotations

from enum import IntEnum

FAIL_BIT = 0x80000000


class ResultCode(IntEnum):
    """Numeric operation results; any code with the fail bit set is an error."""

    OK = 0
    ALREADY_DONE = 0x20
    INVALID_DATA = 0x8000 | FAIL_BIT
    OPERATION_FAIL = 0x8001 | FAIL_BIT
    OPERATION_TIMEOUT = 0x8002 | FAIL_BIT
    OPERATION_STOP = 0x8003 | FAIL_BIT
    OPERATION_NOT_SUPPORT = 0x8004 | FAIL_BIT
    FORMAT_NOT_SUPPORT = 0x8005 | FAIL_BIT
    INSUFFICIENT_MEMORY = 0x8006 | FAIL_BIT


class LidarError(Exception):
    """Base class for failed lidar operations."""

    default_code: int = ResultCode.OPERATION_FAIL

    def __init__(self, message: str | None = None, code: int | None = None) -> None:
        self.code = int(self.default_code if code is None else code)
        super().__init__(message or f"operation failed with result 0x{self.code:08x}")


class OperationFailed(LidarError):
    """The operation could not be carried out."""

    default_code = ResultCode.OPERATION_FAIL


class OperationTimeout(LidarError):
    """The operation did not complete in time."""

    default_code = ResultCode.OPERATION_TIMEOUT


class InvalidData(LidarError):
    """The data given or received was not valid."""

    default_code = ResultCode.INVALID_DATA


class OperationNotSupported(LidarError):
    """The operation is not supported here."""

    default_code = ResultCode.OPERATION_NOT_SUPPORT


class InsufficientMemory(LidarError):
    """A buffer was too small for the result."""

    default_code = ResultCode.INSUFFICIENT_MEMORY


_ERRORS: dict[int, type[LidarError]] = {
    ResultCode.OPERATION_FAIL: OperationFailed,
    ResultCode.OPERATION_TIMEOUT: OperationTimeout,
    ResultCode.INVALID_DATA: InvalidData,
    ResultCode.OPERATION_NOT_SUPPORT: OperationNotSupported,
    ResultCode.INSUFFICIENT_MEMORY: InsufficientMemory,
}


def is_ok(code: int) -> bool:
    """Return True when the fail bit of ``code`` is clear."""
    return (int(code) & FAIL_BIT) == 0


def is_fail(code: int) -> bool:
    """Return True when the fail bit of ``code`` is set."""
    return not is_ok(code)


def raise_for_result(code: int) -> int:
    """Return ``code`` if it signals success, otherwise raise the matching error."""
    if is_ok(code):
        return int(code)
    error = _ERRORS.get(int(code), LidarError)
    raise error(code=int(code))