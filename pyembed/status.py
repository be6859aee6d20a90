"""
Interpretation of ``PyStatus`` values returned by runtime entry points.

The runtime reports failure by returning a status struct instead of raising.
Call :func:`check` after every status-returning call, before trusting any
field that call populated.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

from ._logging import scoped_logger
from .exceptions import StatusError
from .layout import STATUS_ERROR, STATUS_EXIT, STATUS_OK, PyStatus

if TYPE_CHECKING:
    from ._bindings import Runtime

logger = scoped_logger("status")

__all__ = ["NativeStatus", "is_failure", "check", "ok_status", "error_status"]


@dataclass(frozen=True)
class NativeStatus:
    """Decoded copy of a ``PyStatus``."""

    kind: int
    func: str | None
    err_msg: str | None
    exitcode: int

    @property
    def is_exit(self) -> bool:
        return self.kind == STATUS_EXIT

    @classmethod
    def from_c(cls, status: PyStatus) -> NativeStatus:
        """Copy a C status; its strings are static and may be read directly."""
        return cls(
            kind=status._type,
            func=status.func.decode("utf-8", "replace") if status.func else None,
            err_msg=status.err_msg.decode("utf-8", "replace") if status.err_msg else None,
            exitcode=status.exitcode,
        )


def ok_status() -> PyStatus:
    """Build a success status (``PyStatus_Ok()``)."""
    return PyStatus(STATUS_OK, None, None, 0)


def error_status(func: str, err_msg: str) -> PyStatus:
    """Build an error status (``PyStatus_Error()``) for a failed post-condition."""
    return PyStatus(STATUS_ERROR, func.encode("utf-8"), err_msg.encode("utf-8"), 0)


def is_failure(status: PyStatus, runtime: Runtime | None = None) -> bool:
    """
    Return True if ``status`` signals failure of the preceding runtime call.

    A non-OK ``_type`` or a non-null ``func``/``err_msg`` is a failure on its
    own. When ``runtime`` is given its ``PyStatus_Exception`` is asked too, and
    either answer is enough to fail.
    """
    if status._type != STATUS_OK or status.func or status.err_msg:
        return True
    if runtime is not None:
        return bool(runtime.status_exception(status))
    return False


def check(status: PyStatus, runtime: Runtime | None = None, operation: str = "") -> None:
    """
    Raise :class:`StatusError` if ``status`` signals failure.

    Args:
        status: Status returned by the call that just completed.
        runtime: Runtime binding whose ``PyStatus_Exception`` is consulted.
        operation: Name of the call, used when the status carries none.
    """
    if not is_failure(status, runtime):
        return

    decoded = NativeStatus.from_c(status)
    func = decoded.func or operation or None
    err_msg = decoded.err_msg
    details: dict[str, Any] = {"kind": decoded.kind}
    if decoded.is_exit:
        message = f"{func or 'runtime'} requested exit with code {decoded.exitcode}"
    else:
        message = f"{func or 'runtime'} failed: {err_msg or 'no error message'}"

    logger.error(message, extra={"func": func, "err_msg": err_msg, "exitcode": decoded.exitcode})
    raise StatusError(
        message,
        func=func,
        err_msg=err_msg,
        exitcode=decoded.exitcode,
        details=details,
    )
