"""
pyembed exceptions.

This module defines the exception hierarchy for pyembed:

    PyEmbedError (base)
    ├── EncodingError - Argument not representable as a C string
    ├── StatusError - Runtime call reported failure through PyStatus
    ├── UnsupportedOptionError - Option set that cannot be translated yet
    ├── StateError - NativeConfig used in the wrong lifecycle state
    ├── LayoutError - No mirrored PyConfig layout for the runtime
    └── RuntimeLoadError - Embedded runtime library cannot be loaded

Usage:
    try:
        native = pyembed.resolve(config)
    except pyembed.StatusError as e:
        print(f"{e.func} failed: {e.err_msg}")
    except pyembed.PyEmbedError as e:
        # Catch any pyembed error with structured details
        print(f"Error {e.code}: {e}")
        print(f"Details: {e.details}")
"""

from typing import Any

__all__ = [
    "PyEmbedError",
    "EncodingError",
    "StatusError",
    "UnsupportedOptionError",
    "StateError",
    "LayoutError",
    "RuntimeLoadError",
]


class PyEmbedError(Exception):
    """
    Base exception for all pyembed errors.

    Attributes
    ----------
    message : str
        Human-readable error description.
    code : str
        Stable, string-based error code (e.g., "RUNTIME_STATUS").
        Use this for programmatic error handling.
    details : dict[str, Any]
        Structured context (e.g., {"index": 2, "argument": "a\\x00b"}).
    original_code : int | None
        Numeric code for logging and metrics.
    """

    def __init__(
        self,
        message: str,
        code: str = "INTERNAL_ERROR",
        details: dict[str, Any] | None = None,
        original_code: int | None = None,
    ):
        super().__init__(message)
        self.code = code
        self.details = details or {}
        self.original_code = original_code

    @property
    def message(self) -> str:
        return self.args[0]

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}({self.args[0]!r}, code={self.code!r})"


# =============================================================================
# Argument Errors
# =============================================================================


class EncodingError(PyEmbedError, ValueError):
    """
    Argument cannot be passed to the runtime as a null-terminated byte string.

    Raised before any runtime call is made when an argument contains an
    embedded NUL byte (the runtime would silently truncate it) or cannot be
    encoded with the filesystem encoding.
    """

    def __init__(
        self,
        message: str,
        code: str = "ARGV_ENCODING",
        details: dict[str, Any] | None = None,
        original_code: int | None = None,
    ):
        super().__init__(message, code, details, original_code or 100)


# =============================================================================
# Runtime Errors
# =============================================================================


class StatusError(PyEmbedError, RuntimeError):
    """
    A runtime entry point reported failure through its PyStatus result.

    Attributes
    ----------
    func : str | None
        Name of the runtime function that reported the failure.
    err_msg : str | None
        Error message reported by the runtime.
    exitcode : int
        Exit code carried by the status (meaningful for exit statuses).
    """

    def __init__(
        self,
        message: str,
        func: str | None = None,
        err_msg: str | None = None,
        exitcode: int = 0,
        code: str = "RUNTIME_STATUS",
        details: dict[str, Any] | None = None,
        original_code: int | None = None,
    ):
        details = dict(details or {})
        details.setdefault("func", func)
        details.setdefault("err_msg", err_msg)
        details.setdefault("exitcode", exitcode)
        super().__init__(message, code, details, original_code or 200)
        self.func = func
        self.err_msg = err_msg
        self.exitcode = exitcode


class UnsupportedOptionError(PyEmbedError, NotImplementedError):
    """
    An application-level option is set that cannot be translated yet.

    Only the argument vector is mapped onto the native configuration. Any
    other option that is present is refused rather than silently dropped.
    """

    def __init__(
        self,
        message: str,
        option: str | None = None,
        code: str = "OPTION_UNSUPPORTED",
        details: dict[str, Any] | None = None,
        original_code: int | None = None,
    ):
        details = dict(details or {})
        details.setdefault("option", option)
        super().__init__(message, code, details, original_code or 300)
        self.option = option


class StateError(PyEmbedError, RuntimeError):
    """
    NativeConfig used in a lifecycle state that does not allow the operation.

    For example reading fields of a config that was never initialized or has
    already been released, or reading argv before it was installed.
    """

    def __init__(
        self,
        message: str,
        code: str = "INVALID_STATE",
        details: dict[str, Any] | None = None,
        original_code: int | None = None,
    ):
        super().__init__(message, code, details, original_code or 400)


class LayoutError(PyEmbedError, RuntimeError):
    """
    No PyConfig layout is mirrored for the targeted runtime version.

    Using a layout that does not match the runtime is undefined behavior, so
    unknown versions are refused outright.
    """

    def __init__(
        self,
        message: str,
        code: str = "LAYOUT_UNSUPPORTED",
        details: dict[str, Any] | None = None,
        original_code: int | None = None,
    ):
        super().__init__(message, code, details, original_code or 500)


class RuntimeLoadError(PyEmbedError, OSError):
    """The embedded runtime shared library could not be loaded."""

    def __init__(
        self,
        message: str,
        code: str = "RUNTIME_NOT_FOUND",
        details: dict[str, Any] | None = None,
        original_code: int | None = None,
    ):
        super().__init__(message, code, details, original_code or 501)
