"""
FFI bindings for the embedded CPython runtime.

Justification: the embedding API is consumed through ctypes, so every entry
point needs explicit argtypes/restype. Without them ctypes passes pointers as
C ints and returns ints, which truncates 64-bit pointers and cannot express
``PyStatus`` being returned by value.

The runtime is the current interpreter unless ``PYEMBED_LIBPYTHON`` names a
libpython shared library, or :func:`load_runtime` is called with a path.
"""

from __future__ import annotations

import ctypes
import os
import re
import sys
import sysconfig
from typing import Any

from ._logging import scoped_logger
from .exceptions import LayoutError, RuntimeLoadError
from .layout import PyStatus, layout_for

logger = scoped_logger("runtime")

__all__ = ["Runtime", "get_runtime", "load_runtime"]

# Entry points every runtime must export
REQUIRED_SYMBOLS = (
    "PyConfig_InitIsolatedConfig",
    "PyConfig_SetBytesArgv",
    "PyStatus_Exception",
    "PyConfig_Clear",
)

_VERSION_RE = re.compile(r"^(\d+)\.(\d+)\.(\d+)")


def _setup_signatures(lib: ctypes.CDLL) -> None:
    """Declare argtypes/restype for the consumed entry points."""
    # void PyConfig_InitIsolatedConfig(PyConfig *config)
    lib.PyConfig_InitIsolatedConfig.argtypes = [ctypes.c_void_p]
    lib.PyConfig_InitIsolatedConfig.restype = None

    # PyStatus PyConfig_SetBytesArgv(PyConfig *config, Py_ssize_t argc, char * const *argv)
    lib.PyConfig_SetBytesArgv.argtypes = [
        ctypes.c_void_p,
        ctypes.c_ssize_t,
        ctypes.POINTER(ctypes.c_char_p),
    ]
    lib.PyConfig_SetBytesArgv.restype = PyStatus

    # int PyStatus_Exception(PyStatus err)
    lib.PyStatus_Exception.argtypes = [PyStatus]
    lib.PyStatus_Exception.restype = ctypes.c_int

    # void PyConfig_Clear(PyConfig *config)
    lib.PyConfig_Clear.argtypes = [ctypes.c_void_p]
    lib.PyConfig_Clear.restype = None


def _parse_version(text: str) -> tuple[int, int, int]:
    match = _VERSION_RE.match(text)
    if match is None:
        raise RuntimeLoadError(
            f"Unrecognized runtime version string: {text!r}",
            details={"version": text},
        )
    return (int(match.group(1)), int(match.group(2)), int(match.group(3)))


class Runtime:
    """
    Foreign entry points of one embedded CPython runtime.

    Wraps a loaded library handle together with the runtime version and the
    ``PyConfig`` layout mirrored for that version. Methods are thin, typed
    pass-throughs; interpreting statuses is left to :mod:`pyembed.status`.

    Args:
        lib: Library handle exporting the embedding API.
        version: ``(major, minor, micro)`` of the runtime.
        name: Where the library came from, for logs and errors.

    Raises
    ------
    RuntimeLoadError
        If the library lacks one of the required entry points.
    LayoutError
        If no ``PyConfig`` layout is mirrored for ``version``.
    """

    def __init__(self, lib: ctypes.CDLL, version: tuple[int, int, int], name: str) -> None:
        missing = [symbol for symbol in REQUIRED_SYMBOLS if not hasattr(lib, symbol)]
        if missing:
            raise RuntimeLoadError(
                f"Runtime {name} does not export {', '.join(missing)}",
                details={"library": name, "missing": missing},
            )
        if sys.platform == "win32":
            # Windows adds legacy_windows_stdio to PyConfig
            raise LayoutError(
                "No PyConfig layout for Windows builds", details={"platform": sys.platform}
            )
        self.layout = layout_for(version)
        self.version = version
        self.name = name
        self._lib = lib
        _setup_signatures(lib)

    def __repr__(self) -> str:
        major, minor, micro = self.version
        return f"Runtime({self.name!r}, version={major}.{minor}.{micro})"

    def init_isolated_config(self, config: Any) -> None:
        """Call ``PyConfig_InitIsolatedConfig``; it returns nothing."""
        self._lib.PyConfig_InitIsolatedConfig(config)

    def set_bytes_argv(self, config: Any, argc: int, argv: Any) -> PyStatus:
        """Call ``PyConfig_SetBytesArgv`` and return its status unchecked."""
        return self._lib.PyConfig_SetBytesArgv(config, argc, argv)

    def status_exception(self, status: PyStatus) -> int:
        """Call ``PyStatus_Exception``; non-zero means error or exit."""
        return self._lib.PyStatus_Exception(status)

    def config_clear(self, config: Any) -> None:
        """Call ``PyConfig_Clear``, freeing every runtime-owned field."""
        self._lib.PyConfig_Clear(config)


def _check_build() -> None:
    """Refuse interpreter builds whose PyConfig carries fields we don't mirror."""
    reasons = []
    if hasattr(sys, "gettotalrefcount"):
        reasons.append("debug build (Py_DEBUG)")
    if sysconfig.get_config_var("Py_GIL_DISABLED"):
        reasons.append("free-threaded build (Py_GIL_DISABLED)")
    if reasons:
        raise LayoutError(
            f"No PyConfig layout for this interpreter: {', '.join(reasons)}",
            details={"reasons": reasons},
        )


def _current_runtime() -> Runtime:
    _check_build()
    # Private handle so our argtypes don't leak onto ctypes.pythonapi
    lib = ctypes.PyDLL(ctypes.pythonapi._name, handle=ctypes.pythonapi._handle)
    return Runtime(lib, tuple(sys.version_info[:3]), "<current interpreter>")


def load_runtime(path: str | os.PathLike[str] | None = None) -> Runtime:
    """
    Load an embedded runtime.

    Args:
        path: libpython shared library to load. None selects the current
            interpreter.

    Returns
    -------
    Runtime
        A new runtime binding (not cached; see :func:`get_runtime`).

    Raises
    ------
    RuntimeLoadError
        If the library cannot be loaded or reports an unusable version.
    LayoutError
        If no ``PyConfig`` layout is mirrored for its version.
    """
    if path is None:
        runtime = _current_runtime()
    else:
        path = os.fspath(path)
        try:
            lib = ctypes.CDLL(path)
        except OSError as exc:
            raise RuntimeLoadError(
                f"Cannot load runtime library {path}: {exc}",
                details={"library": path},
            ) from exc
        try:
            get_version = lib.Py_GetVersion
        except AttributeError:
            raise RuntimeLoadError(
                f"{path} does not export Py_GetVersion",
                details={"library": path},
            ) from None
        get_version.argtypes = []
        get_version.restype = ctypes.c_char_p
        version = _parse_version(get_version().decode("utf-8", "replace"))
        runtime = Runtime(lib, version, path)

    logger.debug(
        "Runtime loaded",
        extra={"library": runtime.name, "layout": runtime.layout.__name__},
    )
    return runtime


_runtime: Runtime | None = None


def get_runtime() -> Runtime:
    """
    Return the default runtime, loading it on first use.

    ``PYEMBED_LIBPYTHON`` selects a libpython shared library; when unset the
    current interpreter is used.
    """
    global _runtime
    if _runtime is None:
        _runtime = load_runtime(os.environ.get("PYEMBED_LIBPYTHON") or None)
    return _runtime
