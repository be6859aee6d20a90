"""
Argument-vector marshaling for ``PyConfig_SetBytesArgv``.

Arguments are encoded the way the runtime would receive them from the OS:
with the filesystem encoding and ``surrogateescape``. Every buffer handed to
the runtime is owned by an :class:`ArgumentVector` that lives exactly as long
as the call; the runtime copies argv into its own memory before returning.
"""

from __future__ import annotations

import ctypes
import os
from collections.abc import Iterable
from typing import Any, Union

from ._logging import scoped_logger
from .exceptions import EncodingError, StateError
from .native import ConfigState, NativeConfig
from .status import check, error_status

logger = scoped_logger("argv")

__all__ = ["ArgumentVector", "encode_argument", "set_argv"]

Argument = Union[str, bytes, os.PathLike]


def encode_argument(value: Argument, index: int = 0) -> bytes:
    """
    Encode one argument as the bytes of a C string (without the terminator).

    Raises
    ------
    EncodingError
        If the argument contains a NUL byte or cannot be encoded.
    """
    try:
        encoded = os.fsencode(value)
    except UnicodeEncodeError as exc:
        raise EncodingError(
            f"Argument {index} cannot be encoded with the filesystem encoding: {exc.reason}",
            details={"index": index, "argument": repr(value)},
        ) from exc
    except TypeError as exc:
        raise EncodingError(
            f"Argument {index} must be str, bytes or os.PathLike, not {type(value).__name__}",
            details={"index": index, "type": type(value).__name__},
        ) from exc
    if b"\x00" in encoded:
        # A terminator mid-value would silently truncate the argument
        raise EncodingError(
            f"Argument {index} contains an embedded NUL byte",
            details={"index": index, "argument": repr(value), "offset": encoded.index(b"\x00")},
        )
    return encoded


class ArgumentVector:
    """
    Owned null-terminated buffers plus the ``char *[]`` pointing into them.

    Every argument is validated before any buffer is allocated. Use as a
    context manager around the single runtime call it is built for::

        with ArgumentVector(["prog", "-c", "pass"]) as vector:
            runtime.set_bytes_argv(config.address, vector.argc, vector.argv)
    """

    def __init__(self, args: Iterable[Argument]) -> None:
        if isinstance(args, (str, bytes, os.PathLike)):
            # Iterating a lone argument would split it into characters
            raise TypeError(
                f"args must be a sequence of arguments, not a single {type(args).__name__}"
            )
        encoded = [encode_argument(arg, index) for index, arg in enumerate(args)]
        self._buffers: list[ctypes.Array] | None = [
            ctypes.create_string_buffer(value) for value in encoded
        ]
        pointer_array = ctypes.c_char_p * len(self._buffers)
        self._pointers: ctypes.Array | None = pointer_array(
            *[ctypes.cast(buf, ctypes.c_char_p) for buf in self._buffers]
        )

    def __len__(self) -> int:
        return len(self._live_buffers())

    def __enter__(self) -> ArgumentVector:
        return self

    def __exit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        self.close()

    @property
    def closed(self) -> bool:
        return self._buffers is None

    @property
    def argc(self) -> int:
        return len(self._live_buffers())

    @property
    def argv(self) -> ctypes.Array:
        """The pointer array, passable as ``char **``."""
        self._live_buffers()
        return self._pointers

    def as_bytes(self) -> list[bytes]:
        """Read every argument back through the pointer array."""
        self._live_buffers()
        return list(self._pointers)

    def close(self) -> None:
        """Drop the buffers. Safe to call multiple times."""
        self._pointers = None
        self._buffers = None

    def _live_buffers(self) -> list[ctypes.Array]:
        if self._buffers is None:
            raise StateError("ArgumentVector has been closed")
        return self._buffers


def set_argv(config: NativeConfig, args: Iterable[Argument]) -> None:
    """
    Install ``args`` as the config's ``argv`` through ``PyConfig_SetBytesArgv``.

    Args:
        config: An initialized NativeConfig; argv may be installed again.
        args: Arguments in order. ``str`` values are encoded with the
            filesystem encoding; ``bytes`` are passed through.

    Raises
    ------
    EncodingError
        If an argument contains a NUL byte or cannot be encoded. No runtime
        call is made in that case.
    StatusError
        If the runtime reports failure.
    StateError
        If ``config`` is not initialized or already released.
    TypeError
        If ``args`` is a single str, bytes or path instead of a sequence.
    """
    if config.state not in (ConfigState.RUNTIME_INITIALIZED, ConfigState.ARGV_INSTALLED):
        raise StateError(
            f"Cannot install argv in state {config.state.name}",
            details={"state": config.state.name},
        )
    runtime = config.runtime

    with ArgumentVector(args) as vector:
        argc = vector.argc
        logger.debug("Installing argument vector", extra={"argc": argc})
        status = runtime.set_bytes_argv(config.address, argc, vector.argv)
        check(status, runtime, "PyConfig_SetBytesArgv")

    check(config._postcondition_status("PyConfig_SetBytesArgv"), runtime)
    # Whatever the runtime wrote to argv is now its allocation, accepted or not
    config._refresh_ownership()
    installed = config.struct.argv.length
    if installed != argc:
        check(
            error_status(
                "PyConfig_SetBytesArgv",
                f"argv has {installed} entries after installing {argc}",
            ),
            runtime,
        )

    if config.state is ConfigState.RUNTIME_INITIALIZED:
        config._advance(ConfigState.ARGV_INSTALLED)
