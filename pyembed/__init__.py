"""
pyembed - PyConfig for embedded CPython, from Python.

pyembed turns an application-level interpreter configuration into the
``PyConfig`` struct that CPython's embedding API expects, calling the runtime
through ctypes and checking every ``PyStatus`` it returns.

Quick Start
-----------

    >>> import pyembed
    >>>
    >>> with pyembed.resolve(pyembed.ResolvedConfig()) as native:
    ...     native.get("use_environment")
    ...     native.argv
    0
    ['']

Step by step:

    >>> native = pyembed.initialize()          # PyConfig_InitIsolatedConfig
    >>> pyembed.set_argv(native, ["app", "-v"])  # PyConfig_SetBytesArgv
    >>> native.argv
    ['app', '-v']
    >>> native.close()                         # PyConfig_Clear


Runtime Selection
-----------------

By default the runtime is the interpreter running pyembed. Set
``PYEMBED_LIBPYTHON`` to a libpython shared library, or call
``pyembed.load_runtime(path)`` and pass the result as ``runtime=``.

Only CPython versions with a mirrored ``PyConfig`` layout are accepted (see
``pyembed.layout.LAYOUTS``); others raise ``LayoutError``.


Errors
------

- ``EncodingError`` - an argument contains a NUL byte
- ``StatusError`` - a runtime call reported failure via ``PyStatus``
- ``UnsupportedOptionError`` - an option is set that cannot be translated yet
- ``StateError`` - a NativeConfig used before initialization or after release
"""

from pyembed._version import __version__

from ._bindings import Runtime, get_runtime, load_runtime
from ._logging import setup_logging
from .argv import ArgumentVector, set_argv
from .config import InterpreterConfig, ResolvedConfig, resolve
from .exceptions import (
    EncodingError,
    LayoutError,
    PyEmbedError,
    RuntimeLoadError,
    StateError,
    StatusError,
    UnsupportedOptionError,
)
from .layout import layout_for
from .native import ConfigState, NativeConfig, Provenance, initialize
from .status import NativeStatus, check, is_failure

__all__ = [
    "__version__",
    # Conversion
    "resolve",
    "InterpreterConfig",
    "ResolvedConfig",
    # Native config
    "initialize",
    "set_argv",
    "NativeConfig",
    "ConfigState",
    "Provenance",
    "ArgumentVector",
    "layout_for",
    # Status
    "NativeStatus",
    "is_failure",
    "check",
    # Runtime
    "Runtime",
    "get_runtime",
    "load_runtime",
    # Logging
    "setup_logging",
    # Errors
    "PyEmbedError",
    "EncodingError",
    "StatusError",
    "UnsupportedOptionError",
    "StateError",
    "LayoutError",
    "RuntimeLoadError",
]
