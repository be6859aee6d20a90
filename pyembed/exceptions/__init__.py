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
"""

from .exceptions import (
    EncodingError,
    LayoutError,
    PyEmbedError,
    RuntimeLoadError,
    StateError,
    StatusError,
    UnsupportedOptionError,
)

__all__ = [
    # Base
    "PyEmbedError",
    # Arguments
    "EncodingError",
    # Runtime
    "StatusError",
    "LayoutError",
    "RuntimeLoadError",
    # Configuration
    "UnsupportedOptionError",
    "StateError",
]
