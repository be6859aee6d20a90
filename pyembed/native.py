"""
Native ``PyConfig`` values and their lifecycle.

A :class:`NativeConfig` owns one zero-initialized ``PyConfig`` block sized to
the runtime's mirrored layout. It moves through the states in
:class:`ConfigState`; each forward transition happens only after the status
check of the runtime call that causes it has passed.

Pointer fields have two possible owners. Runtime-owned fields were allocated
by the runtime and are freed by ``PyConfig_Clear``. Caller-owned fields point
into buffers this object keeps alive; they are detached (set to NULL) before
``PyConfig_Clear`` runs so the runtime never frees memory it did not allocate.
"""

from __future__ import annotations

import ctypes
from enum import Enum, IntEnum
from typing import Any

from ._bindings import Runtime, get_runtime
from ._logging import scoped_logger
from .exceptions import StateError, StatusError
from .layout import (
    CONFIG_INIT_ISOLATED,
    PyStatus,
    PyWideStringList,
    list_fields,
    read_wide_string,
    read_wide_string_list,
    string_fields,
)
from .status import check, error_status, ok_status

logger = scoped_logger("config")

__all__ = ["ConfigState", "Provenance", "OwnershipTable", "NativeConfig", "initialize"]

# Trailing guard region; a runtime that writes past the mirrored layout
# (i.e. the layout is wrong for it) overwrites this pattern.
GUARD_SIZE = 64
GUARD_BYTE = 0xA5


class ConfigState(IntEnum):
    """Lifecycle of a NativeConfig. Values only ever increase."""

    UNINITIALIZED = 0
    RUNTIME_INITIALIZED = 1
    ARGV_INSTALLED = 2
    RELEASED = 3


class Provenance(Enum):
    """Who owns the memory behind a pointer field."""

    UNSET = "unset"  # NULL pointer
    RUNTIME = "runtime"  # freed by PyConfig_Clear
    CALLER = "caller"  # kept alive by the NativeConfig


class OwnershipTable:
    """Side table mapping each pointer field of a layout to its owner."""

    def __init__(self, fields: list[str]) -> None:
        self._owners: dict[str, Provenance] = dict.fromkeys(fields, Provenance.UNSET)
        self._buffers: dict[str, ctypes.Array] = {}

    def __contains__(self, field: str) -> bool:
        return field in self._owners

    def owner(self, field: str) -> Provenance:
        return self._owners[field]

    def fields(self, provenance: Provenance) -> list[str]:
        return [name for name, owner in self._owners.items() if owner is provenance]

    def mark_runtime(self, field: str) -> None:
        self._buffers.pop(field, None)
        self._owners[field] = Provenance.RUNTIME

    def mark_unset(self, field: str) -> None:
        self._buffers.pop(field, None)
        self._owners[field] = Provenance.UNSET

    def mark_caller(self, field: str, buffer: ctypes.Array) -> None:
        self._buffers[field] = buffer
        self._owners[field] = Provenance.CALLER

    def clear(self) -> None:
        self._buffers.clear()
        for field in self._owners:
            self._owners[field] = Provenance.UNSET


class NativeConfig:
    """
    A ``PyConfig`` value owned by Python, plus its lifecycle and ownership.

    Instances are created by :func:`initialize` (or :func:`pyembed.resolve`),
    not directly. Pass :attr:`address` to runtime calls taking ``PyConfig *``.
    Release with :meth:`close` or by using the object as a context manager::

        with pyembed.resolve(config) as native:
            print(native.argv)

    Args:
        runtime: Runtime whose layout sizes the block and whose
            ``PyConfig_Clear`` releases it.
    """

    def __init__(self, runtime: Runtime) -> None:
        self._runtime = runtime
        self._layout = runtime.layout
        size = ctypes.sizeof(self._layout)
        self._storage = ctypes.create_string_buffer(size + GUARD_SIZE)
        ctypes.memset(ctypes.addressof(self._storage) + size, GUARD_BYTE, GUARD_SIZE)
        self._struct = self._layout.from_buffer(self._storage)
        self._state = ConfigState.UNINITIALIZED
        self._ownership = OwnershipTable(string_fields(self._layout) + list_fields(self._layout))

    def __repr__(self) -> str:
        return f"NativeConfig(layout={self._layout.__name__}, state={self._state.name})"

    # =========================================================================
    # Properties
    # =========================================================================

    @property
    def state(self) -> ConfigState:
        return self._state

    @property
    def runtime(self) -> Runtime:
        return self._runtime

    @property
    def layout(self) -> type[ctypes.Structure]:
        return self._layout

    @property
    def address(self) -> int:
        """Address of the ``PyConfig`` block, for ``PyConfig *`` arguments."""
        if self._state is ConfigState.RELEASED:
            raise StateError("NativeConfig has been released", details={"state": self._state.name})
        return ctypes.addressof(self._struct)

    @property
    def struct(self) -> ctypes.Structure:
        """The raw ctypes struct. Only valid once the runtime has initialized it."""
        self._require_readable()
        return self._struct

    @property
    def field_names(self) -> list[str]:
        return [name for name, _ in self._layout._fields_]

    @property
    def argv(self) -> list[str]:
        """Decoded ``argv``. Requires the argument vector to be installed."""
        if self._state is not ConfigState.ARGV_INSTALLED:
            raise StateError(
                f"argv is not installed (state={self._state.name})",
                details={"state": self._state.name},
            )
        return read_wide_string_list(self._struct.argv)

    # =========================================================================
    # Field access
    # =========================================================================

    def get(self, name: str) -> Any:
        """Read a field as stored; pointers come back as ints or None."""
        self._require_readable()
        self._require_field(name)
        return getattr(self._struct, name)

    def get_string(self, name: str) -> str | None:
        """Decode a ``wchar_t *`` field."""
        value = self.get(name)
        if name not in string_fields(self._layout):
            raise TypeError(f"{name} is not a wchar_t * field")
        return read_wide_string(value)

    def get_list(self, name: str) -> list[str]:
        """Decode a ``PyWideStringList`` field."""
        value = self.get(name)
        if not isinstance(value, PyWideStringList):
            raise TypeError(f"{name} is not a string list")
        return read_wide_string_list(value)

    def owner(self, name: str) -> Provenance:
        """Provenance of the memory behind pointer field ``name``."""
        self._require_field(name)
        if name not in self._ownership:
            raise TypeError(f"{name} is not a pointer field")
        return self._ownership.owner(name)

    def set_string(self, name: str, value: str | None) -> None:
        """
        Point a ``wchar_t *`` field at a caller-owned copy of ``value``.

        The buffer stays alive as long as this object and is detached before
        ``PyConfig_Clear`` runs. A field currently holding runtime-owned memory
        is refused, since overwriting it would leak that allocation.

        Raises
        ------
        StateError
            If the config is not initialized, already released, or the field
            holds runtime-owned memory.
        ValueError
            If ``value`` contains a NUL character.
        """
        self._require_readable()
        if name not in string_fields(self._layout):
            raise TypeError(f"{name} is not a wchar_t * field")
        if self._ownership.owner(name) is Provenance.RUNTIME:
            raise StateError(
                f"{name} holds runtime-owned memory and cannot be replaced",
                details={"field": name},
            )
        if value is None:
            setattr(self._struct, name, None)
            self._ownership.mark_unset(name)
            return
        if "\x00" in value:
            raise ValueError(f"{name} value contains a NUL character")
        buffer = ctypes.create_unicode_buffer(value)
        setattr(self._struct, name, ctypes.addressof(buffer))
        self._ownership.mark_caller(name, buffer)

    # =========================================================================
    # Lifecycle
    # =========================================================================

    def close(self) -> None:
        """
        Release the config through ``PyConfig_Clear``.

        Caller-owned fields are set to NULL first. Safe to call multiple times
        (idempotent); the object cannot be read afterwards.
        """
        if self._state is ConfigState.RELEASED:
            return
        if self._state is not ConfigState.UNINITIALIZED:
            for name in self._ownership.fields(Provenance.CALLER):
                setattr(self._struct, name, None)
            self._runtime.config_clear(ctypes.addressof(self._struct))
            logger.debug("NativeConfig released", extra={"layout": self._layout.__name__})
        self._ownership.clear()
        self._state = ConfigState.RELEASED

    def __enter__(self) -> NativeConfig:
        return self

    def __exit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        self.close()

    def __del__(self):
        try:
            self.close()
        except Exception:
            pass

    # =========================================================================
    # Internals
    # =========================================================================

    def guard_intact(self) -> bool:
        """True if nothing was written past the end of the mirrored layout."""
        size = ctypes.sizeof(self._layout)
        guard = ctypes.string_at(ctypes.addressof(self._storage) + size, GUARD_SIZE)
        return guard == bytes([GUARD_BYTE]) * GUARD_SIZE

    def _require_readable(self) -> None:
        if self._state in (ConfigState.UNINITIALIZED, ConfigState.RELEASED):
            raise StateError(
                f"NativeConfig cannot be read in state {self._state.name}",
                details={"state": self._state.name},
            )

    def _require_field(self, name: str) -> None:
        if name not in self.field_names:
            raise AttributeError(f"{self._layout.__name__} has no field {name!r}")

    def _advance(self, state: ConfigState) -> None:
        if state <= self._state:
            raise StateError(
                f"Cannot move NativeConfig from {self._state.name} to {state.name}",
                details={"from": self._state.name, "to": state.name},
            )
        self._state = state

    def _refresh_ownership(self) -> None:
        """Attribute every non-caller pointer to the runtime, or mark it unset."""
        for name in string_fields(self._layout):
            if self._ownership.owner(name) is Provenance.CALLER:
                continue
            if getattr(self._struct, name):
                self._ownership.mark_runtime(name)
            else:
                self._ownership.mark_unset(name)
        for name in list_fields(self._layout):
            if getattr(self._struct, name).items:
                self._ownership.mark_runtime(name)
            else:
                self._ownership.mark_unset(name)

    def _postcondition_status(self, operation: str) -> PyStatus:
        """Status for a runtime call that returns nothing, from what it wrote."""
        if not self.guard_intact():
            return error_status(operation, "runtime wrote past the mirrored PyConfig layout")
        return ok_status()

    def _init_status(self) -> PyStatus:
        status = self._postcondition_status("PyConfig_InitIsolatedConfig")
        if status.err_msg:
            return status
        config = self._struct
        if config._config_init != CONFIG_INIT_ISOLATED:
            return error_status(
                "PyConfig_InitIsolatedConfig",
                f"_config_init is {config._config_init}, expected {CONFIG_INIT_ISOLATED}",
            )
        if config.isolated != 1 or config.use_environment != 0:
            return error_status(
                "PyConfig_InitIsolatedConfig",
                "isolated preset not applied (isolated="
                f"{config.isolated}, use_environment={config.use_environment})",
            )
        return status


def initialize(runtime: Runtime | None = None) -> NativeConfig:
    """
    Create a NativeConfig populated with the runtime's isolated defaults.

    The block is zero-filled, then ``PyConfig_InitIsolatedConfig`` fills it:
    environment variables are ignored, user site-packages are disabled and
    signal handlers are not installed. That call returns nothing, so a status
    is derived from what it wrote and checked like any other.

    Args:
        runtime: Runtime to use. Defaults to :func:`pyembed.get_runtime`.

    Raises
    ------
    StatusError
        If the runtime did not produce a valid isolated configuration.
    """
    runtime = runtime or get_runtime()
    native = NativeConfig(runtime)

    logger.debug("Initializing isolated config", extra={"layout": runtime.layout.__name__})
    runtime.init_isolated_config(native.address)
    # Checked before the state changes; on failure the block is never handed out.
    try:
        check(native._init_status(), runtime, "PyConfig_InitIsolatedConfig")
    except StatusError:
        # Still UNINITIALIZED, so close() skips PyConfig_Clear
        native.close()
        raise

    native._advance(ConfigState.RUNTIME_INITIALIZED)
    native._refresh_ownership()
    return native
