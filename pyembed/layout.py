"""
ctypes mirrors of CPython's embedding configuration structs.

Each ``PyConfig*`` class must match ``PyConfig`` in
``Include/cpython/initconfig.h`` of the corresponding CPython minor release
exactly (field order, widths and padding). ctypes cannot verify this: a
mismatch is undefined behavior in the runtime, not an error we can catch.
Re-audit these definitions against the header whenever a new CPython release
is targeted.

Only non-Windows, non-debug, GIL-enabled builds are mirrored. Windows adds
``legacy_windows_stdio`` after ``stdio_errors``; debug and free-threaded
builds append or insert further fields.

String fields are declared as ``c_void_p`` rather than ``c_wchar_p``. A
``c_wchar_p`` field auto-converts to ``str`` on access and assigning one makes
ctypes allocate a temporary buffer, which would lose track of which allocator
owns the pointer. Use :func:`read_wide_string` to decode them.
"""

from __future__ import annotations

import ctypes

from .exceptions import LayoutError

__all__ = [
    "PyWideStringList",
    "PyStatus",
    "PyConfig39",
    "PyConfig310",
    "PyConfig311",
    "PyConfig312",
    "PyConfig313",
    "LAYOUTS",
    "layout_for",
    "string_fields",
    "list_fields",
    "read_wide_string",
    "read_wide_string_list",
]

# wchar_t* owned by whoever the ownership table says
WCharPtr = ctypes.c_void_p
Py_ssize_t = ctypes.c_ssize_t

# PyStatus._type
STATUS_OK = 0
STATUS_ERROR = 1
STATUS_EXIT = 2

# PyConfig._config_init (_PyConfigInitEnum)
CONFIG_INIT_COMPAT = 1
CONFIG_INIT_PYTHON = 2
CONFIG_INIT_ISOLATED = 3


class PyWideStringList(ctypes.Structure):
    """``PyWideStringList``: ``length`` items in a ``wchar_t **`` array."""

    _fields_ = [
        ("length", Py_ssize_t),
        ("items", ctypes.POINTER(WCharPtr)),
    ]


class PyStatus(ctypes.Structure):
    """
    ``PyStatus`` returned by value from runtime entry points.

    The leading ``_type`` enum is part of the real struct; omitting it shifts
    every other field by one slot.
    """

    _fields_ = [
        ("_type", ctypes.c_int),  # 0=ok, 1=error, 2=exit
        ("func", ctypes.c_char_p),  # Function that produced the status
        ("err_msg", ctypes.c_char_p),
        ("exitcode", ctypes.c_int),
    ]


# =============================================================================
# PyConfig layouts
# =============================================================================


class PyConfig39(ctypes.Structure):
    """``PyConfig`` as declared by CPython 3.9."""

    _fields_ = [
        ("_config_init", ctypes.c_int),
        ("isolated", ctypes.c_int),
        ("use_environment", ctypes.c_int),
        ("dev_mode", ctypes.c_int),
        ("install_signal_handlers", ctypes.c_int),
        ("use_hash_seed", ctypes.c_int),
        ("hash_seed", ctypes.c_ulong),
        ("faulthandler", ctypes.c_int),
        ("_use_peg_parser", ctypes.c_int),
        ("tracemalloc", ctypes.c_int),
        ("import_time", ctypes.c_int),
        ("show_ref_count", ctypes.c_int),
        ("dump_refs", ctypes.c_int),
        ("malloc_stats", ctypes.c_int),
        ("filesystem_encoding", WCharPtr),
        ("filesystem_errors", WCharPtr),
        ("pycache_prefix", WCharPtr),
        ("parse_argv", ctypes.c_int),
        ("argv", PyWideStringList),
        ("program_name", WCharPtr),
        ("xoptions", PyWideStringList),
        ("warnoptions", PyWideStringList),
        ("site_import", ctypes.c_int),
        ("bytes_warning", ctypes.c_int),
        ("inspect", ctypes.c_int),
        ("interactive", ctypes.c_int),
        ("optimization_level", ctypes.c_int),
        ("parser_debug", ctypes.c_int),
        ("write_bytecode", ctypes.c_int),
        ("verbose", ctypes.c_int),
        ("quiet", ctypes.c_int),
        ("user_site_directory", ctypes.c_int),
        ("configure_c_stdio", ctypes.c_int),
        ("buffered_stdio", ctypes.c_int),
        ("stdio_encoding", WCharPtr),
        ("stdio_errors", WCharPtr),
        ("check_hash_pycs_mode", WCharPtr),
        # Path configuration inputs
        ("pathconfig_warnings", ctypes.c_int),
        ("pythonpath_env", WCharPtr),
        ("home", WCharPtr),
        # Path configuration outputs
        ("module_search_paths_set", ctypes.c_int),
        ("module_search_paths", PyWideStringList),
        ("executable", WCharPtr),
        ("base_executable", WCharPtr),
        ("prefix", WCharPtr),
        ("base_prefix", WCharPtr),
        ("exec_prefix", WCharPtr),
        ("base_exec_prefix", WCharPtr),
        ("platlibdir", WCharPtr),
        # Only used by Py_Main()
        ("skip_source_first_line", ctypes.c_int),
        ("run_command", WCharPtr),
        ("run_module", WCharPtr),
        ("run_filename", WCharPtr),
        # Private
        ("_install_importlib", ctypes.c_int),
        ("_init_main", ctypes.c_int),
        ("_isolated_interpreter", ctypes.c_int),
        ("_orig_argv", PyWideStringList),
    ]


class PyConfig310(ctypes.Structure):
    """``PyConfig`` as declared by CPython 3.10."""

    _fields_ = [
        ("_config_init", ctypes.c_int),
        ("isolated", ctypes.c_int),
        ("use_environment", ctypes.c_int),
        ("dev_mode", ctypes.c_int),
        ("install_signal_handlers", ctypes.c_int),
        ("use_hash_seed", ctypes.c_int),
        ("hash_seed", ctypes.c_ulong),
        ("faulthandler", ctypes.c_int),
        ("tracemalloc", ctypes.c_int),
        ("import_time", ctypes.c_int),
        ("show_ref_count", ctypes.c_int),
        ("dump_refs", ctypes.c_int),
        ("malloc_stats", ctypes.c_int),
        ("filesystem_encoding", WCharPtr),
        ("filesystem_errors", WCharPtr),
        ("pycache_prefix", WCharPtr),
        ("parse_argv", ctypes.c_int),
        ("orig_argv", PyWideStringList),
        ("argv", PyWideStringList),
        ("xoptions", PyWideStringList),
        ("warnoptions", PyWideStringList),
        ("site_import", ctypes.c_int),
        ("bytes_warning", ctypes.c_int),
        ("warn_default_encoding", ctypes.c_int),
        ("inspect", ctypes.c_int),
        ("interactive", ctypes.c_int),
        ("optimization_level", ctypes.c_int),
        ("parser_debug", ctypes.c_int),
        ("write_bytecode", ctypes.c_int),
        ("verbose", ctypes.c_int),
        ("quiet", ctypes.c_int),
        ("user_site_directory", ctypes.c_int),
        ("configure_c_stdio", ctypes.c_int),
        ("buffered_stdio", ctypes.c_int),
        ("stdio_encoding", WCharPtr),
        ("stdio_errors", WCharPtr),
        ("check_hash_pycs_mode", WCharPtr),
        # Path configuration inputs
        ("pathconfig_warnings", ctypes.c_int),
        ("program_name", WCharPtr),
        ("pythonpath_env", WCharPtr),
        ("home", WCharPtr),
        ("platlibdir", WCharPtr),
        # Path configuration outputs
        ("module_search_paths_set", ctypes.c_int),
        ("module_search_paths", PyWideStringList),
        ("executable", WCharPtr),
        ("base_executable", WCharPtr),
        ("prefix", WCharPtr),
        ("base_prefix", WCharPtr),
        ("exec_prefix", WCharPtr),
        ("base_exec_prefix", WCharPtr),
        # Only used by Py_Main()
        ("skip_source_first_line", ctypes.c_int),
        ("run_command", WCharPtr),
        ("run_module", WCharPtr),
        ("run_filename", WCharPtr),
        # Private
        ("_install_importlib", ctypes.c_int),
        ("_init_main", ctypes.c_int),
        ("_isolated_interpreter", ctypes.c_int),
    ]


class PyConfig311(ctypes.Structure):
    """``PyConfig`` as declared by CPython 3.11."""

    _fields_ = [
        ("_config_init", ctypes.c_int),
        ("isolated", ctypes.c_int),
        ("use_environment", ctypes.c_int),
        ("dev_mode", ctypes.c_int),
        ("install_signal_handlers", ctypes.c_int),
        ("use_hash_seed", ctypes.c_int),
        ("hash_seed", ctypes.c_ulong),
        ("faulthandler", ctypes.c_int),
        ("tracemalloc", ctypes.c_int),
        ("import_time", ctypes.c_int),
        ("code_debug_ranges", ctypes.c_int),
        ("show_ref_count", ctypes.c_int),
        ("dump_refs", ctypes.c_int),
        ("dump_refs_file", WCharPtr),
        ("malloc_stats", ctypes.c_int),
        ("filesystem_encoding", WCharPtr),
        ("filesystem_errors", WCharPtr),
        ("pycache_prefix", WCharPtr),
        ("parse_argv", ctypes.c_int),
        ("orig_argv", PyWideStringList),
        ("argv", PyWideStringList),
        ("xoptions", PyWideStringList),
        ("warnoptions", PyWideStringList),
        ("site_import", ctypes.c_int),
        ("bytes_warning", ctypes.c_int),
        ("warn_default_encoding", ctypes.c_int),
        ("inspect", ctypes.c_int),
        ("interactive", ctypes.c_int),
        ("optimization_level", ctypes.c_int),
        ("parser_debug", ctypes.c_int),
        ("write_bytecode", ctypes.c_int),
        ("verbose", ctypes.c_int),
        ("quiet", ctypes.c_int),
        ("user_site_directory", ctypes.c_int),
        ("configure_c_stdio", ctypes.c_int),
        ("buffered_stdio", ctypes.c_int),
        ("stdio_encoding", WCharPtr),
        ("stdio_errors", WCharPtr),
        ("check_hash_pycs_mode", WCharPtr),
        ("use_frozen_modules", ctypes.c_int),
        ("safe_path", ctypes.c_int),
        ("int_max_str_digits", ctypes.c_int),
        # Path configuration inputs
        ("pathconfig_warnings", ctypes.c_int),
        ("program_name", WCharPtr),
        ("pythonpath_env", WCharPtr),
        ("home", WCharPtr),
        ("platlibdir", WCharPtr),
        # Path configuration outputs
        ("module_search_paths_set", ctypes.c_int),
        ("module_search_paths", PyWideStringList),
        ("stdlib_dir", WCharPtr),
        ("executable", WCharPtr),
        ("base_executable", WCharPtr),
        ("prefix", WCharPtr),
        ("base_prefix", WCharPtr),
        ("exec_prefix", WCharPtr),
        ("base_exec_prefix", WCharPtr),
        # Only used by Py_Main()
        ("skip_source_first_line", ctypes.c_int),
        ("run_command", WCharPtr),
        ("run_module", WCharPtr),
        ("run_filename", WCharPtr),
        # Private
        ("_install_importlib", ctypes.c_int),
        ("_init_main", ctypes.c_int),
        ("_isolated_interpreter", ctypes.c_int),
        ("_is_python_build", ctypes.c_int),
    ]


class PyConfig312(ctypes.Structure):
    """``PyConfig`` as declared by CPython 3.12."""

    _fields_ = [
        ("_config_init", ctypes.c_int),
        ("isolated", ctypes.c_int),
        ("use_environment", ctypes.c_int),
        ("dev_mode", ctypes.c_int),
        ("install_signal_handlers", ctypes.c_int),
        ("use_hash_seed", ctypes.c_int),
        ("hash_seed", ctypes.c_ulong),
        ("faulthandler", ctypes.c_int),
        ("tracemalloc", ctypes.c_int),
        ("perf_profiling", ctypes.c_int),
        ("import_time", ctypes.c_int),
        ("code_debug_ranges", ctypes.c_int),
        ("show_ref_count", ctypes.c_int),
        ("dump_refs", ctypes.c_int),
        ("dump_refs_file", WCharPtr),
        ("malloc_stats", ctypes.c_int),
        ("filesystem_encoding", WCharPtr),
        ("filesystem_errors", WCharPtr),
        ("pycache_prefix", WCharPtr),
        ("parse_argv", ctypes.c_int),
        ("orig_argv", PyWideStringList),
        ("argv", PyWideStringList),
        ("xoptions", PyWideStringList),
        ("warnoptions", PyWideStringList),
        ("site_import", ctypes.c_int),
        ("bytes_warning", ctypes.c_int),
        ("warn_default_encoding", ctypes.c_int),
        ("inspect", ctypes.c_int),
        ("interactive", ctypes.c_int),
        ("optimization_level", ctypes.c_int),
        ("parser_debug", ctypes.c_int),
        ("write_bytecode", ctypes.c_int),
        ("verbose", ctypes.c_int),
        ("quiet", ctypes.c_int),
        ("user_site_directory", ctypes.c_int),
        ("configure_c_stdio", ctypes.c_int),
        ("buffered_stdio", ctypes.c_int),
        ("stdio_encoding", WCharPtr),
        ("stdio_errors", WCharPtr),
        ("check_hash_pycs_mode", WCharPtr),
        ("use_frozen_modules", ctypes.c_int),
        ("safe_path", ctypes.c_int),
        ("int_max_str_digits", ctypes.c_int),
        # Path configuration inputs
        ("pathconfig_warnings", ctypes.c_int),
        ("program_name", WCharPtr),
        ("pythonpath_env", WCharPtr),
        ("home", WCharPtr),
        ("platlibdir", WCharPtr),
        # Path configuration outputs
        ("module_search_paths_set", ctypes.c_int),
        ("module_search_paths", PyWideStringList),
        ("stdlib_dir", WCharPtr),
        ("executable", WCharPtr),
        ("base_executable", WCharPtr),
        ("prefix", WCharPtr),
        ("base_prefix", WCharPtr),
        ("exec_prefix", WCharPtr),
        ("base_exec_prefix", WCharPtr),
        # Only used by Py_Main()
        ("skip_source_first_line", ctypes.c_int),
        ("run_command", WCharPtr),
        ("run_module", WCharPtr),
        ("run_filename", WCharPtr),
        # Private
        ("_install_importlib", ctypes.c_int),
        ("_init_main", ctypes.c_int),
        ("_is_python_build", ctypes.c_int),
    ]


class PyConfig313(ctypes.Structure):
    """``PyConfig`` as declared by CPython 3.13."""

    _fields_ = [
        ("_config_init", ctypes.c_int),
        ("isolated", ctypes.c_int),
        ("use_environment", ctypes.c_int),
        ("dev_mode", ctypes.c_int),
        ("install_signal_handlers", ctypes.c_int),
        ("use_hash_seed", ctypes.c_int),
        ("hash_seed", ctypes.c_ulong),
        ("faulthandler", ctypes.c_int),
        ("tracemalloc", ctypes.c_int),
        ("perf_profiling", ctypes.c_int),
        ("import_time", ctypes.c_int),
        ("code_debug_ranges", ctypes.c_int),
        ("show_ref_count", ctypes.c_int),
        ("dump_refs", ctypes.c_int),
        ("dump_refs_file", WCharPtr),
        ("malloc_stats", ctypes.c_int),
        ("filesystem_encoding", WCharPtr),
        ("filesystem_errors", WCharPtr),
        ("pycache_prefix", WCharPtr),
        ("parse_argv", ctypes.c_int),
        ("orig_argv", PyWideStringList),
        ("argv", PyWideStringList),
        ("xoptions", PyWideStringList),
        ("warnoptions", PyWideStringList),
        ("site_import", ctypes.c_int),
        ("bytes_warning", ctypes.c_int),
        ("warn_default_encoding", ctypes.c_int),
        ("inspect", ctypes.c_int),
        ("interactive", ctypes.c_int),
        ("optimization_level", ctypes.c_int),
        ("parser_debug", ctypes.c_int),
        ("write_bytecode", ctypes.c_int),
        ("verbose", ctypes.c_int),
        ("quiet", ctypes.c_int),
        ("user_site_directory", ctypes.c_int),
        ("configure_c_stdio", ctypes.c_int),
        ("buffered_stdio", ctypes.c_int),
        ("stdio_encoding", WCharPtr),
        ("stdio_errors", WCharPtr),
        ("check_hash_pycs_mode", WCharPtr),
        ("use_frozen_modules", ctypes.c_int),
        ("safe_path", ctypes.c_int),
        ("int_max_str_digits", ctypes.c_int),
        ("cpu_count", ctypes.c_int),
        # Path configuration inputs
        ("pathconfig_warnings", ctypes.c_int),
        ("program_name", WCharPtr),
        ("pythonpath_env", WCharPtr),
        ("home", WCharPtr),
        ("platlibdir", WCharPtr),
        # Path configuration outputs
        ("module_search_paths_set", ctypes.c_int),
        ("module_search_paths", PyWideStringList),
        ("stdlib_dir", WCharPtr),
        ("executable", WCharPtr),
        ("base_executable", WCharPtr),
        ("prefix", WCharPtr),
        ("base_prefix", WCharPtr),
        ("exec_prefix", WCharPtr),
        ("base_exec_prefix", WCharPtr),
        # Only used by Py_Main()
        ("skip_source_first_line", ctypes.c_int),
        ("run_command", WCharPtr),
        ("run_module", WCharPtr),
        ("run_filename", WCharPtr),
        # Set by Py_Main()
        ("sys_path_0", WCharPtr),
        # Private
        ("_install_importlib", ctypes.c_int),
        ("_init_main", ctypes.c_int),
        ("_is_python_build", ctypes.c_int),
    ]


LAYOUTS: dict[tuple[int, int], type[ctypes.Structure]] = {
    (3, 9): PyConfig39,
    (3, 10): PyConfig310,
    (3, 11): PyConfig311,
    (3, 12): PyConfig312,
    (3, 13): PyConfig313,
}


def layout_for(version: tuple[int, ...]) -> type[ctypes.Structure]:
    """
    Return the PyConfig layout for a runtime version.

    Args:
        version: Runtime version; only ``(major, minor)`` is significant.

    Raises
    ------
    LayoutError
        If no layout is mirrored for that version.
    """
    key = (version[0], version[1])
    try:
        return LAYOUTS[key]
    except KeyError:
        supported = ", ".join(f"{major}.{minor}" for major, minor in sorted(LAYOUTS))
        raise LayoutError(
            f"No PyConfig layout for Python {key[0]}.{key[1]} (supported: {supported})",
            details={"version": list(key), "supported": sorted(LAYOUTS)},
        ) from None


def string_fields(layout: type[ctypes.Structure]) -> list[str]:
    """Names of ``wchar_t *`` fields in ``layout``."""
    return [name for name, ctype in layout._fields_ if ctype is WCharPtr]


def list_fields(layout: type[ctypes.Structure]) -> list[str]:
    """Names of ``PyWideStringList`` fields in ``layout``."""
    return [name for name, ctype in layout._fields_ if ctype is PyWideStringList]


def read_wide_string(ptr: int | None) -> str | None:
    """Decode a ``wchar_t *`` field, or None for a null pointer."""
    if not ptr:
        return None
    return ctypes.wstring_at(ptr)


def read_wide_string_list(value: PyWideStringList) -> list[str]:
    """Decode every item of a ``PyWideStringList``."""
    if value.length and not value.items:
        raise ValueError(f"PyWideStringList has length {value.length} but no items array")
    return [ctypes.wstring_at(value.items[i]) for i in range(value.length)]
