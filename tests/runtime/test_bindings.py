"""
Tests for runtime loading and calls into the running interpreter.

Tests using the ``python_runtime`` fixture go through the real embedding API
of the interpreter running pytest; they skip when its PyConfig layout is not
mirrored.
"""

import ctypes
from types import SimpleNamespace

import pytest

import pyembed
from pyembed import ResolvedConfig, initialize, load_runtime, resolve, set_argv
from pyembed._bindings import REQUIRED_SYMBOLS, Runtime, _parse_version
from pyembed.exceptions import EncodingError, LayoutError, RuntimeLoadError
from pyembed.layout import CONFIG_INIT_ISOLATED, PyStatus
from pyembed.native import ConfigState, Provenance
from pyembed.status import is_failure, ok_status


class TestLoading:
    """Tests for load_runtime() and Runtime construction."""

    def test_missing_library(self):
        with pytest.raises(RuntimeLoadError) as exc_info:
            load_runtime("/nonexistent/libpython3.99.so")

        assert exc_info.value.code == "RUNTIME_NOT_FOUND"
        assert isinstance(exc_info.value, OSError)

    def test_missing_symbols(self):
        with pytest.raises(RuntimeLoadError) as exc_info:
            Runtime(SimpleNamespace(), (3, 12, 0), "empty")

        assert sorted(exc_info.value.details["missing"]) == sorted(REQUIRED_SYMBOLS)

    @pytest.mark.parametrize(
        ("text", "expected"),
        [
            ("3.12.4 (main, Jun  6 2024, 18:26:44) [GCC 12.2.0]", (3, 12, 4)),
            ("3.13.0rc1 (main)", (3, 13, 0)),
        ],
    )
    def test_parse_version(self, text, expected):
        assert _parse_version(text) == expected

    def test_parse_version_rejects_garbage(self):
        with pytest.raises(RuntimeLoadError):
            _parse_version("PyPy")

    def test_get_runtime_cached(self, python_runtime, monkeypatch):
        monkeypatch.setattr(pyembed._bindings, "_runtime", None)
        monkeypatch.delenv("PYEMBED_LIBPYTHON", raising=False)

        assert pyembed.get_runtime() is pyembed.get_runtime()


class TestSignatures:
    """Every consumed entry point has explicit argtypes and restype."""

    def test_argtypes_declared(self, python_runtime):
        lib = python_runtime._lib
        for symbol in REQUIRED_SYMBOLS:
            assert getattr(lib, symbol).argtypes is not None, symbol

    def test_status_returned_by_value(self, python_runtime):
        assert python_runtime._lib.PyConfig_SetBytesArgv.restype is PyStatus

    def test_signatures_private(self, python_runtime):
        """ctypes.pythonapi is left untouched."""
        assert ctypes.pythonapi.PyConfig_SetBytesArgv.restype is not PyStatus

    def test_runtime_version_matches(self, python_runtime):
        import sys

        assert python_runtime.version == tuple(sys.version_info[:3])


class TestCurrentInterpreter:
    """End-to-end calls into the running interpreter's embedding API."""

    def test_initialize(self, python_runtime):
        with initialize(python_runtime) as native:
            assert native.get("_config_init") == CONFIG_INIT_ISOLATED
            assert native.get("isolated") == 1
            assert native.get("use_environment") == 0
            assert native.get("user_site_directory") == 0
            assert native.guard_intact()

    def test_set_argv(self, python_runtime):
        args = ["prog", "-c", "pass", "ünïcode"]
        with initialize(python_runtime) as native:
            set_argv(native, args)

            assert native.state is ConfigState.ARGV_INSTALLED
            assert native.argv == args
            assert native.owner("argv") is Provenance.RUNTIME

    def test_set_argv_rejects_nul(self, python_runtime):
        with initialize(python_runtime) as native:
            with pytest.raises(EncodingError):
                set_argv(native, ["a\x00b"])

    def test_resolve_default(self, python_runtime):
        with resolve(ResolvedConfig(), python_runtime) as native:
            assert native.argv == [""]

    def test_caller_string_survives_clear(self, python_runtime):
        native = initialize(python_runtime)
        native.set_string("program_name", "embedded-app")

        assert native.get_string("program_name") == "embedded-app"
        native.close()

        assert native.state is ConfigState.RELEASED

    def test_status_exception(self, python_runtime):
        assert is_failure(ok_status(), python_runtime) is False


def test_layout_error_is_runtime_error():
    assert issubclass(LayoutError, RuntimeError)
