"""
Tests for resolve() and the application-level config types.
"""

import dataclasses

import pytest

from pyembed import InterpreterConfig, ResolvedConfig, resolve
from pyembed.exceptions import EncodingError, StatusError, UnsupportedOptionError
from pyembed.layout import STATUS_ERROR, PyStatus
from pyembed.native import ConfigState
from tests.fakes import FakeRuntime


class TestResolve:
    """Tests for resolve() against the fake runtime."""

    def test_default_config(self, versioned_runtime):
        """A default config yields isolated settings and a single empty argument."""
        native = resolve(ResolvedConfig(), versioned_runtime)

        assert native.state is ConfigState.ARGV_INSTALLED
        assert native.argv == [""]
        assert native.get("isolated") == 1
        assert native.get("use_environment") == 0
        assert native.get("user_site_directory") == 0

        native.close()

    def test_call_order(self, fake_runtime):
        resolve(ResolvedConfig(), fake_runtime).close()

        entry_points = [call for call in fake_runtime.calls if call != "PyStatus_Exception"]
        assert entry_points == [
            "PyConfig_InitIsolatedConfig",
            "PyConfig_SetBytesArgv",
            "PyConfig_Clear",
        ]
        assert "PyStatus_Exception" in fake_runtime.calls
        assert fake_runtime.received_argv == [b""]

    def test_accepts_interpreter_config(self, fake_runtime):
        with resolve(InterpreterConfig(), fake_runtime) as native:
            assert native.argv == [""]

    def test_placeholder_unsupported(self, fake_runtime):
        """A customized option is refused rather than silently dropped."""
        with pytest.raises(UnsupportedOptionError) as exc_info:
            resolve(ResolvedConfig(InterpreterConfig(placeholder=1)), fake_runtime)

        assert exc_info.value.option == "placeholder"
        assert exc_info.value.code == "OPTION_UNSUPPORTED"
        assert isinstance(exc_info.value, NotImplementedError)

    def test_unsupported_releases_native_config(self, fake_runtime):
        """The partially built config is cleared before the error propagates."""
        with pytest.raises(UnsupportedOptionError):
            resolve(InterpreterConfig(placeholder="custom"), fake_runtime)

        assert fake_runtime.calls[-1] == "PyConfig_Clear"

    def test_failing_status_propagates(self):
        status = PyStatus(STATUS_ERROR, b"PyConfig_SetBytesArgv", b"out of memory", 0)
        runtime = FakeRuntime(argv_status=status)

        with pytest.raises(StatusError) as exc_info:
            resolve(ResolvedConfig(), runtime)

        assert exc_info.value.err_msg == "out of memory"
        assert runtime.calls.count("PyConfig_Clear") == 1

    def test_initialize_failure_propagates(self):
        runtime = FakeRuntime(overrun=16)

        with pytest.raises(StatusError):
            resolve(ResolvedConfig(), runtime)

        assert "PyConfig_SetBytesArgv" not in runtime.calls

    def test_encoding_error_is_not_status_error(self):
        """Sanity check on the hierarchy callers catch on."""
        assert not issubclass(EncodingError, StatusError)


class TestConfigTypes:
    """Tests for InterpreterConfig and ResolvedConfig."""

    def test_default_is_default(self):
        assert ResolvedConfig().is_default
        assert ResolvedConfig().placeholder is None

    def test_customized_is_not_default(self):
        config = ResolvedConfig(InterpreterConfig(placeholder=0))

        assert not config.is_default
        assert config.placeholder == 0

    def test_from_config(self):
        inner = InterpreterConfig(placeholder="x")

        assert ResolvedConfig.from_config(inner).inner is inner
        assert ResolvedConfig.from_config(None) == ResolvedConfig()

    def test_frozen(self):
        config = ResolvedConfig()

        with pytest.raises(dataclasses.FrozenInstanceError):
            config.inner = InterpreterConfig(placeholder=1)
