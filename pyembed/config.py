"""
Application-level interpreter configuration and its conversion to PyConfig.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from ._bindings import Runtime
from ._logging import scoped_logger
from .argv import set_argv
from .exceptions import UnsupportedOptionError
from .native import NativeConfig, initialize

logger = scoped_logger("config")

__all__ = ["InterpreterConfig", "ResolvedConfig", "resolve"]

# argv installed when the application supplies none: a single empty program name
DEFAULT_ARGV = ("",)


@dataclass(frozen=True)
class InterpreterConfig:
    """
    Interpreter settings chosen by the application.

    Attributes
    ----------
    placeholder : Any, optional
        Stand-in for a customized option. None means the configuration is
        left at its defaults; any other value cannot be translated yet.
    """

    placeholder: Any = None


@dataclass(frozen=True)
class ResolvedConfig:
    """An :class:`InterpreterConfig` ready to be converted by :func:`resolve`."""

    inner: InterpreterConfig = field(default_factory=InterpreterConfig)

    @property
    def placeholder(self) -> Any:
        return self.inner.placeholder

    @property
    def is_default(self) -> bool:
        return self.inner.placeholder is None

    @classmethod
    def from_config(cls, config: InterpreterConfig | None = None) -> ResolvedConfig:
        return cls(inner=config if config is not None else InterpreterConfig())


def _check_unmapped_options(config: ResolvedConfig) -> None:
    # Only argv is mapped onto PyConfig; refuse anything else that is set.
    if config.placeholder is not None:
        raise UnsupportedOptionError(
            "Option 'placeholder' is not yet supported",
            option="placeholder",
            details={"value": repr(config.placeholder)},
        )


def resolve(
    app_config: ResolvedConfig | InterpreterConfig,
    runtime: Runtime | None = None,
) -> NativeConfig:
    """
    Convert an application config into a ready-to-use NativeConfig.

    The native config starts from the runtime's isolated defaults and gets a
    single empty argument as argv.

    Args:
        app_config: Configuration to convert. A bare InterpreterConfig is
            wrapped first.
        runtime: Runtime to target. Defaults to :func:`pyembed.get_runtime`.

    Returns
    -------
    NativeConfig
        In state ``ARGV_INSTALLED``. The caller owns it and must
        :meth:`~NativeConfig.close` it.

    Raises
    ------
    StatusError
        If a runtime call reports failure.
    UnsupportedOptionError
        If an option is set that cannot be translated yet.

    Example
    -------
    >>> with pyembed.resolve(pyembed.ResolvedConfig()) as native:
    ...     native.argv
    ['']
    """
    if isinstance(app_config, InterpreterConfig):
        app_config = ResolvedConfig.from_config(app_config)

    native = initialize(runtime)
    try:
        set_argv(native, DEFAULT_ARGV)
        _check_unmapped_options(app_config)
    except Exception:
        native.close()
        raise

    logger.debug(
        "Interpreter config resolved",
        extra={"layout": native.layout.__name__, "argc": len(DEFAULT_ARGV)},
    )
    return native
