"""
Global pytest fixtures for pyembed tests.

This module provides:
- Fault handling for native crashes
- A fake runtime (Python implementation of the embedding API)
- The real runtime of the interpreter running the tests

=============================================================================
Skip Policy
=============================================================================

pytest.skip(): the interpreter running the tests has no mirrored PyConfig
layout (unsupported version, debug or free-threaded build). That is an
environment property, not a pyembed bug. Everything except the real-runtime
tests runs against FakeRuntime and never skips.
"""

import faulthandler

import pytest

from pyembed import load_runtime
from pyembed.exceptions import LayoutError, RuntimeLoadError
from pyembed.layout import LAYOUTS
from tests.fakes import FakeRuntime

# Enable faulthandler to trace native crashes (segfaults)
faulthandler.enable()


@pytest.fixture
def fake_runtime():
    """Fake runtime mirroring the CPython 3.12 layout."""
    return FakeRuntime()


@pytest.fixture(params=sorted(LAYOUTS), ids=lambda v: f"{v[0]}.{v[1]}")
def versioned_runtime(request):
    """Fake runtime for each mirrored CPython version."""
    major, minor = request.param
    return FakeRuntime(version=(major, minor, 0))


@pytest.fixture(scope="session")
def python_runtime():
    """The runtime of the interpreter running the tests."""
    try:
        return load_runtime()
    except (LayoutError, RuntimeLoadError) as exc:
        pytest.skip(f"No usable runtime for this interpreter: {exc}")
