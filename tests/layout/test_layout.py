"""
Tests for the mirrored PyConfig, PyStatus and PyWideStringList layouts.

Offsets are checked against the C headers for LP64 platforms (64-bit Linux),
where int is 4 bytes and unsigned long and pointers are 8 bytes.
"""

import ctypes

import pytest

from pyembed.exceptions import LayoutError
from pyembed.layout import (
    LAYOUTS,
    PyConfig39,
    PyConfig310,
    PyConfig311,
    PyConfig312,
    PyConfig313,
    PyStatus,
    PyWideStringList,
    layout_for,
    list_fields,
    read_wide_string,
    read_wide_string_list,
    string_fields,
)

lp64 = pytest.mark.skipif(
    ctypes.sizeof(ctypes.c_void_p) != 8 or ctypes.sizeof(ctypes.c_ulong) != 8,
    reason="offsets are for LP64 platforms",
)


class TestLayoutRegistry:
    """Tests for layout_for()."""

    @pytest.mark.parametrize(
        ("version", "layout"),
        [
            ((3, 9), PyConfig39),
            ((3, 10), PyConfig310),
            ((3, 11), PyConfig311),
            ((3, 12), PyConfig312),
            ((3, 13), PyConfig313),
        ],
    )
    def test_known_versions(self, version, layout):
        """Each supported minor version maps to its own layout."""
        assert layout_for(version) is layout

    def test_micro_and_release_level_ignored(self):
        """Only (major, minor) selects the layout."""
        assert layout_for((3, 12, 7, "final", 0)) is PyConfig312

    @pytest.mark.parametrize("version", [(3, 8), (3, 14), (2, 7)])
    def test_unknown_version_raises(self, version):
        """Versions without a mirrored layout raise LayoutError."""
        with pytest.raises(LayoutError) as exc_info:
            layout_for(version)

        assert exc_info.value.code == "LAYOUT_UNSUPPORTED"
        assert exc_info.value.details["version"] == list(version)


class TestLayoutShape:
    """Structural checks shared by every layout."""

    @pytest.mark.parametrize("layout", list(LAYOUTS.values()), ids=lambda c: c.__name__)
    def test_field_names_unique(self, layout):
        """No field is declared twice."""
        names = [name for name, _ in layout._fields_]
        assert len(names) == len(set(names))

    @pytest.mark.parametrize("layout", list(LAYOUTS.values()), ids=lambda c: c.__name__)
    def test_core_fields_present(self, layout):
        """Fields read by the initializer and argv marshaler exist."""
        names = {name for name, _ in layout._fields_}
        for required in (
            "_config_init",
            "isolated",
            "use_environment",
            "user_site_directory",
            "install_signal_handlers",
            "argv",
            "program_name",
        ):
            assert required in names

    @pytest.mark.parametrize("layout", list(LAYOUTS.values()), ids=lambda c: c.__name__)
    def test_config_init_is_first(self, layout):
        """_config_init sits at offset 0."""
        assert layout._config_init.offset == 0

    def test_string_and_list_fields(self):
        """Field classifiers split pointers by kind."""
        strings = string_fields(PyConfig312)
        lists = list_fields(PyConfig312)

        assert "program_name" in strings
        assert "home" in strings
        assert "argv" in lists
        assert "orig_argv" in lists
        assert "module_search_paths" in lists
        assert not set(strings) & set(lists)
        assert "isolated" not in strings

    def test_orig_argv_name_changed_in_310(self):
        """3.9 keeps orig_argv private and last; later versions put it before argv."""
        assert "_orig_argv" in list_fields(PyConfig39)
        assert PyConfig39._fields_[-1][0] == "_orig_argv"
        assert PyConfig310.orig_argv.offset < PyConfig310.argv.offset


@lp64
class TestOffsets:
    """Byte offsets on LP64."""

    def test_wide_string_list(self):
        assert ctypes.sizeof(PyWideStringList) == 16
        assert PyWideStringList.items.offset == 8

    def test_status(self):
        """_type comes first and shifts func to offset 8."""
        assert PyStatus._type.offset == 0
        assert PyStatus.func.offset == 8
        assert PyStatus.err_msg.offset == 16
        assert PyStatus.exitcode.offset == 24
        assert ctypes.sizeof(PyStatus) == 32

    def test_hash_seed_aligned(self):
        """unsigned long hash_seed is padded to an 8-byte boundary."""
        for layout in LAYOUTS.values():
            assert layout.hash_seed.offset == 24

    @pytest.mark.parametrize(
        ("layout", "argv_offset"),
        [
            (PyConfig39, 96),
            (PyConfig310, 104),
            (PyConfig311, 120),
            (PyConfig312, 128),
            (PyConfig313, 128),
        ],
        ids=lambda v: getattr(v, "__name__", str(v)),
    )
    def test_argv_offset(self, layout, argv_offset):
        assert layout.argv.offset == argv_offset

    def test_orig_argv_precedes_argv(self):
        assert PyConfig312.orig_argv.offset == 112
        assert PyConfig311.orig_argv.offset == 104


class TestReaders:
    """Tests for read_wide_string() and read_wide_string_list()."""

    def test_null_string(self):
        assert read_wide_string(None) is None
        assert read_wide_string(0) is None

    def test_string(self):
        buf = ctypes.create_unicode_buffer("python3")
        assert read_wide_string(ctypes.addressof(buf)) == "python3"

    def test_empty_list(self):
        assert read_wide_string_list(PyWideStringList()) == []

    def test_list(self):
        bufs = [ctypes.create_unicode_buffer(s) for s in ("", "-c", "päss")]
        array = (ctypes.c_void_p * 3)(*[ctypes.addressof(b) for b in bufs])
        value = PyWideStringList(3, ctypes.cast(array, ctypes.POINTER(ctypes.c_void_p)))

        assert read_wide_string_list(value) == ["", "-c", "päss"]

    def test_length_without_items_rejected(self):
        """A non-zero length with a NULL array breaks the list invariant."""
        with pytest.raises(ValueError):
            read_wide_string_list(PyWideStringList(2, None))
