import pytest

from curconvert.mapping import is_known_cursor, roles_for_filename, supported_cursor_names


@pytest.mark.parametrize("filename, roles", [
    ("Normal.cur", ("default",)),
    ("text.cur", ("xterm",)),
    ("BUSY.ANI", ("wait",)),
    ("Working.ani", ("progress",)),
    ("Vertical", ("size_ver", "top_side", "bottom_side")),
    ("themes\\blue\\Diagonal2.cur", ("size_bdiag", "top_right_corner", "bottom_left_corner")),
    ("pack/SizeAll.cur", ("fleur",)),
    ("IBeam.cur", ("xterm",)),
    ("Link.cur", ("hand",)),
])
def test_known_names(filename, roles):
    assert roles_for_filename(filename) == roles
    assert is_known_cursor(filename)


@pytest.mark.parametrize("filename", ["pointer.cur", "Normal.png", "", "Location.cur"])
def test_unknown_names(filename):
    assert roles_for_filename(filename) == ()
    assert not is_known_cursor(filename)


def test_supported_names():
    names = supported_cursor_names()
    assert "Normal" in names
    assert names == sorted(names)
