"""Role lookup by conventional Windows cursor file names"""

import os

from .constants import CURSOR_EXTENSIONS, FILENAME_TO_WIN, WIN_TO_ROLES

_LOWER_NAMES = {name.lower(): win_type for name, win_type in FILENAME_TO_WIN.items()}


def _base_name(filename: str) -> str:
    name = filename.replace("\\", "/").rsplit("/", 1)[-1]
    stem, ext = os.path.splitext(name)
    if ext[1:].lower() in CURSOR_EXTENSIONS:
        name = stem
    return name.strip().lower()


def roles_for_filename(filename: str) -> tuple:
    """
    Target roles for a Windows cursor file name

    Args:
        filename: name with or without directory and .cur/.ani extension

    Returns:
        matching roles, empty if the name is not a known cursor
    """
    win_type = _LOWER_NAMES.get(_base_name(filename))
    return WIN_TO_ROLES.get(win_type, ())


def is_known_cursor(filename: str) -> bool:
    return bool(roles_for_filename(filename))


def supported_cursor_names() -> list[str]:
    return sorted(FILENAME_TO_WIN)
