"""Decode Windows .cur/.ani cursors into frame-based PNG sprite sheets"""

from .converter import CursorConverter, FolderConversion, find_inf
from .errors import (
    CursorFileNotFoundError,
    CursorParseError,
    DecodingFailedError,
    InvalidFormatError,
    UnsupportedFormatError,
)
from .inf_parser import INFError, parse_inf_file, roles_for_position, try_parse_inf
from .mapping import roles_for_filename
from .models import CursorResult, DecodedFrame, INFMapping

__version__ = "0.1.0"
