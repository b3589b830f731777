"""ICONDIR / ICONDIRENTRY parsing shared by .cur files and ANI frames"""

from .errors import InvalidFormatError
from .models import IconDirEntry
from .reader import ByteCursor

ICON_TYPE = 1
CURSOR_TYPE = 2

ICONDIR_SIZE = 6
ICONDIRENTRY_SIZE = 16


def _read_entry(cursor: ByteCursor, image_type: int) -> tuple[IconDirEntry, ByteCursor]:
    width, cursor = cursor.read_u8()
    height, cursor = cursor.read_u8()
    color_count, cursor = cursor.read_u8()
    cursor = cursor.skip(1)  # reserved
    hotspot_x, cursor = cursor.read_u16()
    hotspot_y, cursor = cursor.read_u16()
    data_size, cursor = cursor.read_u32()
    data_offset, cursor = cursor.read_u32()

    if image_type != CURSOR_TYPE:
        # Icons store planes and bit count here, not a hotspot
        hotspot_x = hotspot_y = 0

    entry = IconDirEntry(
        width=width or 256,
        height=height or 256,
        color_count=color_count,
        hotspot_x=hotspot_x,
        hotspot_y=hotspot_y,
        data_size=data_size,
        data_offset=data_offset,
    )
    return entry, cursor


def read_icon_directory(data: bytes, allowed_types=(CURSOR_TYPE,)) -> list[IconDirEntry]:
    """
    Read every directory entry of an ICO/CUR structure

    Args:
        data: buffer starting at the ICONDIR header
        allowed_types: accepted values of the image type field

    Returns:
        entries in file order
    """
    cursor = ByteCursor(bytes(data))
    reserved, cursor = cursor.read_u16()
    image_type, cursor = cursor.read_u16()
    count, cursor = cursor.read_u16()

    if reserved != 0:
        raise InvalidFormatError("Invalid reserved field")
    if image_type not in allowed_types:
        raise InvalidFormatError(
            f"Not a cursor file (type={image_type}, expected "
            f"{' or '.join(str(t) for t in allowed_types)})"
        )
    if count < 1:
        raise InvalidFormatError("No cursor images in file")
    if len(cursor.data) < ICONDIR_SIZE + count * ICONDIRENTRY_SIZE:
        raise InvalidFormatError(
            f"Truncated directory ({count} entries need "
            f"{ICONDIR_SIZE + count * ICONDIRENTRY_SIZE} bytes, got {len(cursor.data)})"
        )

    entries = []
    for _ in range(count):
        entry, cursor = _read_entry(cursor, image_type)
        entries.append(entry)
    return entries


def select_largest_entry(entries: list[IconDirEntry]) -> IconDirEntry:
    """Pick the entry with the largest area; the first one wins ties."""
    if not entries:
        raise InvalidFormatError("No valid entries")
    best = entries[0]
    for entry in entries[1:]:
        if entry.area > best.area:
            best = entry
    return best


def parse_icon_directory(data: bytes, allowed_types=(CURSOR_TYPE,)) -> tuple[IconDirEntry, bytes]:
    """Select the largest image of an ICO/CUR structure and return its bytes."""
    data = bytes(data)
    entry = select_largest_entry(read_icon_directory(data, allowed_types))

    if entry.data_offset + entry.data_size > len(data):
        raise InvalidFormatError(
            f"Image data out of bounds (offset {entry.data_offset}, "
            f"size {entry.data_size}, file {len(data)})"
        )
    image_data, _ = ByteCursor(data).seek(entry.data_offset).read_bytes(entry.data_size)
    return entry, image_data
