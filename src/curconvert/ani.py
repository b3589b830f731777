"""RIFF/ACON animated cursor walking"""

from dataclasses import dataclass

from .bitmap import decode_image
from .constants import DEFAULT_DISPLAY_RATE
from .errors import CursorParseError, InvalidFormatError
from .icondir import CURSOR_TYPE, ICON_TYPE, parse_icon_directory
from .models import AniHeader, AnimationTiming, DecodedFrame
from .reader import ByteCursor

ANIH_SIZE = 36


@dataclass(frozen=True)
class AniCursor:
    """Frames of an animated cursor in playback order."""

    frames: tuple
    timing: AnimationTiming
    header: AniHeader | None = None
    skipped_frames: int = 0

    @property
    def frame_count(self) -> int:
        return len(self.frames)

    @property
    def frame_duration(self) -> float:
        return self.timing.seconds_per_frame


def _default_header(num_frames: int) -> AniHeader:
    return AniHeader(
        header_size=ANIH_SIZE,
        num_frames=num_frames,
        num_steps=num_frames,
        width=0,
        height=0,
        bit_count=0,
        num_planes=0,
        display_rate=DEFAULT_DISPLAY_RATE,
        flags=0,
    )


def _read_chunk_header(cursor: ByteCursor) -> tuple[bytes, int, ByteCursor]:
    chunk_id, cursor = cursor.read_bytes(4)
    size, cursor = cursor.read_u32()
    # Clamp chunks whose declared size runs past the end of the file
    return chunk_id, min(size, cursor.remaining), cursor


def _pad(cursor: ByteCursor, size: int) -> ByteCursor:
    if size % 2 == 1 and cursor.remaining > 0:
        return cursor.skip(1)
    return cursor


def parse_anih(payload: bytes) -> AniHeader:
    if len(payload) < ANIH_SIZE:
        return _default_header(1)

    fields = []
    cursor = ByteCursor(payload)
    for _ in range(9):
        value, cursor = cursor.read_u32()
        fields.append(value)
    return AniHeader(*fields)


def parse_rate(payload: bytes, num_frames: int | None) -> tuple:
    count = len(payload) // 4
    if num_frames is not None:
        count = min(count, num_frames)

    rates = []
    cursor = ByteCursor(payload)
    for _ in range(count):
        value, cursor = cursor.read_u32()
        rates.append(value)
    return tuple(rates)


def decode_icon_frame(icon_data: bytes) -> DecodedFrame:
    """Decode one ``icon`` sub-chunk (an embedded ICO or CUR structure)."""
    entry, image_data = parse_icon_directory(icon_data, allowed_types=(ICON_TYPE, CURSOR_TYPE))
    pixels = decode_image(image_data, entry.width, entry.height)
    return DecodedFrame(pixels, entry.hotspot_x, entry.hotspot_y)


def parse_fram_list(payload: bytes) -> tuple[list[DecodedFrame], int]:
    """
    Decode the ``icon`` sub-chunks of a LIST/fram payload (without the
    4-byte list type).

    Returns:
        decoded frames in chunk order and the number of frames skipped
        because they could not be decoded
    """
    frames = []
    skipped = 0
    cursor = ByteCursor(payload)
    while cursor.remaining >= 8:
        chunk_id, size, cursor = _read_chunk_header(cursor)
        chunk, cursor = cursor.read_bytes(size)
        if chunk_id == b"icon":
            try:
                frames.append(decode_icon_frame(chunk))
            except CursorParseError:
                skipped += 1
        cursor = _pad(cursor, size)
    return frames, skipped


def parse_ani(data: bytes) -> AniCursor:
    """
    Walk the chunks of a .ani file

    Args:
        data: file contents

    Returns:
        AniCursor with every decodable frame
    """
    cursor = ByteCursor(bytes(data))
    riff, cursor = cursor.read_bytes(4)
    if riff != b"RIFF":
        raise InvalidFormatError("Not a valid RIFF file")
    cursor = cursor.skip(4)  # RIFF size, often wrong in the wild
    form, cursor = cursor.read_bytes(4)
    if form != b"ACON":
        raise InvalidFormatError("Not an animated cursor file")

    header = None
    rates = ()
    frames = []
    skipped = 0

    while cursor.remaining >= 8:
        chunk_id, size, cursor = _read_chunk_header(cursor)
        payload, cursor = cursor.read_bytes(size)

        if chunk_id == b"anih":
            header = parse_anih(payload)
        elif chunk_id == b"rate":
            rates = parse_rate(payload, header.num_frames if header else None)
        elif chunk_id == b"LIST" and payload[:4] == b"fram":
            found, missed = parse_fram_list(payload[4:])
            frames.extend(found)
            skipped += missed

        cursor = _pad(cursor, size)

    if not frames:
        raise InvalidFormatError("No frames found in ANI file")

    if header is None:
        header = _default_header(len(frames))

    return AniCursor(
        frames=tuple(frames),
        timing=AnimationTiming(header.display_rate, rates),
        header=header,
        skipped_frames=skipped,
    )
