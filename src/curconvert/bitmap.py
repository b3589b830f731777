"""
Pixel decoding for images embedded in ICO/CUR structures.

Embedded images are either PNG streams or headerless DIBs
(BITMAPINFOHEADER + palette + XOR color data + 1bpp AND mask, with the
header height doubled to cover both bitmaps). Every path returns an
(h, w, 4) uint8 RGBA array with row 0 at the top and straight alpha.
"""

import io
import struct
from dataclasses import dataclass
from enum import Enum

import numpy as np
from PIL import Image

from .constants import PLACEHOLDER_RGBA, PNG_SIGNATURE
from .errors import DecodingFailedError, InvalidFormatError
from .reader import ByteCursor

BITMAPINFOHEADER_SIZE = 40
BITMAPFILEHEADER_SIZE = 14
MAX_DIMENSION = 4096

BI_RGB = 0
BI_RLE8 = 1
BI_RLE4 = 2
BI_BITFIELDS = 3
BITFIELDS_MASKS_SIZE = 12


class DibStrategy(Enum):
    BGRA32 = "bgra32"
    BGR24 = "bgr24"
    RGB565 = "rgb565"
    RGB555 = "rgb555"
    PALETTE8 = "palette8"
    PALETTE4 = "palette4"
    PALETTE1 = "palette1"
    RLE8 = "rle8"
    RLE4 = "rle4"
    FALLBACK = "fallback"


@dataclass(frozen=True)
class DibHeader:
    header_size: int
    width: int
    height: int  # XOR bitmap height, i.e. half the stored value
    bit_count: int
    compression: int
    image_size: int
    clr_used: int
    top_down: bool = False

    @property
    def palette_size(self) -> int:
        if self.bit_count > 8:
            return 0
        full = 1 << self.bit_count
        return min(self.clr_used, full) if self.clr_used else full


def is_png(data: bytes) -> bool:
    return data[:8] == PNG_SIGNATURE


def _row_size(width: int, bits: int) -> int:
    """Bytes per DIB row, padded to a 4-byte boundary."""
    return ((width * bits + 31) // 32) * 4


def read_dib_header(data: bytes, fallback_width: int = 0) -> tuple[DibHeader, ByteCursor]:
    """
    Parse a BITMAPINFOHEADER (or larger V4/V5 header)

    Returns:
        the header and a cursor positioned at the palette / color data
    """
    cursor = ByteCursor(bytes(data))
    header_size, cursor = cursor.read_u32()
    if header_size < BITMAPINFOHEADER_SIZE:
        # BITMAPCOREHEADER and friends are left to the fallback decoder
        bit_count = 0
        if header_size >= 12 and cursor.remaining >= 8:
            bit_count, _ = cursor.skip(6).read_u16()
        return DibHeader(header_size, fallback_width, 0, bit_count, -1, 0, 0), cursor

    width, cursor = cursor.read_i32()
    raw_height, cursor = cursor.read_i32()
    cursor = cursor.skip(2)  # planes
    bit_count, cursor = cursor.read_u16()
    compression, cursor = cursor.read_u32()
    image_size, cursor = cursor.read_u32()
    cursor = cursor.skip(8)  # x/y pixels per meter
    clr_used, cursor = cursor.read_u32()
    cursor = cursor.skip(4)  # clrImportant

    if header_size > BITMAPINFOHEADER_SIZE:
        cursor = cursor.skip(header_size - BITMAPINFOHEADER_SIZE)
    elif compression == BI_BITFIELDS and bit_count in (16, 32):
        # Red, green and blue DWORD masks follow a plain BITMAPINFOHEADER
        cursor = cursor.skip(BITFIELDS_MASKS_SIZE)

    header = DibHeader(
        header_size=header_size,
        width=width if width > 0 else fallback_width,
        height=abs(raw_height) // 2,
        bit_count=bit_count,
        compression=compression,
        image_size=image_size,
        clr_used=clr_used,
        top_down=raw_height < 0,
    )
    return header, cursor


def classify_dib(header: DibHeader) -> DibStrategy:
    """Choose the decode strategy for a DIB header."""
    bits, compression = header.bit_count, header.compression

    if compression == BI_RLE8:
        return DibStrategy.RLE8 if bits == 8 else DibStrategy.FALLBACK
    if compression == BI_RLE4:
        return DibStrategy.RLE4 if bits == 4 else DibStrategy.FALLBACK
    if compression not in (BI_RGB, BI_BITFIELDS):
        return DibStrategy.FALLBACK

    if bits == 32:
        return DibStrategy.BGRA32
    if bits == 16:
        return DibStrategy.RGB565 if compression == BI_BITFIELDS else DibStrategy.RGB555
    if compression == BI_BITFIELDS:
        return DibStrategy.FALLBACK
    return {
        24: DibStrategy.BGR24,
        8: DibStrategy.PALETTE8,
        4: DibStrategy.PALETTE4,
        1: DibStrategy.PALETTE1,
    }.get(bits, DibStrategy.FALLBACK)


# ---------------- shared helpers ----------------

def _read_rows(cursor: ByteCursor, header: DibHeader, bits: int) -> tuple[np.ndarray, ByteCursor]:
    """Read the XOR bitmap as (height, row_size) bytes in file order."""
    row_size = _row_size(header.width, bits)
    raw, cursor = cursor.read_bytes(row_size * header.height)
    return np.frombuffer(raw, np.uint8).reshape(header.height, row_size), cursor


def _orient(pixels: np.ndarray, header: DibHeader) -> np.ndarray:
    """DIB rows are stored bottom-up unless the height was negative."""
    return pixels if header.top_down else pixels[::-1]


def _read_and_mask(cursor: ByteCursor, header: DibHeader) -> np.ndarray:
    """
    Read the 1bpp AND mask as a top-down boolean array (True = transparent).

    Missing trailing mask bytes count as opaque.
    """
    width, height = header.width, header.height
    row_size = _row_size(width, 1)
    wanted = row_size * height
    available = cursor.data[cursor.pos:cursor.pos + wanted]

    raw = np.zeros(wanted, np.uint8)
    raw[:len(available)] = np.frombuffer(available, np.uint8)
    bits = np.unpackbits(raw.reshape(height, row_size), axis=1)[:, :width]
    return _orient(bits.astype(bool), header)


def _apply_and_mask(rgba: np.ndarray, cursor: ByteCursor, header: DibHeader) -> np.ndarray:
    transparent = _read_and_mask(cursor, header)
    rgba[transparent, 3] = 0
    return rgba


def _read_palette(cursor: ByteCursor, header: DibHeader) -> tuple[np.ndarray, ByteCursor]:
    """
    Read BGR0 palette entries into a 257-entry RGBA lookup table.

    Indices past the palette resolve to opaque black; index -1 (the last
    entry) is fully transparent and marks pixels an RLE stream never set.
    """
    count = header.palette_size
    raw, cursor = cursor.read_bytes(count * 4)
    bgr0 = np.frombuffer(raw, np.uint8).reshape(count, 4)

    lut = np.zeros((257, 4), np.uint8)
    lut[:256, 3] = 255
    lut[:count, 0] = bgr0[:, 2]
    lut[:count, 1] = bgr0[:, 1]
    lut[:count, 2] = bgr0[:, 0]
    return lut, cursor


def _unpack_indices(rows: np.ndarray, width: int, bits: int) -> np.ndarray:
    if bits == 8:
        return rows[:, :width]
    if bits == 4:
        # High nibble first
        nibbles = np.stack((rows >> 4, rows & 0x0F), axis=2)
        return nibbles.reshape(rows.shape[0], -1)[:, :width]
    return np.unpackbits(rows, axis=1)[:, :width]


# ---------------- strategies ----------------

def _decode_bgra32(header: DibHeader, cursor: ByteCursor) -> np.ndarray:
    rows, cursor = _read_rows(cursor, header, 32)
    bgra = rows.reshape(header.height, header.width, 4)
    rgba = _orient(bgra[:, :, [2, 1, 0, 3]], header).copy()

    if not rgba[:, :, 3].any():
        # Pre-alpha 32bpp cursors leave the channel empty and rely on the mask.
        # An empty mask means the frame really is fully transparent.
        transparent = _read_and_mask(cursor, header)
        if transparent.any():
            rgba[:, :, 3] = 255
            rgba[transparent, 3] = 0
    return rgba


def _decode_bgr24(header: DibHeader, cursor: ByteCursor) -> np.ndarray:
    rows, cursor = _read_rows(cursor, header, 24)
    bgr = rows[:, :header.width * 3].reshape(header.height, header.width, 3)

    rgba = np.empty((header.height, header.width, 4), np.uint8)
    rgba[:, :, :3] = _orient(bgr[:, :, ::-1], header)
    rgba[:, :, 3] = 255
    return _apply_and_mask(rgba, cursor, header)


def _decode_16bit(header: DibHeader, cursor: ByteCursor, rgb565: bool) -> np.ndarray:
    rows, cursor = _read_rows(cursor, header, 16)
    words = rows[:, :header.width * 2].copy().view("<u2").astype(np.uint16)

    if rgb565:
        # RRRRRGGGGGGBBBBB
        r = ((words >> 11) & 0x1F) << 3
        g = ((words >> 5) & 0x3F) << 2
    else:
        # XRRRRRGGGGGBBBBB
        r = ((words >> 10) & 0x1F) << 3
        g = ((words >> 5) & 0x1F) << 3
    b = (words & 0x1F) << 3

    rgba = np.empty((header.height, header.width, 4), np.uint8)
    rgba[:, :, 0] = r
    rgba[:, :, 1] = g
    rgba[:, :, 2] = b
    rgba[:, :, 3] = 255
    rgba = _orient(rgba, header).copy()
    return _apply_and_mask(rgba, cursor, header)


def _decode_rgb565(header: DibHeader, cursor: ByteCursor) -> np.ndarray:
    return _decode_16bit(header, cursor, rgb565=True)


def _decode_rgb555(header: DibHeader, cursor: ByteCursor) -> np.ndarray:
    return _decode_16bit(header, cursor, rgb565=False)


def _decode_palette(header: DibHeader, cursor: ByteCursor) -> np.ndarray:
    lut, cursor = _read_palette(cursor, header)
    rows, cursor = _read_rows(cursor, header, header.bit_count)
    indices = _unpack_indices(rows, header.width, header.bit_count)
    rgba = _orient(lut[indices], header).copy()
    return _apply_and_mask(rgba, cursor, header)


def _decode_rle(header: DibHeader, cursor: ByteCursor, nibbles: bool) -> np.ndarray:
    """
    Decode an RLE8 (or, with ``nibbles``, RLE4) stream.

    Rows are filled from the bottom of the image upward, so the index
    array is already top-down when the stream ends.
    """
    lut, cursor = _read_palette(cursor, header)
    width, height = header.width, header.height
    indices = np.full((height, width), -1, np.int16)
    stream_start = cursor.pos

    def put(y: int, x: int, values) -> None:
        if 0 <= y < height and x < width:
            values = values[:width - x]
            indices[y, x:x + len(values)] = values

    x, y = 0, height - 1
    while cursor.remaining >= 2:
        count, cursor = cursor.read_u8()
        value, cursor = cursor.read_u8()

        if count > 0:
            # Encoded run
            if nibbles:
                run = np.resize(np.array([value >> 4, value & 0x0F], np.int16), count)
            else:
                run = np.full(count, value, np.int16)
            put(y, x, run)
            x += count
        elif value == 0:
            # End of line
            x = 0
            y -= 1
        elif value == 1:
            # End of bitmap
            break
        elif value == 2:
            # Delta
            if cursor.remaining < 2:
                break
            dx, cursor = cursor.read_u8()
            dy, cursor = cursor.read_u8()
            x += dx
            y -= dy
        else:
            # Absolute mode, padded to a 16-bit boundary
            byte_count = (value + 1) // 2 if nibbles else value
            literal, cursor = cursor.read_bytes(min(byte_count, cursor.remaining))
            packed = np.frombuffer(literal, np.uint8)
            if nibbles:
                packed = np.stack((packed >> 4, packed & 0x0F), axis=1).reshape(-1)
            put(y, x, packed[:value].astype(np.int16))
            x += value
            if byte_count % 2 == 1 and cursor.remaining > 0:
                cursor = cursor.skip(1)

    mask_start = stream_start + header.image_size
    if header.image_size and mask_start <= len(cursor.data):
        cursor = cursor.seek(mask_start)

    rgba = lut[indices]
    transparent = _read_and_mask(cursor, header)
    rgba[transparent, 3] = 0
    return rgba


def _decode_rle8(header: DibHeader, cursor: ByteCursor) -> np.ndarray:
    return _decode_rle(header, cursor, nibbles=False)


def _decode_rle4(header: DibHeader, cursor: ByteCursor) -> np.ndarray:
    return _decode_rle(header, cursor, nibbles=True)


def recover_with_placeholder(width: int, height: int) -> np.ndarray:
    """Stand-in image for DIB variants nothing could decode."""
    return np.full((max(height, 1), max(width, 1), 4), PLACEHOLDER_RGBA, np.uint8)


def wrap_dib_as_bmp(data: bytes, header: DibHeader) -> bytes:
    """Prefix a DIB with a BITMAPFILEHEADER so generic BMP readers accept it."""
    dib = bytearray(data)
    entry_size = 3 if header.header_size == 12 else 4
    pixel_offset = BITMAPFILEHEADER_SIZE + header.header_size + header.palette_size * entry_size
    if header.header_size == BITMAPINFOHEADER_SIZE and header.compression == BI_BITFIELDS:
        pixel_offset += BITFIELDS_MASKS_SIZE

    # Drop the AND mask half from the declared height
    if header.header_size >= BITMAPINFOHEADER_SIZE and len(dib) >= 12 and header.height:
        height = -header.height if header.top_down else header.height
        dib[8:12] = struct.pack("<i", height)
    elif header.header_size == 12 and len(dib) >= 8:
        (stored,) = struct.unpack_from("<H", dib, 6)
        dib[6:8] = struct.pack("<H", stored // 2)

    file_header = b"BM" + struct.pack(
        "<IHHI", BITMAPFILEHEADER_SIZE + len(dib), 0, 0, pixel_offset
    )
    return file_header + bytes(dib)


def _decode_fallback(data: bytes, header: DibHeader, width: int, height: int) -> np.ndarray:
    try:
        with Image.open(io.BytesIO(wrap_dib_as_bmp(data, header))) as img:
            return np.array(img.convert("RGBA"))
    except Exception:
        return recover_with_placeholder(width, height)


DIB_DECODERS = {
    DibStrategy.BGRA32: _decode_bgra32,
    DibStrategy.BGR24: _decode_bgr24,
    DibStrategy.RGB565: _decode_rgb565,
    DibStrategy.RGB555: _decode_rgb555,
    DibStrategy.PALETTE8: _decode_palette,
    DibStrategy.PALETTE4: _decode_palette,
    DibStrategy.PALETTE1: _decode_palette,
    DibStrategy.RLE8: _decode_rle8,
    DibStrategy.RLE4: _decode_rle4,
}


def decode_png(data: bytes) -> np.ndarray:
    try:
        with Image.open(io.BytesIO(data)) as img:
            return np.array(img.convert("RGBA"))
    except Exception as e:
        raise DecodingFailedError(f"Failed to decode PNG: {e}") from e


def decode_dib(data: bytes, width: int = 0, height: int = 0) -> np.ndarray:
    """
    Decode a headerless DIB

    Args:
        data: DIB bytes starting at the BITMAPINFOHEADER
        width: directory width, used when the header has none
        height: directory height, used for the placeholder

    Returns:
        (h, w, 4) RGBA array
    """
    header, cursor = read_dib_header(data, width)
    strategy = classify_dib(header)
    if strategy is DibStrategy.FALLBACK:
        return _decode_fallback(data, header, width or header.width, height or header.height)

    if header.width <= 0 or header.height <= 0:
        raise InvalidFormatError(f"Empty bitmap ({header.width}x{header.height})")
    if header.width > MAX_DIMENSION or header.height > MAX_DIMENSION:
        raise InvalidFormatError(f"Bitmap too large ({header.width}x{header.height})")

    return DIB_DECODERS[strategy](header, cursor)


def decode_image(data: bytes, width: int = 0, height: int = 0) -> np.ndarray:
    """Decode an embedded cursor image, PNG or DIB."""
    if is_png(data):
        return decode_png(data)
    return decode_dib(data, width, height)
