"""Builders for synthetic cursor files"""

import io
import struct

import numpy as np
from PIL import Image


def dib_header(width, height, bits, compression=0, image_size=0, clr_used=0):
    """BITMAPINFOHEADER with the doubled (XOR + AND) height."""
    return struct.pack(
        "<IiiHHIIiiII", 40, width, height * 2, 1, bits, compression, image_size, 0, 0, clr_used, 0
    )


def row_size(width, bits):
    return ((width * bits + 31) // 32) * 4


def and_mask(transparent):
    """Pack a top-down boolean array into a bottom-up 1bpp AND mask."""
    transparent = np.asarray(transparent, dtype=bool)
    height, width = transparent.shape
    size = row_size(width, 1)
    out = bytearray()
    for row in transparent[::-1]:
        packed = np.packbits(row.astype(np.uint8)).tobytes()
        out += packed + bytes(size - len(packed))
    return bytes(out)


def empty_mask(width, height):
    return bytes(row_size(width, 1) * height)


def palette_bytes(colors):
    """RGB tuples to BGR0 palette entries."""
    return b"".join(bytes((b, g, r, 0)) for r, g, b in colors)


def bgra32_dib(rgba, mask=None, bitfields=False):
    rgba = np.asarray(rgba, dtype=np.uint8)
    height, width = rgba.shape[:2]
    body = rgba[::-1][:, :, [2, 1, 0, 3]].tobytes()
    mask = empty_mask(width, height) if mask is None else and_mask(mask)
    if bitfields:
        header = dib_header(width, height, 32, 3) + bitfield_masks(0xFF0000, 0xFF00, 0xFF)
    else:
        header = dib_header(width, height, 32)
    return header + body + mask


def bgr24_dib(rgb, mask=None):
    rgb = np.asarray(rgb, dtype=np.uint8)
    height, width = rgb.shape[:2]
    size = row_size(width, 24)
    body = bytearray()
    for row in rgb[::-1]:
        data = row[:, ::-1].tobytes()
        body += data + bytes(size - len(data))
    mask = empty_mask(width, height) if mask is None else and_mask(mask)
    return dib_header(width, height, 24) + bytes(body) + mask


def bitfield_masks(red, green, blue):
    """DWORD colour masks stored after a BI_BITFIELDS BITMAPINFOHEADER."""
    return struct.pack("<III", red, green, blue)


def words16_dib(words, compression=0, mask=None):
    words = np.asarray(words, dtype="<u2")
    height, width = words.shape
    size = row_size(width, 16)
    body = bytearray()
    for row in words[::-1]:
        data = row.tobytes()
        body += data + bytes(size - len(data))
    header = dib_header(width, height, 16, compression)
    if compression == 3:
        header += bitfield_masks(0xF800, 0x07E0, 0x001F)
    mask = empty_mask(width, height) if mask is None else and_mask(mask)
    return header + bytes(body) + mask


def indexed_dib(indices, bits, colors, mask=None, clr_used=None):
    """Paletted DIB from a top-down index array."""
    indices = np.asarray(indices, dtype=np.uint8)
    height, width = indices.shape
    size = row_size(width, bits)
    body = bytearray()
    for row in indices[::-1]:
        if bits == 8:
            data = row.tobytes()
        elif bits == 4:
            padded = np.append(row, 0) if width % 2 else row
            data = ((padded[0::2] << 4) | padded[1::2]).astype(np.uint8).tobytes()
        else:
            data = np.packbits(row).tobytes()
        body += data + bytes(size - len(data))
    used = len(colors) if clr_used is None else clr_used
    mask = empty_mask(width, height) if mask is None else and_mask(mask)
    return dib_header(width, height, bits, clr_used=used) + palette_bytes(colors) + bytes(body) + mask


def _rle_row(row, nibbles):
    out = bytearray()
    n = len(row)
    i = 0
    while i < n:
        j = i
        while j < n and row[j] == row[i] and j - i < 255:
            j += 1
        if j - i >= 2:
            value = int(row[i])
            out += bytes((j - i, (value << 4) | value if nibbles else value))
            i = j
            continue

        k = i
        while k < n and k - i < 255 and not (k + 1 < n and row[k + 1] == row[k]):
            k += 1
        literals = [int(v) for v in row[i:k]]
        if len(literals) >= 3:
            out += bytes((0, len(literals)))
            if nibbles:
                padded = literals + [0] * (len(literals) % 2)
                packed = bytes((padded[p] << 4) | padded[p + 1] for p in range(0, len(padded), 2))
            else:
                packed = bytes(literals)
            out += packed
            if len(packed) % 2:
                out += b"\x00"
        else:
            for value in literals:
                out += bytes((1, (value << 4) if nibbles else value))
        i = k
    return bytes(out)


def rle_encode(indices, nibbles=False):
    """RLE8 (or RLE4) stream for a top-down index array."""
    out = bytearray()
    for row in np.asarray(indices)[::-1]:
        out += _rle_row(list(row), nibbles) + b"\x00\x00"
    return bytes(out) + b"\x00\x01"


def rle_dib(indices, colors, nibbles=False, mask=None, stream=None):
    indices = np.asarray(indices, dtype=np.uint8)
    height, width = indices.shape
    if stream is None:
        stream = rle_encode(indices, nibbles)
    bits, compression = (4, 2) if nibbles else (8, 1)
    mask = empty_mask(width, height) if mask is None else and_mask(mask)
    header = dib_header(width, height, bits, compression, image_size=len(stream), clr_used=len(colors))
    return header + palette_bytes(colors) + stream + mask


def png_bytes(rgba):
    buffer = io.BytesIO()
    Image.fromarray(np.asarray(rgba, dtype=np.uint8), "RGBA").save(buffer, format="PNG")
    return buffer.getvalue()


def icon_dir(images, image_type=2):
    """
    ICONDIR + entries + image data

    images: list of (width, height, hotspot_x, hotspot_y, data)
    """
    header = struct.pack("<HHH", 0, image_type, len(images))
    offset = 6 + 16 * len(images)
    entries = b""
    blobs = b""
    for width, height, hx, hy, data in images:
        entries += struct.pack(
            "<BBBBHHII", width % 256, height % 256, 0, 0, hx, hy, len(data), offset + len(blobs)
        )
        blobs += data
    return header + entries + blobs


def solid_rgba(width, height, color):
    return np.full((height, width, 4), color, np.uint8)


def solid_cur(width, height, color, hotspot=(0, 0)):
    return icon_dir([(width, height, hotspot[0], hotspot[1], bgra32_dib(solid_rgba(width, height, color)))])


def chunk(chunk_id, payload):
    data = chunk_id + struct.pack("<I", len(payload)) + payload
    return data + (b"\x00" if len(payload) % 2 else b"")


def anih(num_frames, display_rate=10, width=0, height=0):
    return chunk(
        b"anih", struct.pack("<9I", 36, num_frames, num_frames, width, height, 32, 1, display_rate, 1)
    )


def ani_file(icons, rates=None, display_rate=10, header=True, extra_chunks=b""):
    """RIFF/ACON file from a list of icon (ICO/CUR) blobs."""
    body = b""
    if header:
        body += anih(len(icons), display_rate)
    if rates is not None:
        body += chunk(b"rate", struct.pack(f"<{len(rates)}I", *rates))
    body += extra_chunks
    body += chunk(b"LIST", b"fram" + b"".join(chunk(b"icon", icon) for icon in icons))
    return b"RIFF" + struct.pack("<I", len(body) + 4) + b"ACON" + body


def gradient_cur(index, size=8):
    """Single-image cursor whose red channel encodes ``index``."""
    return solid_cur(size, size, (index % 256, 0, 0, 255), hotspot=(1, 2))


def decode_png(data):
    with Image.open(io.BytesIO(data)) as img:
        return np.array(img.convert("RGBA"))
