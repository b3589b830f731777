"""Sprite sheet composition and frame-count limiting"""

import math

import numpy as np
from PIL import Image

from .constants import MAX_FRAME_COUNT
from .models import DecodedFrame


def resize_pixels(pixels: np.ndarray, width: int, height: int) -> np.ndarray:
    """Resample an RGBA array to ``width`` x ``height``."""
    img = Image.fromarray(np.ascontiguousarray(pixels), "RGBA")
    img = img.resize((width, height), Image.Resampling.LANCZOS)
    return np.asarray(img)


def compose_sprite_sheet(frames: list[DecodedFrame]) -> np.ndarray:
    """
    Stack frames vertically in playback order

    Every frame is brought to the size of the first one; frame i
    occupies rows [i*h, (i+1)*h).

    Args:
        frames: decoded frames, at least one

    Returns:
        (N*h, w, 4) RGBA array
    """
    if not frames:
        raise ValueError("compose_sprite_sheet needs at least one frame")

    first = frames[0]
    if len(frames) == 1:
        return first.pixels

    width, height = first.width, first.height
    layers = []
    for frame in frames:
        if frame.size != (width, height):
            layers.append(resize_pixels(frame.pixels, width, height))
        else:
            layers.append(frame.pixels)
    return np.concatenate(layers, axis=0)


def select_frame_indices(from_count: int, ceiling: int = MAX_FRAME_COUNT) -> list[int]:
    """
    Pick ``ceiling`` evenly spaced source frames out of ``from_count``.

    The first and last source frames are always kept.
    """
    if from_count <= ceiling:
        return list(range(from_count))
    if ceiling == 1:
        return [0]

    step = (from_count - 1) / (ceiling - 1)
    # Round half up, matching the usual sampling convention
    return [min(int(math.floor(i * step + 0.5)), from_count - 1) for i in range(ceiling)]


def limit_frames(
    sheet: np.ndarray,
    frame_count: int,
    frame_duration: float,
    ceiling: int = MAX_FRAME_COUNT,
) -> tuple[np.ndarray, int, float]:
    """
    Downsample a sprite sheet holding more than ``ceiling`` frames

    The per-frame duration is stretched so the animation keeps its
    total length.

    Returns:
        (sheet, frame_count, frame_duration)
    """
    if frame_count <= ceiling:
        return sheet, frame_count, frame_duration

    frame_height = sheet.shape[0] // frame_count
    indices = select_frame_indices(frame_count, ceiling)
    kept = [sheet[i * frame_height:(i + 1) * frame_height] for i in indices]
    duration = frame_duration * frame_count / ceiling
    return np.concatenate(kept, axis=0), ceiling, duration
