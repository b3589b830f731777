"""Data model module"""

from dataclasses import dataclass, field, replace
from types import MappingProxyType
from typing import Mapping

import numpy as np

from .constants import TICKS_PER_SECOND

__all__ = (
    "IconDirEntry",
    "DecodedFrame",
    "AnimationTiming",
    "AniHeader",
    "CursorResult",
    "INFMapping",
)


@dataclass(frozen=True)
class IconDirEntry:
    """One ICONDIRENTRY, with a 0 width/height already normalized to 256."""

    width: int
    height: int
    color_count: int
    hotspot_x: int
    hotspot_y: int
    data_size: int
    data_offset: int

    @property
    def area(self) -> int:
        return self.width * self.height


@dataclass(frozen=True)
class DecodedFrame:
    """RGBA8 frame, row 0 at the top, straight alpha."""

    pixels: np.ndarray
    hotspot_x: int = 0
    hotspot_y: int = 0

    def __post_init__(self):
        pixels = np.ascontiguousarray(self.pixels, dtype=np.uint8)
        if pixels.ndim != 3 or pixels.shape[2] != 4:
            raise ValueError(f"expected (h, w, 4) pixels, got {pixels.shape}")
        pixels.setflags(write=False)
        object.__setattr__(self, "pixels", pixels)

    @property
    def width(self) -> int:
        return self.pixels.shape[1]

    @property
    def height(self) -> int:
        return self.pixels.shape[0]

    @property
    def size(self) -> tuple:
        return self.width, self.height


@dataclass(frozen=True)
class AnimationTiming:
    """Frame timing in jiffies, either one display rate or a rate per frame."""

    display_rate: int
    rates: tuple = ()

    @property
    def seconds_per_frame(self) -> float:
        if self.rates:
            return sum(self.rates) / len(self.rates) / TICKS_PER_SECOND
        return self.display_rate / TICKS_PER_SECOND


@dataclass(frozen=True)
class AniHeader:
    header_size: int
    num_frames: int
    num_steps: int
    width: int
    height: int
    bit_count: int
    num_planes: int
    display_rate: int
    flags: int


@dataclass(frozen=True)
class CursorResult:
    """
    A normalized cursor: one PNG sprite sheet with its frames stacked
    top to bottom in playback order.
    """

    width: int
    height: int
    hotspot_x: int
    hotspot_y: int
    frame_count: int
    frame_duration: float
    sprite_sheet_png: bytes
    source_name: str
    roles: tuple = ()

    def with_roles(self, roles) -> "CursorResult":
        return replace(self, roles=tuple(roles))

    @property
    def is_animated(self) -> bool:
        return self.frame_count > 1


@dataclass(frozen=True)
class INFMapping:
    """Cursor files named by an install.inf, keyed by scheme position."""

    position_to_filename: Mapping[int, str] = field(default_factory=dict)
    scheme_name: str | None = None
    cursor_dir: str | None = None

    def __post_init__(self):
        object.__setattr__(
            self,
            "position_to_filename",
            MappingProxyType(dict(self.position_to_filename)),
        )

    def __len__(self):
        return len(self.position_to_filename)

    def positions_for(self, filename: str) -> list[int]:
        """Positions referencing ``filename`` (case insensitive)."""
        wanted = filename.lower()
        return sorted(
            pos
            for pos, name in self.position_to_filename.items()
            if name.lower() == wanted
        )
