"""Cursor conversion module"""

import io
import os
import gettext
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from typing import Callable, Mapping

import numpy as np
from PIL import Image

from .ani import parse_ani
from .bitmap import decode_image
from .constants import CURSOR_EXTENSIONS, MAX_FRAME_COUNT
from .errors import CursorFileNotFoundError, DecodingFailedError, UnsupportedFormatError
from .frames import compose_sprite_sheet, limit_frames
from .icondir import parse_icon_directory
from .inf_parser import INFError, roles_for_position, try_parse_inf
from .mapping import roles_for_filename
from .models import CursorResult, DecodedFrame, INFMapping

_ = gettext.gettext


@dataclass(frozen=True)
class FolderConversion:
    """Outcome of a batch conversion."""

    results: list = field(default_factory=list)
    inf_mapping: INFMapping | None = None
    inf_error: INFError | None = None


def _extension(filename: str) -> str:
    return os.path.splitext(filename)[1].lower().lstrip(".")


def _basename(filename: str) -> str:
    return filename.replace("\\", "/").rsplit("/", 1)[-1]


def _stem(filename: str) -> str:
    return os.path.splitext(_basename(filename))[0]


def _clamp(value: int, upper: int) -> int:
    return max(0, min(value, upper - 1))


def encode_png(pixels: np.ndarray) -> bytes:
    """Encode an RGBA array as PNG."""
    try:
        buffer = io.BytesIO()
        Image.fromarray(np.ascontiguousarray(pixels), "RGBA").save(buffer, format="PNG")
        return buffer.getvalue()
    except Exception as e:
        raise DecodingFailedError(f"Failed to encode PNG: {e}") from e


def find_inf(folder: str, recursive: bool = True) -> str | None:
    """
    Find the scheme INF of a cursor pack

    install.inf is preferred (case insensitive), otherwise the first .inf
    found, shallowest directory first. Without ``recursive`` only the
    top level of ``folder`` is searched.
    """
    inf_files = []
    for root, dirs, files in os.walk(folder):
        dirs.sort()
        for file in sorted(files):
            if file.lower() == "install.inf":
                return os.path.join(root, file)
            if file.lower().endswith(".inf"):
                inf_files.append(os.path.join(root, file))
        if not recursive:
            break
    return inf_files[0] if inf_files else None


class CursorConverter:
    """Cursor converter"""

    def __init__(
        self,
        log_callback: Callable[[str], None] = None,
        max_frames: int = MAX_FRAME_COUNT,
        max_workers: int | None = None,
    ):
        """
        Initialize converter

        Args:
            log_callback: log callback function, accepts string parameter
            max_frames: frame ceiling for animated cursors
            max_workers: threads used for batch conversion, None converts
              files one after another
        """
        if max_frames < 1:
            raise ValueError("max_frames must be at least 1")
        self.log = log_callback or (lambda msg: None)
        self.max_frames = max_frames
        self.max_workers = max_workers

    def _decode_frames(self, data: bytes, extension: str, source_name: str):
        if extension == "cur":
            entry, image_data = parse_icon_directory(data)
            pixels = decode_image(image_data, entry.width, entry.height)
            return [DecodedFrame(pixels, entry.hotspot_x, entry.hotspot_y)], 0.0

        if extension == "ani":
            ani = parse_ani(data)
            if ani.skipped_frames:
                self.log(
                    _("  Skipped {} undecodable frames in {}").format(
                        ani.skipped_frames, source_name
                    )
                )
            return list(ani.frames), ani.frame_duration

        raise UnsupportedFormatError(f"Unknown extension: {extension}")

    def convert_bytes(self, data: bytes, extension: str, source_name: str = "") -> CursorResult:
        """
        Convert the contents of one cursor file

        Args:
            data: file contents
            extension: "cur" or "ani" (leading dot and case ignored)
            source_name: name reported in the result

        Returns:
            CursorResult holding the PNG sprite sheet
        """
        extension = extension.lower().lstrip(".")
        frames, duration = self._decode_frames(bytes(data), extension, source_name)

        sheet = compose_sprite_sheet(frames)
        frame_count = len(frames)
        if frame_count > self.max_frames:
            sheet, limited, duration = limit_frames(sheet, frame_count, duration, self.max_frames)
            self.log(
                _("  Reduced {} from {} to {} frames").format(source_name, frame_count, limited)
            )
            frame_count = limited

        first = frames[0]
        return CursorResult(
            width=first.width,
            height=first.height,
            hotspot_x=_clamp(first.hotspot_x, first.width),
            hotspot_y=_clamp(first.hotspot_y, first.height),
            frame_count=frame_count,
            frame_duration=duration,
            sprite_sheet_png=encode_png(sheet),
            source_name=source_name,
        )

    def convert_file(self, cursor_file: str) -> CursorResult:
        """Convert a single .cur or .ani file."""
        if not os.path.isfile(cursor_file):
            raise CursorFileNotFoundError(cursor_file)
        with open(cursor_file, "rb") as f:
            data = f.read()
        return self.convert_bytes(data, _extension(cursor_file), _stem(cursor_file))

    def _convert_one(self, item) -> CursorResult | None:
        name, data = item
        try:
            result = self.convert_bytes(data, _extension(name), _stem(name))
        except Exception as e:
            self.log(_("✗ Conversion failed {}: {}").format(name, e))
            return None
        self.log(
            _("  ✓ Converted {} ({}x{}, {} frames)").format(
                name, result.width, result.height, result.frame_count
            )
        )
        return result

    def _convert_all(self, items: list) -> list:
        if self.max_workers and self.max_workers > 1 and len(items) > 1:
            with ThreadPoolExecutor(max_workers=self.max_workers) as pool:
                return list(pool.map(self._convert_one, items))
        return [self._convert_one(item) for item in items]

    def _parse_inf(self, inf_data: bytes | None):
        if inf_data is None:
            self.log(_("No INF file, assigning roles by file name"))
            return None, None

        parsed = try_parse_inf(inf_data)
        if isinstance(parsed, INFError):
            self.log(
                _("✗ Cannot use INF file ({}), assigning roles by file name").format(parsed.value)
            )
            return None, parsed

        self.log(_("Theme name: {}").format(parsed.scheme_name or _("Untitled Theme")))
        self.log(_("Found {} cursors").format(len(parsed)))
        return parsed, None

    def convert_listing(
        self,
        listing: Mapping[str, bytes],
        inf_data: bytes | None = None,
    ) -> FolderConversion:
        """
        Convert a set of cursor files and assign their roles

        Files that fail to convert are logged and left out. Roles come
        from the INF when it parses, otherwise from the file names.

        Args:
            listing: file name (or relative path) -> contents
            inf_data: contents of the pack's install.inf, if any

        Returns:
            FolderConversion with one result per converted file
        """
        items = [(name, data) for name, data in listing.items() if _extension(name) in CURSOR_EXTENSIONS]
        mapping, inf_error = self._parse_inf(inf_data)

        if mapping is not None:
            available = {_basename(name).lower() for name, _data in items}
            for position, filename in sorted(mapping.position_to_filename.items()):
                if filename.lower() not in available:
                    self.log(_("✗ File not found: {}").format(filename))

        results = []
        for (name, _data), result in zip(items, self._convert_all(items)):
            if result is None:
                continue
            if mapping is not None:
                roles = []
                for position in mapping.positions_for(_basename(name)):
                    roles.extend(r for r in roles_for_position(position) if r not in roles)
            else:
                roles = roles_for_filename(name)
            results.append(result.with_roles(roles))

        self.log(
            _("✓ Conversion complete! Successfully converted {}/{} cursors").format(
                len(results), len(items)
            )
        )
        return FolderConversion(results=results, inf_mapping=mapping, inf_error=inf_error)

    def convert_folder(self, folder: str, recursive: bool = True) -> FolderConversion:
        """
        Convert every .cur/.ani file of a folder

        Args:
            folder: cursor pack directory
            recursive: also look into sub-directories

        Returns:
            FolderConversion
        """
        if not os.path.isdir(folder):
            raise CursorFileNotFoundError(folder)

        listing = {}
        for root, dirs, files in os.walk(folder):
            dirs.sort()
            for file in sorted(files):
                if _extension(file) not in CURSOR_EXTENSIONS:
                    continue
                path = os.path.join(root, file)
                with open(path, "rb") as f:
                    listing[os.path.relpath(path, folder)] = f.read()
            if not recursive:
                break

        inf_data = None
        inf_path = find_inf(folder, recursive)
        if inf_path:
            self.log(_("Found INF file: {}").format(os.path.basename(inf_path)))
            with open(inf_path, "rb") as f:
                inf_data = f.read()

        return self.convert_listing(listing, inf_data)
