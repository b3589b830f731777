"""Little-endian byte cursor over an immutable buffer"""

from dataclasses import dataclass

from .errors import InvalidFormatError


@dataclass(frozen=True)
class ByteCursor:
    """
    Read position over an immutable byte buffer.

    The cursor never changes in place: every read returns the value
    together with a new cursor advanced past it, so one buffer can be
    walked from several threads without coordination.
    """

    data: bytes
    pos: int = 0

    @property
    def remaining(self) -> int:
        return len(self.data) - self.pos

    @property
    def at_end(self) -> bool:
        return self.pos >= len(self.data)

    def _require(self, count: int):
        if count < 0 or self.pos + count > len(self.data):
            raise InvalidFormatError(
                f"Unexpected end of data (need {count} bytes at offset {self.pos}, "
                f"{self.remaining} left)"
            )

    def read_u8(self) -> tuple[int, "ByteCursor"]:
        self._require(1)
        return self.data[self.pos], ByteCursor(self.data, self.pos + 1)

    def read_u16(self) -> tuple[int, "ByteCursor"]:
        self._require(2)
        d, p = self.data, self.pos
        # Low byte first
        return d[p] | (d[p + 1] << 8), ByteCursor(d, p + 2)

    def read_u32(self) -> tuple[int, "ByteCursor"]:
        self._require(4)
        d, p = self.data, self.pos
        value = d[p] | (d[p + 1] << 8) | (d[p + 2] << 16) | (d[p + 3] << 24)
        return value, ByteCursor(d, p + 4)

    def read_i32(self) -> tuple[int, "ByteCursor"]:
        value, cursor = self.read_u32()
        if value & 0x80000000:
            value -= 1 << 32
        return value, cursor

    def read_bytes(self, count: int) -> tuple[bytes, "ByteCursor"]:
        self._require(count)
        end = self.pos + count
        return self.data[self.pos:end], ByteCursor(self.data, end)

    def skip(self, count: int) -> "ByteCursor":
        self._require(count)
        return ByteCursor(self.data, self.pos + count)

    def seek(self, position: int) -> "ByteCursor":
        if position < 0 or position > len(self.data):
            raise InvalidFormatError(f"Invalid seek position {position}")
        return ByteCursor(self.data, position)

    def peek_bytes(self, count: int) -> bytes | None:
        """Return the next ``count`` bytes without advancing, or None if short."""
        if count < 0 or self.pos + count > len(self.data):
            return None
        return self.data[self.pos:self.pos + count]
