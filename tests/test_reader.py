import pytest

from curconvert.errors import InvalidFormatError
from curconvert.reader import ByteCursor


def test_little_endian_reads():
    cursor = ByteCursor(bytes([0x01, 0x34, 0x12, 0x78, 0x56, 0x34, 0x12, 0xFE, 0xFF, 0xFF, 0xFF]))
    u8, cursor = cursor.read_u8()
    u16, cursor = cursor.read_u16()
    u32, cursor = cursor.read_u32()
    i32, cursor = cursor.read_i32()

    assert (u8, u16, u32, i32) == (0x01, 0x1234, 0x12345678, -2)
    assert cursor.at_end


def test_reads_leave_the_starting_cursor_in_place():
    start = ByteCursor(b"\x01\x02\x03")
    _value, advanced = start.read_u16()

    assert start.pos == 0
    assert advanced.pos == 2
    assert start.read_u8()[0] == 1


def test_read_past_end_fails():
    cursor = ByteCursor(b"\x01\x02\x03")
    with pytest.raises(InvalidFormatError):
        cursor.read_u32()
    with pytest.raises(InvalidFormatError):
        cursor.skip(4)
    with pytest.raises(InvalidFormatError):
        cursor.read_bytes(10)


def test_seek_bounds():
    cursor = ByteCursor(b"abcd")
    assert cursor.seek(4).remaining == 0
    assert cursor.seek(1).read_bytes(2)[0] == b"bc"
    with pytest.raises(InvalidFormatError):
        cursor.seek(5)
    with pytest.raises(InvalidFormatError):
        cursor.seek(-1)


def test_peek_bytes():
    cursor = ByteCursor(b"abcd").skip(1)
    assert cursor.peek_bytes(2) == b"bc"
    assert cursor.pos == 1
    assert cursor.peek_bytes(4) is None
