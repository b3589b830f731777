"""Error kinds raised by the cursor decoders"""


class CursorParseError(Exception):
    """Base class for all cursor decoding failures."""

    prefix = "Cursor error"

    def __init__(self, reason: str = ""):
        self.reason = reason
        super().__init__(f"{self.prefix}: {reason}" if reason else self.prefix)


class CursorFileNotFoundError(CursorParseError):
    prefix = "Cursor file not found"


class InvalidFormatError(CursorParseError):
    """Malformed structural fields, truncated buffers or bad signatures."""

    prefix = "Invalid cursor format"


class UnsupportedFormatError(CursorParseError):
    """Recognized container holding a variant we do not handle."""

    prefix = "Unsupported format"


class DecodingFailedError(CursorParseError):
    prefix = "Failed to decode cursor"
