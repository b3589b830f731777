"""Windows INF cursor scheme parsing module"""

import os
import re
from enum import Enum

from .constants import POSITION_ROLES, WIN_CURSOR_ORDER
from .models import INFMapping

SCHEMES_KEY = "control panel\\cursors\\schemes"
VARIABLE_PATTERN = re.compile(r"%(\w+)%")
DOUBLE_BYTE_PATTERN = re.compile(rb"[\x81-\xfe][\x80-\xfe]")


class INFError(Enum):
    """Reasons an install.inf could not be turned into a cursor mapping."""

    FILE_NOT_FOUND = "file_not_found"
    ENCODING_ERROR = "encoding_error"
    NO_SCHEME_REG_SECTION = "no_scheme_reg_section"
    NO_CURSOR_PATHS = "no_cursor_paths"
    NO_VALID_CURSORS = "no_valid_cursors"


def _find_unquoted(line: str, marker: str) -> int:
    """Index of the first ``marker`` outside double quotes, or -1."""
    in_quotes = False
    for i, char in enumerate(line):
        if char == '"':
            in_quotes = not in_quotes
        elif not in_quotes and line.startswith(marker, i):
            return i
    return -1


def _has_double_byte_pairs(data: bytes) -> bool:
    """True when a high byte is directly followed by another, as in GB2312 text."""
    return DOUBLE_BYTE_PATTERN.search(data) is not None


def decode_inf(data: bytes, encoding: str | None = None) -> str | None:
    """
    Decode INF bytes, trying the encodings cursor packs are shipped in

    Without BOM the order is UTF-8, then GBK or CP1252. GBK goes first only
    when the data has adjacent high bytes; isolated accented letters
    (CP1252 "Fl\xe8che.cur") would otherwise decode as Chinese. Western text
    with adjacent accents can still be misread; callers can pass ``encoding``.
    """
    if encoding:
        encodings = [encoding]
    elif data[:2] in (b"\xff\xfe", b"\xfe\xff"):
        encodings = ["utf-16"]
    elif _has_double_byte_pairs(data):
        encodings = ["utf-8-sig", "gbk", "cp1252"]
    else:
        encodings = ["utf-8-sig", "cp1252", "gbk"]

    for candidate in encodings:
        try:
            return data.decode(candidate)
        except LookupError:
            return None
        except (UnicodeDecodeError, UnicodeError):
            continue
    return None


class INFParser:
    """Parse a Windows cursor theme install.inf"""

    def __init__(self, content: str):
        self.content = content
        self.scheme_name = None
        self.cursor_dir = None
        self.cursor_files = {}

    def parse(self) -> INFMapping | INFError:
        """
        Build the position -> filename mapping

        Returns:
            INFMapping, or the INFError describing why there is none
        """
        strings_section = self._extract_section("strings")
        string_vars = self._parse_strings(strings_section) if strings_section else {}

        sections = self._get_addreg_sections()
        if "scheme.reg" not in sections:
            sections.append("scheme.reg")
        section_bodies = [body for body in map(self._extract_section, sections) if body is not None]
        if not section_bodies:
            return INFError.NO_SCHEME_REG_SECTION

        scheme_value, cursor_list = self._extract_scheme_reg(section_bodies)
        if not cursor_list:
            return INFError.NO_CURSOR_PATHS

        if scheme_value:
            self.scheme_name = self._resolve(scheme_value, string_vars)
        if not self.scheme_name:
            self.scheme_name = string_vars.get("scheme_name")
        self.cursor_dir = string_vars.get("cur_dir")

        self._parse_cursor_mapping(cursor_list, string_vars)
        if not self.cursor_files:
            return INFError.NO_VALID_CURSORS

        return INFMapping(
            position_to_filename=self.cursor_files,
            scheme_name=self.scheme_name,
            cursor_dir=self.cursor_dir,
        )

    def _extract_section(self, section_name: str):
        """Return the body of ``[section_name]`` (case insensitive), or None."""
        pattern = rf"^[ \t]*\[{re.escape(section_name)}\][ \t]*\r?$(.*?)(?=^[ \t]*\[|\Z)"
        match = re.search(pattern, self.content, re.DOTALL | re.IGNORECASE | re.MULTILINE)
        return match.group(1).strip() if match else None

    def _get_addreg_sections(self) -> list[str]:
        """Section names listed by ``AddReg`` in [DefaultInstall].

        For example AddReg = Scheme.Reg,Wreg returns ['scheme.reg', 'wreg'].
        """
        default_install = self._extract_section("defaultinstall")
        if not default_install:
            return []

        for line in default_install.splitlines():
            line = line.strip()
            if not line or line.startswith(";"):
                continue
            m = re.match(r"addreg\s*=\s*(.+)", line, re.IGNORECASE)
            if m:
                return [s.strip().lower() for s in m.group(1).split(",") if s.strip()]
        return []

    def _extract_scheme_reg(self, sections: list[str]):
        """Find the ``Control Panel\\Cursors\\Schemes`` registry line.

        Returns: (scheme_name_or_var, cursor_list)
        """
        for section in sections:
            for line in section.splitlines():
                line = line.strip()
                if not line or line.startswith(";"):
                    continue
                if SCHEMES_KEY not in line.replace('"', "").lower():
                    continue

                marker = _find_unquoted(line, ",,")
                if marker >= 0:
                    head, tail = line[:marker], line[marker + 2:]
                    quoted = re.search(r'"([^"]*)"', tail)
                    cursor_list = quoted.group(1) if quoted else tail.strip()
                else:
                    # HKCU,"...\Schemes","%NAME%",0x00020000,"paths"
                    parts = re.findall(r'"([^"]*)"', line)
                    head = line
                    cursor_list = parts[-1] if len(parts) >= 3 else ""

                names = re.findall(r'"([^"]*)"', head)
                scheme_value = names[1] if len(names) >= 2 else None
                return scheme_value, cursor_list.strip()

        return None, None

    def _parse_strings(self, strings_content: str):
        """Parse ``key = value`` definitions of the [Strings] section."""
        result = {}
        for line in strings_content.splitlines():
            line = line.strip()
            if not line or line.startswith(";") or "=" not in line:
                continue
            key, value = line.split("=", 1)
            key, value = key.strip(), value.strip()
            if value.startswith('"'):
                end = value.find('"', 1)
                value = value[1:end] if end > 0 else value[1:]
            else:
                value = value.split(";", 1)[0].strip()
            if key:
                result[key.lower()] = value.strip()
        return result

    def _resolve(self, token: str, string_vars) -> str | None:
        """Substitute %variables%; None when one of them is undefined."""
        missing = []

        def substitute(match):
            name = match.group(1).lower()
            if name not in string_vars:
                missing.append(name)
                return ""
            return string_vars[name]

        value = VARIABLE_PATTERN.sub(substitute, token).strip()
        return None if missing else value

    def _parse_cursor_mapping(self, cursor_list: str, string_vars):
        for position, part in enumerate(cursor_list.split(",")):
            if position >= len(WIN_CURSOR_ORDER):
                break

            part = part.strip().strip('"')
            if not part:
                continue

            # Keep the last path component only
            last_segment = part.split("\\")[-1].strip()
            if not last_segment:
                continue

            filename = self._resolve(last_segment, string_vars)
            if not filename:
                continue
            filename = re.split(r"[\\/]", filename)[-1].strip()
            if filename:
                self.cursor_files[position] = filename


def try_parse_inf(data: bytes, encoding: str | None = None) -> INFMapping | INFError:
    content = decode_inf(data, encoding)
    if content is None:
        return INFError.ENCODING_ERROR
    return INFParser(content).parse()


def parse_inf_file(inf_path: str, encoding: str | None = None) -> INFMapping | INFError:
    if not os.path.isfile(inf_path):
        return INFError.FILE_NOT_FOUND
    with open(inf_path, "rb") as f:
        return try_parse_inf(f.read(), encoding)


def roles_for_position(position: int) -> tuple:
    """Target roles for a scheme position; empty for positions without one."""
    if 0 <= position < len(POSITION_ROLES):
        return POSITION_ROLES[position]
    return ()
