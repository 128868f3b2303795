"""
Line normalizer and classifier for the sectioned configuration format.

Example config:
    listener *:8080 {
        # comments run to the end of the line
        keep alive timeout = 15s
        banner = '''
    Welcome!
        '''
    }

Each non-blank line is exactly one of:
- a section opening:  <name> <param> {
- a section closing:  }
- an assignment:      <key> = <value>
"""

from dataclasses import dataclass
from enum import Enum, auto

from ..const import (
    ASSIGNMENT,
    COMMENT_CHAR,
    MULTILINE_SENTINEL,
    SECTION_CLOSE,
    SECTION_OPEN,
    WHITESPACE,
)


class LineType(Enum):
    """Kinds of logical lines."""

    LINE = auto()           # key = value
    SECTION = auto()        # name param {
    SECTION_END = auto()    # }


class ErrorKind(Enum):
    """Error kinds reported by the reader."""

    MALFORMED_SECTION = auto()
    MALFORMED_ASSIGNMENT = auto()
    MISSING_SEPARATOR = auto()
    UNTERMINATED_MULTILINE = auto()
    RECURSION_TOO_DEEP = auto()
    ISOLATION_FAILURE = auto()
    IO_FAILURE = auto()
    LINE_TOO_LONG = auto()


class ConfigReaderError(Exception):
    """Exception raised for malformed input and reader failures."""

    def __init__(self, message: str, kind: ErrorKind, line: int | None = None):
        self.message = message
        self.kind = kind
        self.line = line
        if line:
            super().__init__(f"Line {line}: {message}")
        else:
            super().__init__(message)


@dataclass
class ConfigLine:
    """
    A single logical line.

    Examples:
        port = 8080          -> ConfigLine(LINE, key="port", value="8080")
        max body size = 1M   -> ConfigLine(LINE, key="max_body_size", value="1M")
        site example.com {   -> ConfigLine(SECTION, name="site", param="example.com")
        }                    -> ConfigLine(SECTION_END)
    """

    type: LineType
    key: str = ""
    value: str = ""
    name: str = ""
    param: str = ""
    line: int = 0

    def __repr__(self) -> str:
        if self.type == LineType.LINE:
            return f"ConfigLine({self.key}={self.value!r}, line {self.line})"
        if self.type == LineType.SECTION:
            return f"ConfigLine({self.name} {self.param!r} {{, line {self.line})"
        return f"ConfigLine(}}, line {self.line})"


def strip_comment(text: str) -> str:
    """Remove everything from the first '#' onward. There is no escaping."""
    index = text.find(COMMENT_CHAR)
    if index < 0:
        return text
    return text[:index]


def normalize_line(raw: str) -> str:
    """Strip comment and surrounding whitespace from a physical line."""
    return strip_comment(raw).strip(WHITESPACE)


def is_multiline_sentinel(value: str) -> bool:
    return value.strip(WHITESPACE) == MULTILINE_SENTINEL


def _parse_section(text: str, line: int) -> ConfigLine:
    # text is known to end with '{'
    space = text.find(" ")
    if space < 0:
        raise ConfigReaderError("Malformed section opening", ErrorKind.MALFORMED_SECTION, line)

    return ConfigLine(
        type=LineType.SECTION,
        name=text[:space].strip(WHITESPACE),
        param=text[space + 1:-1].strip(WHITESPACE),
        line=line,
    )


def _parse_assignment(text: str, line: int) -> ConfigLine:
    key, sep, value = text.partition(ASSIGNMENT)
    if not sep:
        raise ConfigReaderError(
            "Expecting section or key=value", ErrorKind.MISSING_SEPARATOR, line
        )

    key = key.strip(WHITESPACE).replace(" ", "_")
    if not key:
        raise ConfigReaderError("Malformed key=value line", ErrorKind.MALFORMED_ASSIGNMENT, line)

    return ConfigLine(type=LineType.LINE, key=key, value=value.strip(WHITESPACE), line=line)


def classify_line(text: str, line: int = 0) -> ConfigLine:
    """
    Classify a normalized, non-empty line.

    A trailing '{' takes precedence over '=', so "a = b {" opens a section.
    Multiline values are left as the sentinel; the reader replaces them.

    Raises:
        ConfigReaderError: If the line is neither a section nor an assignment
    """
    if text.endswith(SECTION_OPEN):
        return _parse_section(text, line)

    if text == SECTION_CLOSE:
        return ConfigLine(type=LineType.SECTION_END, line=line)

    return _parse_assignment(text, line)
