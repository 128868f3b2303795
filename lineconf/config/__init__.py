"""
Reader and parser for the sectioned key = value configuration format.
"""

from .lexer import ConfigLine, ConfigReaderError, ErrorKind, LineType
from .loader import ConfigError, ConfigLoader
from .parser import Block, ConfigDocument, ConfigParser, Directive, ParseError
from .reader import ConfigReader
from .values import parse_bool, parse_int, parse_long, parse_time_period

__all__ = [
    "ConfigLine",
    "ConfigReaderError",
    "ErrorKind",
    "LineType",
    "ConfigReader",
    "ConfigParser",
    "ConfigDocument",
    "Block",
    "Directive",
    "ParseError",
    "ConfigLoader",
    "ConfigError",
    "parse_bool",
    "parse_int",
    "parse_long",
    "parse_time_period",
]
