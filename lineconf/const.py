"""
Application constants and metadata.
"""

# Application info
APP_NAME = "lineconf"
APP_VERSION = "0.1.0"

# Format markers
COMMENT_CHAR = "#"
SECTION_OPEN = "{"
SECTION_CLOSE = "}"
ASSIGNMENT = "="
MULTILINE_SENTINEL = "'''"

# Characters trimmed around lines, keys and values (C isspace set)
WHITESPACE = " \t\n\r\v\f"

# Reader limits
DEFAULT_MAX_LINE_LENGTH = 1024
MAX_RECURSION_DEPTH = 10

# Time periods in seconds
ONE_MINUTE = 60
ONE_HOUR = ONE_MINUTE * 60
ONE_DAY = ONE_HOUR * 24
ONE_WEEK = ONE_DAY * 7
ONE_MONTH = ONE_DAY * 31
ONE_YEAR = ONE_MONTH * 12
