"""
Streaming reader for sectioned configuration files.

The reader hands out one ConfigLine at a time. On a section opening the
caller decides what to do with the body:
- keep calling read_line() to walk into it,
- skip_section() to discard it,
- isolate_section() / detach_section() to get an independent reader
  bounded to the section body, which can be parsed later or elsewhere.

Usage:
    with ConfigReader("/etc/app.conf") as reader:
        for line in reader:
            if line.type == LineType.SECTION and line.name == "module":
                module_reader = reader.detach_section(line)
                ...
"""

from pathlib import Path
from typing import BinaryIO, Iterator

from ..const import DEFAULT_MAX_LINE_LENGTH, MAX_RECURSION_DEPTH, MULTILINE_SENTINEL, WHITESPACE
from ..logging import get_logger
from .lexer import (
    ConfigLine,
    ConfigReaderError,
    ErrorKind,
    LineType,
    classify_line,
    is_multiline_sentinel,
    normalize_line,
)


logger = get_logger("config.reader")


class ConfigReader:
    """
    Line reader over one file handle.

    The first error is latched: once a read fails, every further
    read_line(), skip_section() or isolate_section() call raises the
    same exception instance again.

    An isolated reader stops delivering lines once its cursor reaches
    the end offset of its isolation range, even if the file goes on.
    """

    def __init__(self, path: str | Path, max_line_length: int = DEFAULT_MAX_LINE_LENGTH):
        """
        Open a reader on a file.

        Args:
            path: Path to the configuration file
            max_line_length: Longest accepted physical line in bytes,
                excluding the line terminator

        Raises:
            ConfigReaderError: If the file cannot be opened
        """
        self.path = str(path)
        self.max_line_length = max_line_length

        # Physical lines consumed so far, for diagnostics only
        self.line = 0

        # First error seen by this reader
        self.error: ConfigReaderError | None = None

        self._isolation: tuple[int, int] | None = None
        self._multiline: list[str] = []
        self._file: BinaryIO | None = None

        try:
            self._file = open(self.path, "rb")
        except OSError as e:
            raise ConfigReaderError(
                f"Could not open {self.path}: {e.strerror}", ErrorKind.IO_FAILURE
            ) from e

        logger.debug(f"Opened {self.path}")

    def __repr__(self) -> str:
        return f"ConfigReader({self.path!r}, line={self.line}, isolation={self._isolation})"

    def __enter__(self) -> "ConfigReader":
        return self

    def __exit__(self, exc_type, exc_value, traceback) -> None:
        self.close()

    def __iter__(self) -> Iterator[ConfigLine]:
        """Allow iteration over logical lines."""
        return self.lines()

    @property
    def closed(self) -> bool:
        return self._file is None

    @property
    def isolation(self) -> tuple[int, int] | None:
        """Byte range (begin, end) this reader is bounded to, or None."""
        return self._isolation

    @property
    def position(self) -> int:
        """Current byte offset in the file."""
        self._ensure_open()
        try:
            return self._file.tell()
        except OSError as e:
            raise self._latch(
                ConfigReaderError("Could not obtain file position", ErrorKind.IO_FAILURE, self.line)
            ) from e

    def close(self) -> None:
        """Release the file handle and the multiline buffer. Safe to call twice."""
        if self._file is None:
            return

        self._file.close()
        self._file = None
        self._multiline.clear()
        logger.debug(f"Closed {self.path}")

    def _ensure_open(self) -> None:
        if self._file is None:
            raise ValueError(f"I/O operation on closed reader for {self.path}")

    def _check_error(self) -> None:
        """Raise the latched error, if any."""
        self._ensure_open()
        if self.error is not None:
            raise self.error

    def _latch(self, error: ConfigReaderError) -> ConfigReaderError:
        """Record the first error and return the one to raise."""
        if self.error is None:
            self.error = error
            logger.debug(f"{self.path}: {error}")
        return self.error

    def _seek(self, offset: int) -> None:
        try:
            self._file.seek(offset)
        except OSError as e:
            raise self._latch(
                ConfigReaderError("Could not set file position", ErrorKind.IO_FAILURE, self.line)
            ) from e

    def _read_physical_line(self) -> str | None:
        """
        Read one physical line, or None at end of input.

        End of input is either the end of the file or the end of the
        isolation range. Lines over max_line_length fail instead of
        being split.
        """
        try:
            raw = self._file.readline(self.max_line_length + 2)
        except OSError as e:
            raise self._latch(
                ConfigReaderError("Could not read from file", ErrorKind.IO_FAILURE, self.line + 1)
            ) from e

        if not raw:
            return None

        if self._isolation is not None and self.position >= self._isolation[1]:
            return None

        if raw.endswith(b"\r\n"):
            content = raw[:-2]
        elif raw.endswith(b"\n"):
            content = raw[:-1]
        else:
            content = raw

        if len(content) > self.max_line_length:
            raise self._latch(
                ConfigReaderError(
                    f"Line longer than {self.max_line_length} bytes",
                    ErrorKind.LINE_TOO_LONG,
                    self.line + 1,
                )
            )

        try:
            text = raw.decode("utf-8")
        except UnicodeDecodeError as e:
            raise self._latch(
                ConfigReaderError("Invalid UTF-8 sequence", ErrorKind.IO_FAILURE, self.line + 1)
            ) from e

        self.line += 1
        return text

    def _read_multiline(self) -> str:
        """Collect raw lines up to the closing sentinel."""
        self._multiline.clear()

        while True:
            raw = self._read_physical_line()
            if raw is None:
                break

            if raw.strip(WHITESPACE) == MULTILINE_SENTINEL:
                return "".join(self._multiline)

            self._multiline.append(raw.rstrip(WHITESPACE))
            self._multiline.append("\n")

        raise self._latch(
            ConfigReaderError(
                "EOF while scanning for end of multiline string",
                ErrorKind.UNTERMINATED_MULTILINE,
                self.line,
            )
        )

    def read_line(self) -> ConfigLine | None:
        """
        Read the next logical line.

        Returns:
            The next ConfigLine, or None at end of input

        Raises:
            ConfigReaderError: On malformed input or I/O failure
        """
        self._check_error()

        while True:
            raw = self._read_physical_line()
            if raw is None:
                return None

            text = normalize_line(raw)
            if text:
                break

        try:
            config_line = classify_line(text, self.line)
        except ConfigReaderError as e:
            raise self._latch(e)

        if config_line.type == LineType.LINE and is_multiline_sentinel(config_line.value):
            config_line.value = self._read_multiline()

        return config_line

    def lines(self) -> Iterator[ConfigLine]:
        """Generate logical lines until end of input."""
        while True:
            config_line = self.read_line()
            if config_line is None:
                break
            yield config_line

    def _find_section_end(self, depth: int) -> bool:
        if depth > MAX_RECURSION_DEPTH:
            raise self._latch(
                ConfigReaderError(
                    "Recursion level too deep", ErrorKind.RECURSION_TOO_DEEP, self.line
                )
            )

        while True:
            config_line = self.read_line()
            if config_line is None:
                return False

            if config_line.type == LineType.SECTION:
                if not self._find_section_end(depth + 1):
                    return False
            elif config_line.type == LineType.SECTION_END:
                return True

    def skip_section(self, line: ConfigLine) -> bool:
        """
        Discard lines up to and including the close matching `line`.

        Args:
            line: Section opening just returned by read_line()

        Returns:
            True if the matching close was consumed, False if input
            ended first

        Raises:
            ConfigReaderError: On malformed input or nesting deeper than
                MAX_RECURSION_DEPTH
        """
        self._check_error()
        if line.type != LineType.SECTION:
            raise ValueError(f"Not a section opening: {line!r}")

        return self._find_section_end(0)

    def _open_at(self, start: int, end: int | None) -> "ConfigReader":
        """Open a fresh reader on the same file, positioned at `start`."""
        reader = ConfigReader(self.path, self.max_line_length)
        try:
            reader._seek(start)
        except ConfigReaderError:
            reader.close()
            raise

        reader.line = self.line
        if end is not None:
            reader._isolation = (start, end)
        return reader

    def _scan_section_end(self, line: ConfigLine, start: int) -> int | None:
        """Offset just past the close matching `line`, or None if there is none."""
        bound = self._isolation[1] if self._isolation is not None else None

        with self._open_at(start, bound) as scanner:
            if not scanner.skip_section(line):
                return None
            return scanner.position

    def _isolation_error(self, line: ConfigLine) -> ConfigReaderError:
        return ConfigReaderError(
            "Unknown error while isolating section", ErrorKind.ISOLATION_FAILURE, line.line
        )

    def isolate_section(self, line: ConfigLine) -> "ConfigReader":
        """
        Open a reader bounded to the body of the section `line` opens.

        This reader is left where it was, right after the opening line.
        The new reader has its own file handle, error latch and
        multiline buffer; only the path is shared. The caller owns it
        and must close it.

        Args:
            line: Section opening just returned by read_line()

        Returns:
            A reader that yields the section body and then reports end
            of input

        Raises:
            ConfigReaderError: ISOLATION_FAILURE if the section end cannot
                be found or the file cannot be reopened. This reader is
                not affected by the failure.
        """
        self._check_error()
        if line.type != LineType.SECTION:
            raise ValueError(f"Not a section opening: {line!r}")

        start = self.position

        try:
            end = self._scan_section_end(line, start)
        except ConfigReaderError as e:
            raise self._isolation_error(line) from e

        if end is None:
            raise self._isolation_error(line)

        try:
            isolated = self._open_at(start, end)
        except ConfigReaderError as e:
            raise self._isolation_error(line) from e

        logger.debug(
            f"Isolated section '{line.name} {line.param}' of {self.path} at bytes {start}-{end}"
        )
        return isolated

    def detach_section(self, line: ConfigLine) -> "ConfigReader":
        """
        Isolate the section `line` opens, then skip it here.

        After this call the next read_line() on this reader returns the
        line following the matching close.
        """
        isolated = self.isolate_section(line)

        try:
            if not self.skip_section(line):
                raise self._isolation_error(line)
        except ConfigReaderError:
            isolated.close()
            raise

        return isolated
