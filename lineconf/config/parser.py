"""
Recursive descent builder for configuration documents.

Drives a ConfigReader and assembles its line stream into a tree of
blocks and directives. Selected sections can be skipped outright or
deferred: a deferred section is detached into its own bounded reader
and parsed only when Block.load() is called.
"""

from collections.abc import Iterable
from dataclasses import dataclass, field
from pathlib import Path

from ..const import DEFAULT_MAX_LINE_LENGTH
from ..logging import get_logger
from .lexer import ConfigLine, ConfigReaderError, LineType
from .reader import ConfigReader


logger = get_logger("config.parser")


class ParseError(Exception):
    """Exception raised for structural errors in the line stream."""

    def __init__(self, message: str, line: ConfigLine | None = None):
        self.config_line = line
        if line is not None and line.line:
            super().__init__(f"Line {line.line}: {message}")
        else:
            super().__init__(message)


@dataclass
class Directive:
    """
    A key = value assignment.

    Examples:
        port = 8080            -> Directive(name="port", value="8080")
        keep alive = yes       -> Directive(name="keep_alive", value="yes")
    """
    name: str
    value: str
    line: int = 0

    def __repr__(self) -> str:
        return f"Directive({self.name}, {self.value!r})"


@dataclass
class Block:
    """
    A configuration section with a type, optional name, and contents.

    Examples:
        listener *:8080 { ... }   -> Block(type="listener", name="*:8080", ...)
        cache default { ... }     -> Block(type="cache", name="default", ...)
        straitjacket { ... }      -> Block(type="straitjacket", name=None, ...)

    A deferred block has an open `reader` and empty contents until load().
    """
    type: str
    name: str | None = None
    directives: list[Directive] = field(default_factory=list)
    blocks: list["Block"] = field(default_factory=list)
    line: int = 0
    reader: ConfigReader | None = field(default=None, repr=False, compare=False)

    def __repr__(self) -> str:
        return f"Block({self.type}, {self.name!r}, directives={len(self.directives)}, blocks={len(self.blocks)})"

    @property
    def deferred(self) -> bool:
        return self.reader is not None

    def load(self, skip: Iterable[str] = (), defer: Iterable[str] = ()) -> "Block":
        """
        Parse the body of a deferred block and close its reader.

        Does nothing for blocks that were parsed in place.
        """
        if self.reader is None:
            return self

        reader, self.reader = self.reader, None
        with reader:
            parser = ConfigParser(reader, skip=skip, defer=defer)
            body = parser.parse_body(self.type)

        self.directives.extend(body.directives)
        self.blocks.extend(body.blocks)
        return self

    def close(self) -> None:
        """Close pending deferred readers in this block and below."""
        if self.reader is not None:
            self.reader.close()
            self.reader = None
        for block in self.blocks:
            block.close()

    def get_directive(self, name: str) -> Directive | None:
        """Get first directive with given name."""
        for d in self.directives:
            if d.name == name:
                return d
        return None

    def get_directives(self, name: str) -> list[Directive]:
        """Get all directives with given name."""
        return [d for d in self.directives if d.name == name]

    def get_value(self, name: str, default: str | None = None) -> str | None:
        """Get value of first directive with given name."""
        directive = self.get_directive(name)
        if directive:
            return directive.value
        return default

    def get_all_values(self, name: str) -> list[str]:
        """
        Get all values from all directives with given name.

        Useful for keys that can be repeated:
            alias = www.example.com
            alias = example.org
        Returns: ["www.example.com", "example.org"]
        """
        return [d.value for d in self.directives if d.name == name]

    def get_block(self, type_name: str) -> "Block | None":
        """Get first nested block with given type."""
        for b in self.blocks:
            if b.type == type_name:
                return b
        return None

    def get_blocks(self, type_name: str) -> list["Block"]:
        """Get all nested blocks with given type."""
        return [b for b in self.blocks if b.type == type_name]


@dataclass
class ConfigDocument:
    """
    Root document containing all top-level blocks and directives.
    """
    blocks: list[Block] = field(default_factory=list)
    directives: list[Directive] = field(default_factory=list)
    filename: str = "<file>"

    def get_block(self, type_name: str) -> Block | None:
        """Get first block with given type."""
        for b in self.blocks:
            if b.type == type_name:
                return b
        return None

    def get_blocks(self, type_name: str) -> list[Block]:
        """Get all blocks with given type."""
        return [b for b in self.blocks if b.type == type_name]

    def get_directive(self, name: str) -> Directive | None:
        """Get first directive with given name."""
        for d in self.directives:
            if d.name == name:
                return d
        return None

    def get_value(self, name: str, default: str | None = None) -> str | None:
        """Get value of first directive with given name."""
        directive = self.get_directive(name)
        if directive:
            return directive.value
        return default

    def close(self) -> None:
        """Close every deferred reader that was never loaded."""
        for block in self.blocks:
            block.close()


class ConfigParser:
    """
    Builds a ConfigDocument from a reader.

    Grammar (one logical line per element):
        document  := (section | assignment)*
        section   := SECTION (section | assignment)* SECTION_END
    """

    def __init__(
        self,
        reader: ConfigReader,
        skip: Iterable[str] = (),
        defer: Iterable[str] = (),
    ):
        self.reader = reader
        self.skip = set(skip)
        self.defer = set(defer)

    def parse(self) -> ConfigDocument:
        """Parse the entire reader into a document."""
        doc = ConfigDocument(filename=self.reader.path)

        try:
            while True:
                line = self.reader.read_line()
                if line is None:
                    break

                if line.type == LineType.SECTION_END:
                    raise ParseError("Unexpected '}' at top level", line)

                self._handle_line(line, doc.directives, doc.blocks)
        except (ConfigReaderError, ParseError):
            doc.close()
            raise

        return doc

    def parse_body(self, type_name: str) -> Block:
        """Parse lines up to end of input into an anonymous block of `type_name`."""
        block = Block(type=type_name)

        try:
            while True:
                line = self.reader.read_line()
                if line is None:
                    break

                if line.type == LineType.SECTION_END:
                    raise ParseError(f"Unexpected '}}' in '{type_name}' block", line)

                self._handle_line(line, block.directives, block.blocks)
        except (ConfigReaderError, ParseError):
            block.close()
            raise

        return block

    def _handle_line(
        self,
        line: ConfigLine,
        directives: list[Directive],
        blocks: list[Block],
    ) -> None:
        if line.type == LineType.LINE:
            directives.append(Directive(name=line.key, value=line.value, line=line.line))
            return

        if line.name in self.skip:
            logger.debug(f"Skipping '{line.name}' section at line {line.line}")
            if not self.reader.skip_section(line):
                raise ParseError(f"Expected '}}' to close '{line.name}' block", line)
            return

        block = Block(type=line.name, name=line.param or None, line=line.line)
        blocks.append(block)

        if line.name in self.defer:
            logger.debug(f"Deferring '{line.name}' section at line {line.line}")
            block.reader = self.reader.detach_section(line)
            return

        self._parse_block_body(block, line)

    def _parse_block_body(self, block: Block, opening: ConfigLine) -> None:
        """Parse the body of a block (after the opening line)."""
        while True:
            line = self.reader.read_line()
            if line is None:
                raise ParseError(f"Expected '}}' to close '{block.type}' block", opening)

            if line.type == LineType.SECTION_END:
                return

            self._handle_line(line, block.directives, block.blocks)


def parse_config_file(
    path: str | Path,
    skip: Iterable[str] = (),
    defer: Iterable[str] = (),
    max_line_length: int = DEFAULT_MAX_LINE_LENGTH,
) -> ConfigDocument:
    """
    Parse a configuration file.

    Args:
        path: Path to the configuration file
        skip: Section names to discard
        defer: Section names to detach for later Block.load()
        max_line_length: Longest accepted physical line in bytes

    Returns:
        Parsed ConfigDocument. Close it if deferred blocks are left unloaded.
    """
    with ConfigReader(path, max_line_length) as reader:
        return ConfigParser(reader, skip=skip, defer=defer).parse()
