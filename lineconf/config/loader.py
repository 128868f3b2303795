"""
Configuration loader with file reading and validation.
"""

from collections.abc import Iterable
from pathlib import Path

from ..const import DEFAULT_MAX_LINE_LENGTH
from ..logging import get_logger
from .lexer import ConfigReaderError
from .parser import Block, ConfigDocument, Directive, ParseError, parse_config_file


logger = get_logger("config.loader")


class ConfigError(Exception):
    """Exception raised for configuration errors."""

    pass


class ConfigLoader:
    """
    Loads and validates configuration documents from files.

    Usage:
        loader = ConfigLoader(defer={"module"})
        document = loader.load_file("/etc/app.conf")
        warnings = loader.validate(document)
    """

    def __init__(
        self,
        skip: Iterable[str] = (),
        defer: Iterable[str] = (),
        max_line_length: int = DEFAULT_MAX_LINE_LENGTH,
    ):
        self.skip = set(skip)
        self.defer = set(defer)
        self.max_line_length = max_line_length
        self.last_document: ConfigDocument | None = None

    def load_file(self, path: str | Path) -> ConfigDocument:
        """
        Load configuration from a file.

        Args:
            path: Path to the configuration file

        Returns:
            Parsed ConfigDocument

        Raises:
            ConfigError: If file cannot be read or parsed
        """
        path = Path(path)

        if not path.exists():
            raise ConfigError(f"Configuration file not found: {path}")

        if not path.is_file():
            raise ConfigError(f"Not a file: {path}")

        try:
            document = parse_config_file(
                path,
                skip=self.skip,
                defer=self.defer,
                max_line_length=self.max_line_length,
            )
        except (ConfigReaderError, ParseError) as e:
            raise ConfigError(f"Failed to parse configuration: {e}") from e

        logger.info(
            f"Loaded {path}: {len(document.blocks)} sections, "
            f"{len(document.directives)} top-level keys"
        )
        self.last_document = document
        return document

    def validate(self, document: ConfigDocument) -> list[str]:
        """
        Check a document for suspicious content.

        Deferred blocks that were never loaded are not inspected.

        Args:
            document: Document to validate

        Returns:
            List of warning messages (empty if no issues)
        """
        warnings = self._check_directives(document.directives, "top level")

        def check_block(block: Block, parent_path: str = "") -> None:
            block_path = f"{parent_path}{block.type}"

            warnings.extend(self._check_directives(block.directives, f"{block_path} block"))
            warnings.extend(self._check_blocks(block.blocks, f"{block_path} block"))

            for nested in block.blocks:
                check_block(nested, f"{block_path}.")

        warnings.extend(self._check_blocks(document.blocks, "top level"))
        for block in document.blocks:
            check_block(block)

        return warnings

    @staticmethod
    def _check_directives(directives: list[Directive], where: str) -> list[str]:
        """Report keys assigned more than once in the same scope."""
        warnings = []
        seen: dict[str, Directive] = {}

        for directive in directives:
            first = seen.setdefault(directive.name, directive)
            if first is not directive:
                warnings.append(
                    f"Duplicate key '{directive.name}' in {where} "
                    f"(lines {first.line} and {directive.line})"
                )

        return warnings

    @staticmethod
    def _check_blocks(blocks: list[Block], where: str) -> list[str]:
        """Report sections with the same name and parameter in the same scope."""
        warnings = []
        seen: dict[tuple[str, str | None], Block] = {}

        for block in blocks:
            first = seen.setdefault((block.type, block.name), block)
            if first is not block:
                label = f"{block.type} {block.name}" if block.name else block.type
                warnings.append(
                    f"Duplicate section '{label}' in {where} "
                    f"(lines {first.line} and {block.line})"
                )

        return warnings


def load_config(path: str | Path) -> ConfigDocument:
    """
    Convenience function to load configuration from a file.

    Args:
        path: Path to the configuration file

    Returns:
        Parsed ConfigDocument
    """
    loader = ConfigLoader()
    return loader.load_file(path)
