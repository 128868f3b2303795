"""
Entry point for lineconf.

Usage:
    python -m lineconf /path/to/app.conf
    python -m lineconf --lines /path/to/app.conf
    python -m lineconf --help
"""

import argparse
import sys
from pathlib import Path

from . import __version__
from .config.lexer import ConfigReaderError, LineType
from .config.loader import ConfigError, ConfigLoader
from .config.parser import Block, ConfigDocument, ParseError
from .config.reader import ConfigReader
from .const import DEFAULT_MAX_LINE_LENGTH
from .logging import LogConfig, get_logger, setup_logging


logger = get_logger("main")


def dump_lines(config_path: str, max_line_length: int) -> int:
    """Print the logical line stream of a file."""
    try:
        with ConfigReader(config_path, max_line_length) as reader:
            depth = 0
            for line in reader:
                if line.type == LineType.SECTION_END:
                    depth = max(depth - 1, 0)

                indent = "  " * depth
                if line.type == LineType.SECTION:
                    print(f"{line.line:5}: {indent}[section] {line.name} {line.param!r}")
                    depth += 1
                elif line.type == LineType.SECTION_END:
                    print(f"{line.line:5}: {indent}[end]")
                else:
                    print(f"{line.line:5}: {indent}{line.key} = {line.value!r}")
        return 0

    except ConfigReaderError as e:
        print(f"Configuration error: {e}", file=sys.stderr)
        return 1


def print_block(block: Block, depth: int = 0) -> None:
    indent = "  " * depth
    label = f"{block.type} {block.name}" if block.name else block.type
    print(f"{indent}{label} {{")

    for directive in block.directives:
        print(f"{indent}  {directive.name} = {directive.value!r}")
    for nested in block.blocks:
        print_block(nested, depth + 1)

    print(f"{indent}}}")


def print_document(document: ConfigDocument) -> None:
    for directive in document.directives:
        print(f"{directive.name} = {directive.value!r}")
    for block in document.blocks:
        print_block(block)


def load_deferred(blocks: list[Block]) -> None:
    """Parse deferred blocks in place, depth first."""
    for block in blocks:
        block.load()
        load_deferred(block.blocks)


def load_and_print(loader: ConfigLoader, config_path: str, validate: bool) -> int:
    """Load a configuration file and print it as a tree, or validate it."""
    try:
        document = loader.load_file(config_path)

        try:
            load_deferred(document.blocks)
        finally:
            document.close()

        if not validate:
            print_document(document)
            return 0

        warnings = loader.validate(document)

        if warnings:
            print(f"Configuration warnings ({len(warnings)}):")
            for warning in warnings:
                print(f"  - {warning}")

        print(f"\nConfiguration summary:")
        print(f"  Top-level keys: {len(document.directives)}")
        print(f"  Sections: {len(document.blocks)}")

        print("\nConfiguration is valid!")
        return 0

    except (ConfigError, ConfigReaderError, ParseError) as e:
        print(f"Configuration error: {e}", file=sys.stderr)
        return 1


def main() -> int:
    """Main entry point."""
    parser = argparse.ArgumentParser(
        prog="lineconf",
        description="Read and check sectioned key = value configuration files",
    )

    parser.add_argument(
        "config",
        help="Path to configuration file",
    )

    parser.add_argument(
        "--lines",
        action="store_true",
        help="Print the logical line stream instead of the section tree",
    )

    parser.add_argument(
        "--skip",
        action="append",
        default=[],
        metavar="SECTION",
        help="Discard sections with this name (repeatable)",
    )

    parser.add_argument(
        "--defer",
        action="append",
        default=[],
        metavar="SECTION",
        help="Parse sections with this name through an isolated reader (repeatable)",
    )

    parser.add_argument(
        "--max-line-length",
        type=int,
        default=DEFAULT_MAX_LINE_LENGTH,
        metavar="BYTES",
        help=f"Longest accepted line (default: {DEFAULT_MAX_LINE_LENGTH})",
    )

    parser.add_argument(
        "--validate",
        action="store_true",
        help="Validate configuration and exit",
    )

    parser.add_argument(
        "-v", "--verbose",
        action="store_true",
        help="Enable verbose logging (INFO level)",
    )

    parser.add_argument(
        "-d", "--debug",
        action="store_true",
        help="Enable debug logging (DEBUG level)",
    )

    parser.add_argument(
        "-q", "--quiet",
        action="store_true",
        help="Quiet mode (only errors)",
    )

    parser.add_argument(
        "--log-file",
        metavar="PATH",
        help="Write logs to file",
    )

    parser.add_argument(
        "--log-file-level",
        metavar="LEVEL",
        default="debug",
        choices=["debug", "info", "warning", "error"],
        help="Minimum level written to the log file (default: debug)",
    )

    parser.add_argument(
        "--no-color",
        action="store_true",
        help="Disable colored output",
    )

    parser.add_argument(
        "--version",
        action="version",
        version=f"%(prog)s {__version__}",
    )

    args = parser.parse_args()

    config_path = Path(args.config)
    if not config_path.exists():
        print(f"Configuration file not found: {config_path}", file=sys.stderr)
        return 1

    log_config = LogConfig()

    if args.debug:
        log_config.console_level = "debug"
    elif args.verbose:
        log_config.console_level = "info"
    elif args.quiet:
        log_config.console_level = "error"
    else:
        log_config.console_level = "warning"

    if args.no_color:
        log_config.console_colors = False

    if args.log_file:
        log_config.file_path = args.log_file
        log_config.file_level = args.log_file_level

    setup_logging(log_config)
    logger.info(f"Reading {config_path}")

    if args.lines:
        return dump_lines(str(config_path), args.max_line_length)

    loader = ConfigLoader(
        skip=args.skip,
        defer=args.defer,
        max_line_length=args.max_line_length,
    )
    return load_and_print(loader, str(config_path), args.validate)


if __name__ == "__main__":
    sys.exit(main())
