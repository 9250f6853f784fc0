"""Main entry point for the C# script preprocessor.

This module provides the CLI interface for flattening scripts.
"""

import argparse
import logging
import sys
from pathlib import Path
from typing import Optional

import yaml

from api import PreprocessOptions, preprocess_script_file, resolve_line_terminator
from output import JSONWriter
from preprocessor import SourceUnavailableError

__version__ = "0.1.0"


def setup_logging(level: str = "INFO", quiet: bool = False) -> None:
    """Configure logging.

    Args:
        level: Logging level string (DEBUG, INFO, WARNING, ERROR)
        quiet: If True, suppress all output except errors
    """
    if quiet:
        level = "ERROR"
    logging.basicConfig(
        level=getattr(logging, level.upper()),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )


def load_config(config_path: Optional[Path] = None) -> dict:
    """Load configuration from YAML file.

    Args:
        config_path: Path to configuration file

    Returns:
        Configuration dictionary
    """
    default_config = {
        "search_paths": ["."],
        "extensions": ["", ".csx"],
        "encoding": "utf-8",
        "line_terminator": "native",
        "output": {
            "pretty_print": True,
            "indent_size": 2,
            "include_line_mapping": False,
        },
        "logging": {"level": "INFO"},
    }

    if config_path and config_path.exists():
        with open(config_path, "r") as f:
            user_config = yaml.safe_load(f)
            if user_config:
                # Merge user config with defaults
                for key, value in user_config.items():
                    # An empty YAML section keeps its defaults
                    if value is None:
                        continue
                    if isinstance(value, dict) and isinstance(default_config.get(key), dict):
                        default_config[key].update(value)
                    else:
                        default_config[key] = value

    return default_config


def build_options(args, config: dict) -> PreprocessOptions:
    """Combine command line arguments and configuration into options.

    Paths given with -I come before the configured search paths.
    """
    search_paths = list(getattr(args, "search_paths", None) or [])
    search_paths += [Path(p) for p in config.get("search_paths", ["."])]

    return PreprocessOptions(
        search_paths=search_paths,
        extensions=config.get("extensions"),
        encoding=config.get("encoding", "utf-8"),
        line_terminator=resolve_line_terminator(config.get("line_terminator", "native")),
    )


def handle_flatten(args) -> int:
    """Handle the flatten subcommand.

    Args:
        args: Parsed arguments

    Returns:
        Exit code
    """
    logger = logging.getLogger(__name__)

    if not args.source.exists():
        logger.error(f"Source file not found: {args.source}")
        return 1

    if not args.source.is_file():
        logger.error(f"Source path is not a file: {args.source}")
        return 1

    config = load_config(args.config)

    try:
        options = build_options(args, config)
        outcome = preprocess_script_file(args.source, options)
    except SourceUnavailableError as e:
        logger.error(f"Cannot load script: {e}")
        return 1
    except Exception as e:
        logger.exception(f"Preprocessing failed: {e}")
        return 1

    for skipped in outcome.result.skipped_loads:
        logger.warning(
            f"#load \"{skipped.target}\" at {skipped.source_file}:{skipped.line_number} "
            f"comes after code and was not loaded"
        )

    if args.output:
        try:
            args.output.parent.mkdir(parents=True, exist_ok=True)
            # newline="" keeps the configured terminator as is
            with open(args.output, "w", encoding=options.encoding, newline="") as f:
                f.write(outcome.code)
        except OSError as e:
            logger.error(f"Failed to write output: {e}")
            return 1
        if not args.quiet:
            print(f"Flattened script written to: {args.output}")
            print(f"Files loaded: {len(outcome.result.loaded_files)}")
    else:
        print(outcome.code)

    return 0


def handle_report(args) -> int:
    """Handle the report subcommand.

    Args:
        args: Parsed arguments

    Returns:
        Exit code
    """
    logger = logging.getLogger(__name__)

    if not args.source.exists():
        logger.error(f"Source file not found: {args.source}")
        return 1

    if not args.source.is_file():
        logger.error(f"Source path is not a file: {args.source}")
        return 1

    config = load_config(args.config)
    output_config = config.get("output", {})
    include_line_mapping = args.include_line_mapping or output_config.get("include_line_mapping", False)

    try:
        options = build_options(args, config)
        outcome = preprocess_script_file(args.source, options)
    except SourceUnavailableError as e:
        logger.error(f"Cannot load script: {e}")
        return 1
    except Exception as e:
        logger.exception(f"Preprocessing failed: {e}")
        return 1

    report = outcome.to_dict(include_line_mapping=include_line_mapping)
    writer = JSONWriter(
        pretty_print=output_config.get("pretty_print", True),
        indent=output_config.get("indent_size", 2),
        compact=args.compact,
        include_line_mapping=include_line_mapping,
    )

    if args.output:
        try:
            args.output.parent.mkdir(parents=True, exist_ok=True)
            writer.write(report, args.output)
        except OSError as e:
            logger.error(f"Failed to write report: {e}")
            return 1
        if not args.quiet:
            print(f"Report written to: {args.output}")
            print(f"Execution time: {outcome.execution_time_seconds:.4f} seconds")
    else:
        print(writer.write(report))

    return 0


def add_common_arguments(parser) -> None:
    """Add source, search path, configuration and logging arguments."""
    parser.add_argument(
        "source",
        type=Path,
        help="Path to the entry script",
    )

    load_group = parser.add_argument_group("Load Options")
    load_group.add_argument(
        "-I", "--search-path",
        type=Path,
        action="append",
        dest="search_paths",
        metavar="PATH",
        help="Directory to search for #load targets (can be specified multiple times)",
    )

    config_group = parser.add_argument_group("Configuration")
    config_group.add_argument(
        "--config",
        type=Path,
        metavar="FILE",
        help="Path to YAML configuration file",
    )

    logging_group = parser.add_argument_group("Logging")
    logging_group.add_argument(
        "-v", "--verbose",
        action="store_true",
        help="Enable verbose output (debug level logging)",
    )
    logging_group.add_argument(
        "-q", "--quiet",
        action="store_true",
        help="Suppress all output except errors",
    )


def create_flatten_parser(subparsers):
    """Create the flatten subcommand parser.

    Args:
        subparsers: Subparsers object from main parser

    Returns:
        The flatten subparser
    """
    flatten_parser = subparsers.add_parser(
        "flatten",
        help="Flatten a script and its #load graph into one script",
        description="Resolve #load directives and hoist #r references and using imports to the top.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  %(prog)s main.csx
  %(prog)s main.csx -o build/main.flat.csx
  %(prog)s main.csx -I shared/ -I vendor/
        """,
    )
    add_common_arguments(flatten_parser)

    flatten_parser.add_argument(
        "-o", "--output",
        type=Path,
        help="File to write the flattened script to (default: stdout)",
    )

    flatten_parser.set_defaults(func=handle_flatten)
    return flatten_parser


def create_report_parser(subparsers):
    """Create the report subcommand parser.

    Args:
        subparsers: Subparsers object from main parser

    Returns:
        The report subparser
    """
    report_parser = subparsers.add_parser(
        "report",
        help="Describe the #load graph, references and imports of a script as JSON",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  %(prog)s main.csx
  %(prog)s main.csx --compact
  %(prog)s main.csx --include-line-mapping -o main-report.json
        """,
    )
    add_common_arguments(report_parser)

    output_group = report_parser.add_argument_group("Output Options")
    output_group.add_argument(
        "-o", "--output",
        type=Path,
        help="File to write the JSON report to (default: stdout)",
    )
    output_group.add_argument(
        "--compact",
        action="store_true",
        help="Write single-line JSON",
    )
    output_group.add_argument(
        "--include-line-mapping",
        action="store_true",
        help="Include the output line -> original file/line mapping",
    )

    report_parser.set_defaults(func=handle_report)
    return report_parser


def main(argv=None):
    """Main CLI entry point."""
    argv = list(sys.argv[1:] if argv is None else argv)

    # If first arg is not a subcommand, assume 'flatten'
    subcommands = ["flatten", "report"]
    if argv and argv[0] not in subcommands + ["-h", "--help", "--version"]:
        argv.insert(0, "flatten")

    parser = argparse.ArgumentParser(
        prog="csx-preprocess",
        description="C# Script Preprocessor - Flattens scripts and their #load graph into a single script.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Commands:
  flatten   Flatten a script (default)
  report    JSON report of the load graph, references and imports

Examples:
  %(prog)s flatten main.csx -o main.flat.csx
  %(prog)s main.csx  # same as flatten
  %(prog)s report main.csx

For more information on a command, use: %(prog)s <command> --help
        """,
    )

    parser.add_argument(
        "--version",
        action="version",
        version=f"%(prog)s {__version__}",
    )

    subparsers = parser.add_subparsers(
        title="commands",
        dest="command",
        metavar="<command>",
    )

    create_flatten_parser(subparsers)
    create_report_parser(subparsers)

    args = parser.parse_args(argv)

    # Show help if no command specified
    if not args.command:
        parser.print_help()
        sys.exit(0)

    if args.verbose and args.quiet:
        parser.error("--verbose and --quiet cannot be used together")

    # Setup logging
    log_level = load_config(args.config).get("logging", {}).get("level", "INFO")
    if args.verbose:
        log_level = "DEBUG"
    setup_logging(log_level, quiet=args.quiet)

    sys.exit(args.func(args))


if __name__ == "__main__":
    main()
