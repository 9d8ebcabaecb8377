#!/usr/bin/env python3
"""Command-line interface for regroup.

This module provides a CLI to inspect and try out grouping rules files:
- Argument parsing and validation
- Configuration file loading
- Listing the loaded rules
- Matching an event against the rules
- Validating every rule definition of a file

Example:
    >>> from regroup.cli import parse_arguments
    >>> args = parse_arguments(["--rules", "rules.conf", "match", "--entity-type", "Room"])
"""

import argparse
import json
import sys
from pathlib import Path
from typing import List, Optional

from regroup.core.config import ConfigError, ConfigManager, ConfigSource
from regroup.core.constants import COMMENT_MARKER, REGROUP_VERSION, ConfigKey
from regroup.core.logging import Logger, set_global_logger
from regroup.rules.engine import GroupingRules
from regroup.rules.loader import LoadStatus

DESCRIPTION = "regroup - dynamic event grouping rules"

EXIT_OK = 0
EXIT_FAILURE = 1
EXIT_USAGE = 2


class CLIError(Exception):
    """Exception raised for CLI-related errors."""

    pass


def parse_arguments(args: Optional[List[str]] = None) -> argparse.Namespace:
    """
    Parse command-line arguments.

    Args:
        args: Argument list to parse (defaults to sys.argv[1:])

    Returns:
        Parsed arguments namespace

    Raises:
        SystemExit: On invalid arguments or --help/--version
        CLIError: If a given file does not exist
    """
    parser = argparse.ArgumentParser(
        prog="regroup",
        description=DESCRIPTION,
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Show the rules loaded from a file
  regroup --rules grouping_rules.conf list

  # Find the group of an event
  regroup --rules grouping_rules.conf match --path /a/b --entity-id r1 --entity-type Room

  # Report every invalid rule definition of a file
  regroup --config regroup.yaml validate
        """,
    )

    parser.add_argument(
        "-v",
        "--version",
        action="version",
        version=f"%(prog)s {REGROUP_VERSION}",
    )

    parser.add_argument(
        "-c",
        "--config",
        metavar="FILE",
        type=str,
        help="Configuration file path (YAML format)",
    )

    parser.add_argument(
        "-r",
        "--rules",
        metavar="FILE",
        type=str,
        help="Grouping rules file (overrides regroup.rules_file)",
    )

    log_group = parser.add_argument_group("logging options")

    log_group.add_argument(
        "--debug",
        action="store_true",
        help="Enable debug logging",
    )

    log_group.add_argument(
        "--log-file",
        metavar="FILE",
        type=str,
        help="Also write log messages to this file",
    )

    commands = parser.add_subparsers(dest="command", metavar="COMMAND")
    commands.required = True

    commands.add_parser("list", help="Print the loaded grouping rules as JSON")

    match_parser = commands.add_parser("match", help="Print the rule matching an event")
    match_parser.add_argument("--path", default="", help="Hierarchical path of the event")
    match_parser.add_argument("--entity-id", default="", help="Entity identifier")
    match_parser.add_argument("--entity-type", default="", help="Entity type")

    commands.add_parser("validate", help="Report the status of every rule definition")

    parsed = parser.parse_args(args)

    _validate_arguments(parsed)

    return parsed


def _validate_arguments(args: argparse.Namespace) -> None:
    """
    Validate parsed arguments.

    Raises:
        CLIError: If validation fails
    """
    for option, value in (("configuration", args.config), ("rules", args.rules)):
        if not value:
            continue

        path = Path(value)

        if not path.exists():
            raise CLIError(f"The {option} file does not exist: {value}")

        if not path.is_file():
            raise CLIError(f"The {option} path is not a file: {value}")


def load_config(args: argparse.Namespace) -> ConfigManager:
    """
    Build the configuration from the config file and command-line arguments.

    Raises:
        CLIError: If the configuration file cannot be loaded
    """
    try:
        config = ConfigManager(args.config)
    except ConfigError as e:
        raise CLIError(f"Failed to load configuration file: {args.config}\n{e}") from e

    if args.rules:
        config.set(ConfigKey.RULES_FILE, args.rules, ConfigSource.CLI_ARGS)

    if args.debug:
        config.set(ConfigKey.LOG_LEVEL, "DEBUG", ConfigSource.CLI_ARGS)

    if args.log_file:
        config.set(ConfigKey.LOG_FILE, args.log_file, ConfigSource.CLI_ARGS)

    return config


def setup_logging(config: ConfigManager) -> Logger:
    """
    Setup logging based on configuration.

    Raises:
        CLIError: If the configured log level is unknown
    """
    level = config.get(ConfigKey.LOG_LEVEL, "INFO")

    try:
        logger = Logger("regroup", level=level)
    except KeyError as e:
        raise CLIError(f"Unknown log level: {level}") from e

    log_file = config.get(ConfigKey.LOG_FILE)
    if log_file:
        logger.add_handler(logger.create_file_handler(log_file))

    set_global_logger(logger)
    return logger


def run_list(engine: GroupingRules) -> int:
    print(json.dumps(engine.to_dict(), indent=2))
    return EXIT_OK


def run_match(engine: GroupingRules, args: argparse.Namespace) -> int:
    rule = engine.match(args.path, args.entity_id, args.entity_type)

    if rule is None:
        print("No matching grouping rule")
        return EXIT_FAILURE

    print(json.dumps(rule.to_dict(), indent=2))
    return EXIT_OK


def run_validate(engine: GroupingRules) -> int:
    report = engine.report

    if report.status is LoadStatus.NO_CONTENT:
        print("No grouping rules have been read")
        return EXIT_OK

    if report.status is LoadStatus.MALFORMED:
        print("Grouping rules syntax has errors")
        return EXIT_FAILURE

    for rule_id in report.loaded:
        print(f"rule {rule_id}: ok")

    for discarded in report.discarded:
        print(
            f"definition {discarded.index}: {discarded.status.value} "
            f"({discarded.status.describe()})"
        )

    return EXIT_FAILURE if report.discarded else EXIT_OK


def main(argv: Optional[List[str]] = None) -> int:
    """
    Main CLI entry point.

    Returns:
        Process exit code
    """
    try:
        args = parse_arguments(argv)
        config = load_config(args)
        logger = setup_logging(config)

        engine = GroupingRules.from_file(
            config.get(ConfigKey.RULES_FILE),
            comment_marker=config.get(ConfigKey.COMMENT_MARKER, COMMENT_MARKER),
            logger=logger,
        )

        if args.command == "list":
            return run_list(engine)
        if args.command == "match":
            return run_match(engine, args)
        return run_validate(engine)

    except CLIError as e:
        print(f"Error: {e}", file=sys.stderr)
        return EXIT_USAGE

    except KeyboardInterrupt:
        print("\nInterrupted by user", file=sys.stderr)
        return 130


if __name__ == "__main__":
    sys.exit(main())
