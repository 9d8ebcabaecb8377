#!/usr/bin/env python3
"""Grouping rules file loading.

Rules files are JSON documents with a top-level ``grouping_rules`` list.
Lines starting with the comment marker and blank lines are dropped before
parsing, so a plain JSON parser cannot read the file directly:

    # Group every room under the same destination
    {
        "grouping_rules": [
            {"fields": ["entityType"], "pattern": "Room", "target": "rooms"}
        ]
    }

The remaining text is parsed as JSON; text that is not JSON is parsed with
PyYAML, so the same document can also be written in YAML.
"""

import json
from enum import Enum
from pathlib import Path
from typing import Any, List, Optional, Tuple, Union

import yaml

from regroup.core.constants import COMMENT_MARKER, GROUPING_RULES_KEY
from regroup.core.logging import Logger, get_logger


class LoadStatus(Enum):
    """Outcome of reading and parsing a grouping rules source."""

    LOADED = "loaded"
    NO_CONTENT = "no_content"
    MALFORMED = "malformed"


def read_rules_file(
    path: Optional[Union[str, Path]],
    comment_marker: str = COMMENT_MARKER,
    logger: Optional[Logger] = None,
) -> Optional[str]:
    """Read a rules file, dropping comment and blank lines.

    Args:
        path: Rules file path, or None when no file was configured
        comment_marker: Lines starting with this marker are dropped
        logger: Logger to report read errors

    Returns:
        The remaining text, or None if there is no file or it cannot be read
    """
    if path is None:
        return None

    logger = logger or get_logger()

    try:
        with open(path, "r", encoding="utf-8") as f:
            lines = [
                line.rstrip("\n")
                for line in f
                if line.strip() and not line.startswith(comment_marker)
            ]
    except FileNotFoundError as e:
        logger.error("Grouping rules file not found", path=str(path), error=str(e))
        return None
    except OSError as e:
        logger.error("Error while reading the grouping rules file", path=str(path), error=str(e))
        return None

    return "\n".join(lines)


def parse_rules_document(text: Optional[str], logger: Optional[Logger] = None) -> Optional[List[Any]]:
    """Extract the grouping rule definitions from a rules document.

    Args:
        text: Document text, comment lines already removed
        logger: Logger to report parse errors

    Returns:
        The list under ``grouping_rules``, or None if the document is malformed
    """
    if text is None:
        return None

    logger = logger or get_logger()

    try:
        document = json.loads(text)
    except json.JSONDecodeError:
        try:
            document = yaml.safe_load(text)
        except yaml.YAMLError as e:
            logger.error("Error while parsing the grouping rules document", error=str(e))
            return None

    if not isinstance(document, dict):
        logger.error("Grouping rules document is not a mapping", found=type(document).__name__)
        return None

    definitions = document.get(GROUPING_RULES_KEY)
    if not isinstance(definitions, list):
        logger.error(
            f"Grouping rules document has no '{GROUPING_RULES_KEY}' list",
            found=type(definitions).__name__,
        )
        return None

    return definitions


def load_rules_file(
    path: Optional[Union[str, Path]],
    comment_marker: str = COMMENT_MARKER,
    logger: Optional[Logger] = None,
) -> Tuple[LoadStatus, Optional[List[Any]]]:
    """Read and parse a rules file.

    Returns:
        (LoadStatus.NO_CONTENT, None) when there is nothing to read,
        (LoadStatus.MALFORMED, None) when the document cannot be used,
        (LoadStatus.LOADED, definitions) otherwise
    """
    text = read_rules_file(path, comment_marker, logger)
    if text is None:
        return LoadStatus.NO_CONTENT, None

    definitions = parse_rules_document(text, logger)
    if definitions is None:
        return LoadStatus.MALFORMED, None

    return LoadStatus.LOADED, definitions
