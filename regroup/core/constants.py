"""
Regroup Core: Constants and Type Definitions

This module provides system-wide constants, error codes, recognized event
attributes and the wire keys of a grouping rule definition.
"""
from enum import Enum, IntEnum
from typing import Dict, TypeAlias

# Version information
REGROUP_VERSION = "1.0.0"

# Top-level key of a grouping rules document
GROUPING_RULES_KEY = "grouping_rules"

# Lines starting with this marker are dropped when reading a rules file
COMMENT_MARKER = "#"

# Separator every service path must start with
PATH_SEPARATOR = "/"


class ErrorCode(IntEnum):
    """Standardized error codes for regroup operations."""

    INVALID_INPUT = 1  # Bad rule definition, invalid configuration
    NOT_FOUND = 2  # File or rule doesn't exist
    INTERNAL_ERROR = 6  # Bug in regroup


# Type aliases for clarity
RuleId: TypeAlias = int


class Field(Enum):
    """Event attributes a grouping rule can select."""

    PATH = "path"
    ENTITY_ID = "entityId"
    ENTITY_TYPE = "entityType"

    @classmethod
    def parse(cls, name: str) -> "Field":
        """Resolve an attribute name, accepting legacy aliases.

        Raises:
            ValueError: If the name is not a recognized attribute
        """
        if name in FIELD_ALIASES:
            return FIELD_ALIASES[name]
        return cls(name)


FIELD_ALIASES: Dict[str, Field] = {
    "servicePath": Field.PATH,
}


class RuleKey:
    """Wire keys of a grouping rule definition."""

    ID = "id"
    FIELDS = "fields"
    PATTERN = "pattern"
    TARGET = "target"
    SERVICE_PATH = "service_path"

    REQUIRED = (FIELDS, PATTERN, TARGET)

    # Keys used by the original grouping rules file format
    ALIASES = {
        "regex": PATTERN,
        "destination": TARGET,
        "fiware_service_path": SERVICE_PATH,
    }


# Configuration keys
class ConfigKey:
    """Configuration key constants."""

    ROOT = "regroup"
    RULES_FILE = "regroup.rules_file"
    COMMENT_MARKER = "regroup.comment_marker"
    LOG_LEVEL = "regroup.logging.level"
    LOG_FILE = "regroup.logging.file"


# Default configuration values
DEFAULT_CONFIG = {
    ConfigKey.ROOT: {
        "rules_file": None,
        "comment_marker": COMMENT_MARKER,
        "logging": {
            "level": "INFO",
            "file": None,
        },
    }
}
