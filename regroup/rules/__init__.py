"""Regroup Rules System.

This module provides the grouping rule engine:
- GroupingRule: Immutable rule pairing selected event fields, a regex and a target
- GroupingRules: Ordered rule set with first-match evaluation and live updates
- Loader: Comment-aware reading and parsing of grouping rules files

Events are classified by the first rule whose pattern matches the whole
concatenation of the attributes it selects.
"""

from .engine import BootstrapReport, DiscardedRule, GroupingRules
from .loader import LoadStatus, load_rules_file, parse_rules_document, read_rules_file
from .rule import FIELD_ACCESSORS, EventAttributes, GroupingRule, RuleError

__all__ = [
    # Rule
    "EventAttributes",
    "FIELD_ACCESSORS",
    "GroupingRule",
    "RuleError",
    # Engine
    "BootstrapReport",
    "DiscardedRule",
    "GroupingRules",
    # Loader
    "LoadStatus",
    "load_rules_file",
    "parse_rules_document",
    "read_rules_file",
]
