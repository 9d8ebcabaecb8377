"""Regroup - dynamic event grouping rules.

Classifies events by matching a concatenation of their attributes against
an ordered list of regular expression rules, each mapping to a target group.
"""

from regroup.core.constants import REGROUP_VERSION as __version__
from regroup.core.constants import Field
from regroup.core.validators import RuleStatus, validate_rule_definition
from regroup.rules import EventAttributes, GroupingRule, GroupingRules, LoadStatus, RuleError

__all__ = [
    "__version__",
    "EventAttributes",
    "Field",
    "GroupingRule",
    "GroupingRules",
    "LoadStatus",
    "RuleError",
    "RuleStatus",
    "validate_rule_definition",
]
