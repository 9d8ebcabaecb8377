"""
Regroup Core: Grouping Rule Validators.

Validation of raw grouping rule definitions, as produced by parsing a rules
document. Validation never raises: it returns a RuleStatus so that callers
can decide whether to discard the definition, report it or reject it.
"""
from enum import Enum
from typing import Any, Dict, Mapping

from regroup.core.constants import PATH_SEPARATOR, ErrorCode, Field, RuleKey


class RuleStatus(Enum):
    """Outcome of validating or building a grouping rule."""

    OK = "ok"
    MISSING_FIELD = "missing_field"
    EMPTY_FIELD = "empty_field"
    DISALLOWED_FIELD = "disallowed_field"
    MALFORMED_PATH = "malformed_path"
    INVALID_TYPE = "invalid_type"
    INVALID_PATTERN = "invalid_pattern"

    def describe(self) -> str:
        """Human readable reason, used in discard warnings."""
        return _DESCRIPTIONS[self]


_DESCRIPTIONS = {
    RuleStatus.OK: "the grouping rule is valid",
    RuleStatus.MISSING_FIELD: "some field is missing",
    RuleStatus.EMPTY_FIELD: "some field is empty",
    RuleStatus.DISALLOWED_FIELD: "some field is not allowed",
    RuleStatus.MALFORMED_PATH: f"the service path does not start with '{PATH_SEPARATOR}'",
    RuleStatus.INVALID_TYPE: "some field has a wrong type",
    RuleStatus.INVALID_PATTERN: "the pattern is not a valid regular expression",
}


class ValidationError(Exception):
    """Base exception for validation errors."""

    def __init__(
        self,
        message: str,
        status: RuleStatus = RuleStatus.INVALID_TYPE,
        error_code: ErrorCode = ErrorCode.INVALID_INPUT,
    ):
        """Initialize ValidationError.

        Args:
            message: Error message
            status: Validation outcome that caused the error
            error_code: Associated error code
        """
        super().__init__(message)
        self.status = status
        self.error_code = error_code


def normalize_definition(definition: Mapping[str, Any]) -> Dict[str, Any]:
    """Map legacy keys of a rule definition onto the canonical ones.

    A canonical key wins over its legacy alias when both are present.
    Unknown keys are kept untouched; they are ignored by rule construction.
    """
    normalized = dict(definition)
    for legacy, canonical in RuleKey.ALIASES.items():
        if legacy in normalized:
            value = normalized.pop(legacy)
            normalized.setdefault(canonical, value)
    return normalized


def validate_rule_definition(definition: Any) -> RuleStatus:
    """Validate a raw grouping rule definition.

    Checks, in order: the definition is a mapping, the required keys are
    present, values have the right type, values are not empty, every
    selected field is a recognized attribute and the optional service
    path starts with the path separator.

    Args:
        definition: Parsed rule definition

    Returns:
        RuleStatus.OK, or the first problem found
    """
    if not isinstance(definition, Mapping):
        return RuleStatus.INVALID_TYPE

    rule = normalize_definition(definition)

    if any(key not in rule for key in RuleKey.REQUIRED):
        return RuleStatus.MISSING_FIELD

    fields = rule[RuleKey.FIELDS]
    if not isinstance(fields, list) or not all(isinstance(f, str) for f in fields):
        return RuleStatus.INVALID_TYPE

    for key in (RuleKey.PATTERN, RuleKey.TARGET):
        if not isinstance(rule[key], str):
            return RuleStatus.INVALID_TYPE

    service_path = rule.get(RuleKey.SERVICE_PATH)
    if service_path is not None and not isinstance(service_path, str):
        return RuleStatus.INVALID_TYPE

    if not fields or not rule[RuleKey.PATTERN] or not rule[RuleKey.TARGET]:
        return RuleStatus.EMPTY_FIELD

    if service_path == "":
        return RuleStatus.EMPTY_FIELD

    for name in fields:
        if not is_recognized_field(name):
            return RuleStatus.DISALLOWED_FIELD

    if service_path is not None and not service_path.startswith(PATH_SEPARATOR):
        return RuleStatus.MALFORMED_PATH

    return RuleStatus.OK


def is_recognized_field(name: str) -> bool:
    """Check whether an attribute name can be selected by a rule."""
    try:
        Field.parse(name)
    except ValueError:
        return False
    return True
