#!/usr/bin/env python3
r"""Grouping rule value and event attributes.

A grouping rule selects some attributes of an event, concatenates them in
the order given by the rule and tests the result against a regular
expression. The whole concatenation must match; a match anywhere inside it
is not enough.

Example:
    >>> rule = GroupingRule.create(["path", "entityType"], r"/a/.*Room", "rooms")
    >>> rule.probe(EventAttributes("/a/b", "e1", "Room"))
    '/a/bRoom'
    >>> rule.matches(EventAttributes("/a/b", "e1", "Room"))
    True
"""

import dataclasses
import json
import re
from dataclasses import dataclass
from typing import Any, Callable, Dict, Mapping, NamedTuple, Optional, Sequence, Tuple

from regroup.core.constants import Field, RuleId, RuleKey
from regroup.core.validators import (
    RuleStatus,
    ValidationError,
    normalize_definition,
    validate_rule_definition,
)


class EventAttributes(NamedTuple):
    """Attributes of an incoming event a rule can select."""

    path: Optional[str]
    entity_id: Optional[str]
    entity_type: Optional[str]


FIELD_ACCESSORS: Dict[Field, Callable[[EventAttributes], Optional[str]]] = {
    Field.PATH: lambda event: event.path,
    Field.ENTITY_ID: lambda event: event.entity_id,
    Field.ENTITY_TYPE: lambda event: event.entity_type,
}


class RuleError(ValidationError):
    """Raised when a grouping rule cannot be built from its definition."""


@dataclass(frozen=True)
class GroupingRule:
    """An immutable grouping rule.

    The id is assigned by the owning GroupingRules engine; a rule built
    outside an engine carries id 0 until it is added.
    """

    fields: Tuple[Field, ...]
    pattern: re.Pattern
    target: str
    service_path: Optional[str] = None
    id: RuleId = 0

    @classmethod
    def from_definition(cls, definition: Mapping[str, Any]) -> "GroupingRule":
        """Build a rule from a raw definition.

        Any ``id`` present in the definition is ignored.

        Args:
            definition: Mapping with fields, pattern and target keys

        Returns:
            New grouping rule with id 0

        Raises:
            RuleError: If the definition is invalid or the pattern does not compile
        """
        status = validate_rule_definition(definition)
        if status is not RuleStatus.OK:
            raise RuleError(f"Invalid grouping rule, {status.describe()}", status)

        rule = normalize_definition(definition)

        try:
            compiled = re.compile(rule[RuleKey.PATTERN])
        except re.error as e:
            raise RuleError(
                f"Invalid grouping rule, {RuleStatus.INVALID_PATTERN.describe()}: {e}",
                RuleStatus.INVALID_PATTERN,
            ) from e

        return cls(
            fields=tuple(Field.parse(name) for name in rule[RuleKey.FIELDS]),
            pattern=compiled,
            target=rule[RuleKey.TARGET],
            service_path=rule.get(RuleKey.SERVICE_PATH),
        )

    @classmethod
    def create(
        cls,
        fields: Sequence[str],
        pattern: str,
        target: str,
        service_path: Optional[str] = None,
    ) -> "GroupingRule":
        """Build a rule from Python values, with the same validation as definitions."""
        definition: Dict[str, Any] = {
            RuleKey.FIELDS: list(fields),
            RuleKey.PATTERN: pattern,
            RuleKey.TARGET: target,
        }
        if service_path is not None:
            definition[RuleKey.SERVICE_PATH] = service_path
        return cls.from_definition(definition)

    @property
    def regex(self) -> str:
        """Source text of the pattern."""
        return self.pattern.pattern

    def with_id(self, rule_id: RuleId) -> "GroupingRule":
        """Return a copy of this rule carrying the given id."""
        return dataclasses.replace(self, id=rule_id)

    def probe(self, event: EventAttributes) -> str:
        """Concatenate the selected attributes, in rule order, with no separator."""
        return "".join(FIELD_ACCESSORS[f](event) or "" for f in self.fields)

    def matches(self, event: EventAttributes) -> bool:
        """Check whether the pattern matches the whole probe string of the event."""
        return self.pattern.fullmatch(self.probe(event)) is not None

    def to_dict(self) -> Dict[str, Any]:
        """Serialize to a rule definition using the canonical keys."""
        data: Dict[str, Any] = {
            RuleKey.ID: self.id,
            RuleKey.FIELDS: [f.value for f in self.fields],
            RuleKey.PATTERN: self.regex,
            RuleKey.TARGET: self.target,
        }
        if self.service_path is not None:
            data[RuleKey.SERVICE_PATH] = self.service_path
        return data

    def to_json(self) -> str:
        """Serialize to a JSON object."""
        return json.dumps(self.to_dict())

    def __str__(self) -> str:
        return self.to_json()
