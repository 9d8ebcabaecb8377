#!/usr/bin/env python3
"""Grouping rules engine.

This module provides the ordered rule set used to classify events:
- Bootstrap from a list of raw rule definitions or a rules file
- First-match-wins evaluation with full-string matching
- Add, update-in-place and delete while matches keep being served
- Monotonic rule ids, never reused after deletion

The rule collection is an immutable tuple. Every mutation builds a new
tuple and swaps it in under a lock, so ``match`` iterates a stable
snapshot without locking.

Example:
    >>> engine = GroupingRules()
    >>> rule_id = engine.add(GroupingRule.create(["path"], "/a/.*", "g1"))
    >>> engine.match("/a/b", "e1", "Room").target
    'g1'
    >>> engine.match("/x", "e1", "Room") is None
    True
"""

import json
import threading
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Iterator, List, Optional, Sequence, Tuple, Union

from regroup.core.constants import COMMENT_MARKER, GROUPING_RULES_KEY, RuleId
from regroup.core.logging import Logger, get_logger
from regroup.core.validators import RuleStatus
from regroup.rules.loader import LoadStatus, load_rules_file
from regroup.rules.rule import EventAttributes, GroupingRule, RuleError


@dataclass
class DiscardedRule:
    """A rule definition rejected during bootstrap."""

    index: int
    status: RuleStatus
    definition: Any


@dataclass
class BootstrapReport:
    """Outcome of building the initial rule set."""

    status: LoadStatus
    loaded: List[RuleId] = field(default_factory=list)
    discarded: List[DiscardedRule] = field(default_factory=list)


class GroupingRules:
    """Ordered, thread-safe set of grouping rules.

    Rules are evaluated in collection order and the first one whose
    pattern matches the whole probe string wins. New rules are appended,
    updated rules keep their position.
    """

    def __init__(
        self,
        definitions: Optional[Sequence[Any]] = None,
        logger: Optional[Logger] = None,
        *,
        source_status: LoadStatus = LoadStatus.LOADED,
    ):
        """Initialize the engine.

        Args:
            definitions: Raw rule definitions, or None to start empty
            logger: Logger for load and mutation messages
            source_status: Outcome of reading the definitions; a MALFORMED
                source skips the bootstrap and leaves the engine empty
        """
        self._logger = logger or get_logger()
        self._lock = threading.Lock()
        self._rules: Tuple[GroupingRule, ...] = ()
        self._last_index: RuleId = 0

        if source_status is LoadStatus.MALFORMED:
            self._logger.warning("Grouping rules syntax has errors")
            self.report = BootstrapReport(LoadStatus.MALFORMED)
        else:
            self.report = self._bootstrap(definitions)

    @classmethod
    def from_file(
        cls,
        path: Optional[Union[str, Path]],
        comment_marker: str = COMMENT_MARKER,
        logger: Optional[Logger] = None,
    ) -> "GroupingRules":
        """Build an engine from a rules file.

        A missing or unreadable file, or a malformed document, leaves the
        engine empty; the reason is available in ``report.status``.
        """
        logger = logger or get_logger()
        with logger.add_context(rules_file=str(path)):
            status, definitions = load_rules_file(path, comment_marker, logger)
            return cls(definitions, logger, source_status=status)

    def _bootstrap(self, definitions: Optional[Sequence[Any]]) -> BootstrapReport:
        if definitions is None:
            self._logger.info("No grouping rules have been read")
            return BootstrapReport(LoadStatus.NO_CONTENT)

        if not isinstance(definitions, (list, tuple)):
            self._logger.warning(
                "Grouping rules are not a list of rule definitions",
                found=type(definitions).__name__,
            )
            return BootstrapReport(LoadStatus.MALFORMED)

        report = BootstrapReport(LoadStatus.LOADED)
        rules: List[GroupingRule] = []

        with self._lock:
            for index, definition in enumerate(definitions):
                try:
                    rule = GroupingRule.from_definition(definition)
                except RuleError as e:
                    self._logger.warning(
                        f"Invalid grouping rule, {e.status.describe()}. It will be discarded",
                        index=index,
                        details=_dump(definition),
                    )
                    report.discarded.append(DiscardedRule(index, e.status, definition))
                    continue

                self._last_index += 1
                rules.append(rule.with_id(self._last_index))
                report.loaded.append(self._last_index)

            self._rules = tuple(rules)

        self._logger.info(
            "Grouping rules loaded",
            loaded=len(report.loaded),
            discarded=len(report.discarded),
        )
        return report

    def match(
        self,
        path: Optional[str],
        entity_id: Optional[str],
        entity_type: Optional[str],
    ) -> Optional[GroupingRule]:
        """Find the first rule matching an event.

        Args:
            path: Hierarchical path of the event
            entity_id: Entity identifier
            entity_type: Entity type

        Returns:
            The matching rule, or None if no rule matches
        """
        return self.match_event(EventAttributes(path, entity_id, entity_type))

    def match_event(self, event: EventAttributes) -> Optional[GroupingRule]:
        """Find the first rule matching an EventAttributes bundle."""
        for rule in self._rules:
            if rule.matches(event):
                return rule
        return None

    def add(self, rule: GroupingRule) -> RuleId:
        """Append a rule, assigning it the next id.

        Any id the rule already carries is ignored.

        Returns:
            The id assigned to the rule
        """
        with self._lock:
            self._last_index += 1
            rule_id = self._last_index
            self._rules = self._rules + (rule.with_id(rule_id),)

        self._logger.info("Grouping rule added", rule_id=rule_id, target=rule.target)
        return rule_id

    def update(self, rule_id: RuleId, rule: GroupingRule) -> bool:
        """Replace the rule with the given id, keeping its position.

        Returns:
            True if the rule was found and replaced
        """
        with self._lock:
            position = self._position(rule_id)
            if position is None:
                self._logger.debug("Grouping rule not found for update", rule_id=rule_id)
                return False

            rules = list(self._rules)
            rules[position] = rule.with_id(rule_id)
            self._rules = tuple(rules)

        self._logger.info("Grouping rule updated", rule_id=rule_id, target=rule.target)
        return True

    def delete(self, rule_id: RuleId) -> bool:
        """Remove the rule with the given id.

        Returns:
            True if the rule was found and removed
        """
        with self._lock:
            position = self._position(rule_id)
            if position is None:
                self._logger.debug("Grouping rule not found for deletion", rule_id=rule_id)
                return False

            self._rules = self._rules[:position] + self._rules[position + 1 :]

        self._logger.info("Grouping rule deleted", rule_id=rule_id)
        return True

    def _position(self, rule_id: RuleId) -> Optional[int]:
        for i, rule in enumerate(self._rules):
            if rule.id == rule_id:
                return i
        return None

    def get(self, rule_id: RuleId) -> Optional[GroupingRule]:
        """Return the rule with the given id, or None if there is none."""
        for rule in self._rules:
            if rule.id == rule_id:
                return rule
        return None

    @property
    def rules(self) -> Tuple[GroupingRule, ...]:
        """Current snapshot of the rules, in evaluation order."""
        return self._rules

    @property
    def last_index(self) -> RuleId:
        """Last id handed out; the next rule gets ``last_index + 1``."""
        return self._last_index

    def to_dict(self) -> Dict[str, Any]:
        """Serialize the rule set as a grouping rules document."""
        return {GROUPING_RULES_KEY: [rule.to_dict() for rule in self._rules]}

    def to_json(self, as_field: bool = False) -> str:
        """Serialize the rule set.

        Args:
            as_field: Render only the ``"grouping_rules": [...]`` member,
                for embedding in a larger document

        Returns:
            JSON text
        """
        rules = json.dumps([rule.to_dict() for rule in self._rules])
        if as_field:
            return f'"{GROUPING_RULES_KEY}": {rules}'
        return f'{{"{GROUPING_RULES_KEY}": {rules}}}'

    def __len__(self) -> int:
        return len(self._rules)

    def __iter__(self) -> Iterator[GroupingRule]:
        return iter(self._rules)


def _dump(definition: Any) -> str:
    try:
        return json.dumps(definition)
    except (TypeError, ValueError):
        return repr(definition)
