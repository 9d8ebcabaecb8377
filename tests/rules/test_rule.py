"""Tests for GroupingRule and EventAttributes."""
import dataclasses
import json
import re

import pytest

from regroup.core.constants import Field
from regroup.core.validators import RuleStatus, ValidationError
from regroup.rules.rule import FIELD_ACCESSORS, EventAttributes, GroupingRule, RuleError


class TestFromDefinition:
    """Tests for building rules from raw definitions."""

    def test_builds_rule(self):
        rule = GroupingRule.from_definition(
            {"fields": ["path", "entityType"], "pattern": "/a.*Room", "target": "rooms"}
        )

        assert rule.fields == (Field.PATH, Field.ENTITY_TYPE)
        assert rule.regex == "/a.*Room"
        assert isinstance(rule.pattern, re.Pattern)
        assert rule.target == "rooms"
        assert rule.service_path is None
        assert rule.id == 0

    def test_definition_id_is_ignored(self):
        """Ids are assigned by the engine, never taken from the definition."""
        rule = GroupingRule.from_definition(
            {"id": 7, "fields": ["entityId"], "pattern": ".*", "target": "all"}
        )
        assert rule.id == 0

    def test_legacy_definition(self):
        rule = GroupingRule.from_definition(
            {
                "fields": ["servicePath"],
                "regex": "/a/.*",
                "destination": "a",
                "fiware_service_path": "/grouped",
            }
        )

        assert rule.fields == (Field.PATH,)
        assert rule.regex == "/a/.*"
        assert rule.target == "a"
        assert rule.service_path == "/grouped"

    @pytest.mark.parametrize(
        "rule, status",
        [
            ({"fields": ["entityType"], "pattern": ".*"}, RuleStatus.MISSING_FIELD),
            ({"fields": ["entityType"], "pattern": "", "target": "t"}, RuleStatus.EMPTY_FIELD),
            ({"fields": ["color"], "pattern": ".*", "target": "t"}, RuleStatus.DISALLOWED_FIELD),
            (
                {"fields": ["path"], "pattern": ".*", "target": "t", "service_path": "p"},
                RuleStatus.MALFORMED_PATH,
            ),
        ],
    )
    def test_invalid_definition_raises(self, rule, status):
        with pytest.raises(RuleError) as exc_info:
            GroupingRule.from_definition(rule)
        assert exc_info.value.status is status

    def test_invalid_pattern_raises(self):
        """A pattern that does not compile is a construction error."""
        with pytest.raises(RuleError) as exc_info:
            GroupingRule.from_definition({"fields": ["entityId"], "pattern": "(", "target": "t"})
        assert exc_info.value.status is RuleStatus.INVALID_PATTERN
        assert isinstance(exc_info.value.__cause__, re.error)

    def test_rule_error_is_validation_error(self):
        assert issubclass(RuleError, ValidationError)


class TestCreate:
    """Tests for GroupingRule.create."""

    def test_create(self):
        rule = GroupingRule.create(["entityId", "entityType"], "car.*", "cars", "/vehicles")
        assert rule.fields == (Field.ENTITY_ID, Field.ENTITY_TYPE)
        assert rule.target == "cars"
        assert rule.service_path == "/vehicles"

    def test_create_validates(self):
        with pytest.raises(RuleError) as exc_info:
            GroupingRule.create([], ".*", "t")
        assert exc_info.value.status is RuleStatus.EMPTY_FIELD


class TestProbe:
    """Tests for probe string construction."""

    def test_concatenates_in_rule_order(self):
        event = EventAttributes("/p", "e1", "Room")

        forward = GroupingRule.create(["path", "entityId", "entityType"], ".*", "t")
        backward = GroupingRule.create(["entityType", "entityId", "path"], ".*", "t")

        assert forward.probe(event) == "/pe1Room"
        assert backward.probe(event) == "Roome1/p"

    def test_unselected_fields_contribute_nothing(self):
        rule = GroupingRule.create(["entityId"], ".*", "t")
        assert rule.probe(EventAttributes("/p", "e1", "Room")) == "e1"

    def test_repeated_field(self):
        rule = GroupingRule.create(["entityId", "entityId"], ".*", "t")
        assert rule.probe(EventAttributes("/p", "e1", "Room")) == "e1e1"

    def test_none_values_are_empty(self):
        rule = GroupingRule.create(["path", "entityId"], ".*", "t")
        assert rule.probe(EventAttributes(None, "e1", None)) == "e1"

    def test_every_field_has_an_accessor(self):
        assert set(FIELD_ACCESSORS) == set(Field)


class TestMatches:
    """Tests for full-string matching."""

    def test_full_match(self):
        rule = GroupingRule.create(["entityId"], "a.*b", "t")
        assert rule.matches(EventAttributes("", "aYYYb", ""))

    def test_trailing_text_fails(self):
        rule = GroupingRule.create(["entityId"], "a.*b", "t")
        assert not rule.matches(EventAttributes("", "aYYYbz", ""))

    def test_leading_text_fails(self):
        rule = GroupingRule.create(["entityId"], "a.*b", "t")
        assert not rule.matches(EventAttributes("", "xaYYYb z", ""))

    def test_anchored_pattern(self):
        rule = GroupingRule.create(["path"], "^/a/.*$", "g1")
        assert rule.matches(EventAttributes("/a/b", "e", "t"))
        assert not rule.matches(EventAttributes("/x", "e", "t"))

    def test_alternation_matches_whole_probe(self):
        """Each alternative must cover the whole probe, not a prefix of it."""
        rule = GroupingRule.create(["entityType"], "Room|RoomSensor", "t")
        assert rule.matches(EventAttributes("", "", "RoomSensor"))
        assert not rule.matches(EventAttributes("", "", "RoomSensorX"))


class TestImmutability:
    """Tests for rule immutability."""

    def test_frozen(self):
        rule = GroupingRule.create(["entityId"], ".*", "t")
        with pytest.raises(dataclasses.FrozenInstanceError):
            rule.target = "other"

    def test_with_id_returns_copy(self):
        rule = GroupingRule.create(["entityId"], ".*", "t")
        renumbered = rule.with_id(5)

        assert renumbered.id == 5
        assert rule.id == 0
        assert renumbered.target == rule.target
        assert renumbered.pattern is rule.pattern


class TestSerialization:
    """Tests for rule serialization."""

    def test_to_dict(self):
        rule = GroupingRule.create(["path", "entityType"], "/a.*", "a").with_id(3)
        assert rule.to_dict() == {
            "id": 3,
            "fields": ["path", "entityType"],
            "pattern": "/a.*",
            "target": "a",
        }

    def test_to_dict_with_service_path(self):
        rule = GroupingRule.create(["servicePath"], "/a.*", "a", "/grouped")
        assert rule.to_dict()["service_path"] == "/grouped"
        assert rule.to_dict()["fields"] == ["path"]

    def test_to_json(self):
        rule = GroupingRule.create(["entityId"], "car[0-9]+", "cars").with_id(1)
        assert json.loads(rule.to_json()) == rule.to_dict()
        assert str(rule) == rule.to_json()
