"""Tests for specguard.schema.validator."""

from __future__ import annotations

import logging
from typing import Any

import pytest

from specguard.models import StrictnessOptions
from specguard.schema.convert import schema_from_dict
from specguard.schema.nodes import RefSchema, Scalar
from specguard.schema.registry import SchemaRegistry
from specguard.schema.validator import SchemaValidator, json_type, validate


CAT = schema_from_dict(
    {"type": "object", "properties": {"meow": {"type": "boolean"}}, "required": ["meow"]}
)
DOG = schema_from_dict(
    {"type": "object", "properties": {"bark": {"type": "boolean"}}, "required": ["bark"]}
)


def _messages(issues: list) -> list[str]:
    return [issue.message for issue in issues]


@pytest.fixture
def validator() -> SchemaValidator:
    return SchemaValidator()


# ---------------------------------------------------------------------------
# Combinators
# ---------------------------------------------------------------------------


class TestOneOf:
    def test_exactly_one_match(self, validator: SchemaValidator) -> None:
        assert validator.validate_one_of({"meow": True}, [CAT, DOG]) == []

    def test_ambiguous_match_is_single_issue(self, validator: SchemaValidator) -> None:
        issues = validator.validate_one_of({"meow": True, "bark": True}, [CAT, DOG])
        assert len(issues) == 1
        assert "matched 2" in issues[0].message
        assert issues[0].path == "$"

    def test_no_match_is_single_issue(self, validator: SchemaValidator) -> None:
        issues = validator.validate_one_of({}, [CAT, DOG])
        assert _messages(issues) == ["oneOf: does not match any schema (2 schemas checked)"]

    def test_scalar_members(self, validator: SchemaValidator) -> None:
        members = [Scalar(type="string"), Scalar(type="integer")]
        assert validator.validate_one_of("x", members) == []
        assert validator.validate_one_of(3, members) == []
        assert len(validator.validate_one_of(2.5, members)) == 1

    def test_integer_matches_both_integer_and_number(self, validator: SchemaValidator) -> None:
        members = [Scalar(type="integer"), Scalar(type="number")]
        issues = validator.validate_one_of(3, members)
        assert _messages(issues) == ["oneOf: must match exactly one schema but matched 2"]


class TestAnyOf:
    def test_first_match_wins(self, validator: SchemaValidator) -> None:
        assert validator.validate_any_of({"meow": True, "bark": True}, [CAT, DOG]) == []

    def test_no_match_names_count(self, validator: SchemaValidator) -> None:
        issues = validator.validate_any_of("nope", [CAT, DOG, Scalar(type="integer")])
        assert _messages(issues) == ["anyOf: does not match any schema (3 schemas checked)"]


class TestAllOf:
    def test_all_match(self, validator: SchemaValidator) -> None:
        assert validator.validate_all_of({"meow": True, "bark": False}, [CAT, DOG]) == []

    def test_collects_every_failure(self, validator: SchemaValidator) -> None:
        issues = validator.validate_all_of({}, [CAT, DOG])
        assert [(i.path, i.message) for i in issues] == [
            ("$", "allOf[0]: does not match schema"),
            ("$.meow", "missing required property"),
            ("$", "allOf[1]: does not match schema"),
            ("$.bark", "missing required property"),
        ]

    def test_only_failing_members_reported(self, validator: SchemaValidator) -> None:
        issues = validator.validate_all_of({"bark": True}, [CAT, DOG])
        assert _messages(issues) == ["allOf[0]: does not match schema", "missing required property"]


class TestCompositeSchema:
    def test_dispatches_one_of(self, validator: SchemaValidator) -> None:
        node = schema_from_dict(
            {"oneOf": [{"type": "string"}, {"type": "integer"}]}
        )
        assert validator.validate_composite_schema("abc", node) == []
        assert len(validator.validate_composite_schema([], node)) == 1

    def test_plain_schema_falls_back(self, validator: SchemaValidator) -> None:
        issues = validator.validate_composite_schema(5, Scalar(type="string"))
        assert _messages(issues) == ["type mismatch: expected string, got integer"]

    def test_several_combinators_all_checked(self, validator: SchemaValidator) -> None:
        node = schema_from_dict(
            {
                "allOf": [{"type": "object", "required": ["id"]}],
                "oneOf": [{"required": ["a"]}, {"required": ["b"]}],
            }
        )
        issues = validator.validate_composite_schema({"a": 1}, node)
        assert _messages(issues) == [
            "allOf[0]: does not match schema",
            "missing required property",
        ]
        assert validator.validate_composite_schema({"id": 1, "b": 2}, node) == []

    def test_sibling_keywords_checked(self, validator: SchemaValidator) -> None:
        node = schema_from_dict(
            {
                "type": "object",
                "required": ["kind"],
                "anyOf": [{"type": "object"}],
            }
        )
        issues = validator.validate_composite_schema({}, node)
        assert [(i.path, i.message) for i in issues] == [("$.kind", "missing required property")]

    def test_nullable_composite_accepts_null(self, validator: SchemaValidator) -> None:
        node = schema_from_dict(
            {"oneOf": [{"type": "string"}, {"type": "integer"}], "nullable": True}
        )
        assert validator.validate_composite_schema(None, node) == []

    def test_resolves_ref_to_composite(self) -> None:
        registry = SchemaRegistry.from_document(
            {"components": {"schemas": {"Id": {"anyOf": [{"type": "string"}, {"type": "integer"}]}}}}
        )
        validator = SchemaValidator(registry)
        ref = RefSchema(ref="#/components/schemas/Id")
        assert validator.validate_composite_schema(7, ref) == []
        assert len(validator.validate_composite_schema(True, ref)) == 1


# ---------------------------------------------------------------------------
# Baseline validation
# ---------------------------------------------------------------------------


class TestNullHandling:
    def test_null_rejected_for_typed_schema(self, validator: SchemaValidator) -> None:
        issues = validator.validate_against_schema(None, Scalar(type="string"))
        assert _messages(issues) == ["null is not allowed"]

    @pytest.mark.parametrize(
        "raw",
        [
            {"type": "string", "nullable": True},
            {"type": ["string", "null"]},
            {"type": "string", "x-nullable": True},
            {"type": "object", "nullable": True, "required": ["a"]},
            {},
        ],
    )
    def test_null_accepted(self, validator: SchemaValidator, raw: dict[str, Any]) -> None:
        assert validator.validate_against_schema(None, schema_from_dict(raw)) == []

    def test_null_only_type_rejects_values(self, validator: SchemaValidator) -> None:
        issues = validator.validate_against_schema("x", schema_from_dict({"type": "null"}))
        assert _messages(issues) == ["type mismatch: expected null, got string"]


class TestTypeChecks:
    @pytest.mark.parametrize(
        ("value", "expected"),
        [
            (True, "boolean"),
            (1, "integer"),
            (1.5, "number"),
            ("s", "string"),
            ([], "array"),
            ({}, "object"),
            (None, "null"),
        ],
    )
    def test_json_type(self, value: Any, expected: str) -> None:
        assert json_type(value) == expected

    def test_boolean_is_not_integer(self, validator: SchemaValidator) -> None:
        issues = validator.validate_against_schema(True, Scalar(type="integer"))
        assert _messages(issues) == ["type mismatch: expected integer, got boolean"]

    def test_integral_float_is_integer(self, validator: SchemaValidator) -> None:
        assert validator.validate_against_schema(2.0, Scalar(type="integer")) == []

    def test_integer_is_number(self, validator: SchemaValidator) -> None:
        assert validator.validate_against_schema(2, Scalar(type="number")) == []

    def test_multi_type(self, validator: SchemaValidator) -> None:
        node = schema_from_dict({"type": ["string", "integer"]})
        assert validator.validate_against_schema(3, node) == []
        issues = validator.validate_against_schema(1.5, node)
        assert _messages(issues) == ["type mismatch: expected string | integer, got number"]

    def test_enum_distinguishes_bool_from_int(self, validator: SchemaValidator) -> None:
        node = schema_from_dict({"enum": [1, "one"]})
        assert validator.validate_against_schema(1, node) == []
        issues = validator.validate_against_schema(True, node)
        assert _messages(issues) == ["value True is not one of the allowed values"]


class TestConstraints:
    def test_string_length(self, validator: SchemaValidator) -> None:
        node = schema_from_dict({"type": "string", "minLength": 2, "maxLength": 3})
        assert _messages(validator.validate_against_schema("a", node)) == [
            "string is shorter than minLength 2"
        ]
        assert _messages(validator.validate_against_schema("abcd", node)) == [
            "string is longer than maxLength 3"
        ]

    def test_pattern(self, validator: SchemaValidator) -> None:
        node = schema_from_dict({"type": "string", "pattern": "^[a-z]+$"})
        assert validator.validate_against_schema("abc", node) == []
        assert _messages(validator.validate_against_schema("ABC", node)) == [
            "string does not match pattern '^[a-z]+$'"
        ]

    def test_invalid_pattern_becomes_warning(
        self, validator: SchemaValidator, caplog: pytest.LogCaptureFixture
    ) -> None:
        node = schema_from_dict({"type": "string", "pattern": "[unclosed"})
        with caplog.at_level(logging.WARNING, logger="specguard.schema.validator"):
            issues = validator.validate_against_schema("abc", node, path="$.code")
        assert issues == []
        assert len(validator.warnings) == 1
        assert validator.warnings[0].startswith("$.code: invalid pattern '[unclosed'")
        assert "invalid pattern" in caplog.text

    def test_invalid_pattern_keeps_other_checks(self, validator: SchemaValidator) -> None:
        node = schema_from_dict({"type": "string", "pattern": "(", "minLength": 5})
        issues = validator.validate_against_schema("abc", node)
        assert _messages(issues) == ["string is shorter than minLength 5"]

    def test_range(self, validator: SchemaValidator) -> None:
        node = schema_from_dict({"type": "integer", "minimum": 1, "maximum": 10})
        assert validator.validate_against_schema(1, node) == []
        assert _messages(validator.validate_against_schema(0, node)) == ["value is below minimum 1"]
        assert _messages(validator.validate_against_schema(11, node)) == ["value is above maximum 10"]

    def test_boolean_exclusive_bounds(self, validator: SchemaValidator) -> None:
        node = schema_from_dict(
            {"type": "number", "minimum": 0, "exclusiveMinimum": True}
        )
        assert _messages(validator.validate_against_schema(0, node)) == [
            "value is below exclusive minimum 0"
        ]

    def test_numeric_exclusive_bounds(self, validator: SchemaValidator) -> None:
        node = schema_from_dict({"type": "number", "exclusiveMaximum": 10})
        assert validator.validate_against_schema(9.5, node) == []
        assert _messages(validator.validate_against_schema(10, node)) == [
            "value must be less than 10"
        ]

    def test_array_bounds_and_item_paths(self, validator: SchemaValidator) -> None:
        node = schema_from_dict(
            {"type": "array", "items": {"type": "string"}, "maxItems": 2}
        )
        issues = validator.validate_against_schema(["a", 1, "c"], node)
        assert [(i.path, i.message) for i in issues] == [
            ("$", "array has more than maxItems 2"),
            ("$[1]", "type mismatch: expected string, got integer"),
        ]


class TestObjects:
    SCHEMA = schema_from_dict(
        {
            "type": "object",
            "properties": {
                "id": {"type": "integer"},
                "tags": {"type": "array", "items": {"type": "string"}},
                "owner": {
                    "type": "object",
                    "properties": {"name": {"type": "string"}},
                    "required": ["name"],
                },
            },
            "required": ["id"],
            "additionalProperties": False,
        }
    )

    def test_valid(self, validator: SchemaValidator) -> None:
        data = {"id": 1, "tags": ["a"], "owner": {"name": "x"}}
        assert validator.validate_against_schema(data, self.SCHEMA) == []

    def test_issue_paths(self, validator: SchemaValidator) -> None:
        data = {"tags": ["a", 2], "owner": {}, "color": "red"}
        issues = validator.validate_against_schema(data, self.SCHEMA)
        assert [(i.path, i.message) for i in issues] == [
            ("$.id", "missing required property"),
            ("$.color", "additional property is not allowed"),
            ("$.tags[1]", "type mismatch: expected string, got integer"),
            ("$.owner.name", "missing required property"),
        ]

    def test_additional_properties_schema(self, validator: SchemaValidator) -> None:
        node = schema_from_dict({"type": "object", "additionalProperties": {"type": "integer"}})
        issues = validator.validate_against_schema({"a": 1, "b": "x"}, node)
        assert [(i.path, i.message) for i in issues] == [
            ("$.b", "type mismatch: expected integer, got string")
        ]


class TestReferences:
    def test_fixture_pet_valid(self, registry: SchemaRegistry) -> None:
        data = {"id": 1, "name": "Rex", "status": "available", "tag": None}
        assert validate(data, RefSchema(ref="#/components/schemas/Pet"), registry) == []

    def test_fixture_pet_invalid(self, registry: SchemaRegistry) -> None:
        data = {"id": "1", "name": "", "status": "lost"}
        issues = validate(data, RefSchema(ref="#/components/schemas/Pet"), registry)
        assert [i.path for i in issues] == ["$.id", "$.name", "$.status"]

    def test_recursive_schema_terminates(self, registry: SchemaRegistry) -> None:
        data = {
            "id": 1,
            "name": "Rex",
            "owner": {
                "name": "Ann",
                "pets": [
                    {"id": 2, "name": "Fido"},
                    {"id": "bad", "name": "Spot", "owner": {"name": "Bob", "pets": []}},
                ],
            },
        }
        issues = validate(data, RefSchema(ref="#/components/schemas/Pet"), registry)
        assert [(i.path, i.message) for i in issues] == [
            ("$.owner.pets[1].id", "type mismatch: expected integer, got string")
        ]

    def test_alias_chain_cycle_terminates(self) -> None:
        registry = SchemaRegistry()
        registry.register("#/components/schemas/A", {"$ref": "#/components/schemas/B"})
        registry.register("#/components/schemas/B", {"$ref": "#/components/schemas/A"})
        assert validate({"x": 1}, RefSchema(ref="#/components/schemas/A"), registry) == []

    def test_self_reference_in_combinator_terminates(self) -> None:
        registry = SchemaRegistry()
        registry.register(
            "#/components/schemas/Node",
            {"anyOf": [{"type": "string"}, {"$ref": "#/components/schemas/Node"}]},
        )
        node = RefSchema(ref="#/components/schemas/Node")
        # The inner marker constrains nothing, so anyOf is satisfied through it.
        assert validate(5, node, registry) == []
        assert validate("leaf", node, registry) == []

    def test_self_reference_under_all_of_terminates(self) -> None:
        registry = SchemaRegistry()
        registry.register(
            "#/components/schemas/Node",
            {
                "oneOf": [
                    {"type": "integer"},
                    {"allOf": [{"$ref": "#/components/schemas/Node"}]},
                ]
            },
        )
        issues = validate("x", RefSchema(ref="#/components/schemas/Node"), registry)
        assert issues == []

    def test_cycle_guard_is_per_data_path(self) -> None:
        registry = SchemaRegistry()
        registry.register(
            "#/components/schemas/Tree",
            {
                "anyOf": [
                    {"type": "integer"},
                    {"type": "array", "items": {"$ref": "#/components/schemas/Tree"}},
                ]
            },
        )
        tree = RefSchema(ref="#/components/schemas/Tree")
        assert validate([1, [2, [3]]], tree, registry) == []
        assert _messages(validate([1, ["x"]], tree, registry)) == [
            "anyOf: does not match any schema (2 schemas checked)"
        ]

    def test_unknown_ref_accepts_anything(self) -> None:
        assert validate({"x": 1}, RefSchema(ref="#/components/schemas/Nope")) == []


class TestStrictness:
    SCHEMA = schema_from_dict(
        {
            "type": "object",
            "properties": {
                "id": {"type": "integer"},
                "nested": {"type": "object", "properties": {"x": {"type": "string"}}},
            },
        }
    )

    def test_no_additional_properties(self) -> None:
        issues = validate(
            {"id": 1, "extra": True, "nested": {"y": 1}},
            self.SCHEMA,
            strictness=StrictnessOptions(no_additional_properties=True),
        )
        assert [i.path for i in issues] == ["$.extra", "$.nested.y"]

    def test_all_properties_required(self) -> None:
        issues = validate(
            {"nested": {}},
            self.SCHEMA,
            strictness=StrictnessOptions(all_properties_required=True),
        )
        assert [i.path for i in issues] == ["$.id", "$.nested.x"]

    def test_default_is_lenient(self) -> None:
        assert validate({"extra": 1, "nested": {}}, self.SCHEMA) == []
