"""Unit tests for shared tool parameter validation and catalog filtering."""

import pytest

from taskpilot.tools.schema import ToolInputSchema, ToolSpec
from taskpilot.tools.validation import filter_catalog, validate_parameters


@pytest.fixture
def search_spec():
    return ToolSpec(
        name="search",
        description="Search the web for documents",
        input_schema=ToolInputSchema(
            properties={
                "query": {"type": "string"},
                "limit": {"type": "integer"},
                "threshold": {"type": "number"},
                "exact": {"type": "boolean"},
                "filters": {"type": "object"},
                "tags": {"type": "array"},
                "anything": {},
                "custom": {"type": "uuid"},
            },
            required=["query"],
        ),
    )


class TestValidateParameters:
    def test_valid_parameters(self, search_spec):
        result = validate_parameters(search_spec, "search", {"query": "python", "limit": 5})
        assert result.valid is True
        assert result.errors is None

    def test_unknown_tool(self):
        result = validate_parameters(None, "ghost", {})
        assert result.valid is False
        assert result.errors == ["unknown tool: ghost"]

    @pytest.mark.parametrize("params", [None, ["query"], "query", 3])
    def test_non_object_parameters(self, search_spec, params):
        result = validate_parameters(search_spec, "search", params)
        assert result.valid is False
        assert result.errors == ["parameters must be an object"]

    def test_all_errors_are_reported(self, search_spec):
        result = validate_parameters(search_spec, "search", {"limit": "ten", "extra": 1})
        assert result.valid is False
        assert "missing required parameter: query" in result.errors
        assert "unknown parameter: extra" in result.errors
        assert any(error.startswith("invalid type for parameter limit") for error in result.errors)
        assert len(result.errors) == 3

    def test_boolean_is_not_a_number(self, search_spec):
        result = validate_parameters(search_spec, "search", {"query": "q", "limit": True, "threshold": False})
        assert result.valid is False
        assert len(result.errors) == 2

    def test_zero_fraction_float_is_an_integer(self, search_spec):
        assert validate_parameters(search_spec, "search", {"query": "q", "limit": 3.0}).valid is True
        result = validate_parameters(search_spec, "search", {"query": "q", "limit": 3.5})
        assert result.errors == ["invalid type for parameter limit: expected integer, got number"]

    @pytest.mark.parametrize("field", ["limit", "threshold"])
    def test_nan_is_not_a_number(self, search_spec, field):
        result = validate_parameters(search_spec, "search", {"query": "q", field: float("nan")})
        assert result.valid is False

    def test_integer_is_a_number(self, search_spec):
        result = validate_parameters(search_spec, "search", {"query": "q", "threshold": 1})
        assert result.valid is True

    def test_object_and_array_types(self, search_spec):
        ok = validate_parameters(search_spec, "search", {"query": "q", "filters": {"a": 1}, "tags": ["x"]})
        bad = validate_parameters(search_spec, "search", {"query": "q", "filters": [], "tags": {}})
        assert ok.valid is True
        assert bad.valid is False
        assert len(bad.errors) == 2

    def test_unknown_and_absent_types_pass(self, search_spec):
        result = validate_parameters(search_spec, "search", {"query": "q", "anything": object(), "custom": 42})
        assert result.valid is True

    def test_type_list_accepts_any_member(self):
        spec = ToolSpec(
            name="t",
            input_schema=ToolInputSchema(properties={"value": {"type": ["string", "null"]}}),
        )
        assert validate_parameters(spec, "t", {"value": None}).valid is True
        assert validate_parameters(spec, "t", {"value": "x"}).valid is True
        assert validate_parameters(spec, "t", {"value": 1}).valid is False


class TestFilterCatalog:
    @pytest.fixture
    def specs(self):
        return [
            ToolSpec(name="web_search", description="Search the web"),
            ToolSpec(name="calculator", description="Evaluate arithmetic"),
            ToolSpec(name="now", description="Current time"),
        ]

    def test_blank_query_returns_head(self, specs):
        assert [s.name for s in filter_catalog(specs, "", 2)] == ["web_search", "calculator"]
        assert len(filter_catalog(specs, None, 10)) == 3

    def test_matches_name_and_description_case_insensitively(self, specs):
        assert [s.name for s in filter_catalog(specs, "SEARCH", 10)] == ["web_search"]
        assert [s.name for s in filter_catalog(specs, "arith", 10)] == ["calculator"]

    def test_limit_is_applied(self, specs):
        assert filter_catalog(specs, "e", 1) == specs[:1]


class TestFromJsonSchema:
    def test_boolean_property_schema_accepts_anything(self):
        spec = ToolSpec.from_json_schema("t", "", {
            "type": "object",
            "properties": {"payload": True, "count": {"type": "integer"}},
            "required": ["count", 7],
        })

        assert spec.input_schema.properties["payload"] == {}
        assert spec.input_schema.required == ["count"]
        assert validate_parameters(spec, "t", {"count": 1, "payload": [1, 2]}).valid is True

    def test_type_list_with_non_string_entries(self):
        spec = ToolSpec.from_json_schema("t", "", {"properties": {"value": {"type": ["string", 5, {"x": 1}]}}})

        assert validate_parameters(spec, "t", {"value": "ok"}).valid is True
        result = validate_parameters(spec, "t", {"value": 1})
        assert result.errors == ["invalid type for parameter value: expected string|5|{'x': 1}, got integer"]
