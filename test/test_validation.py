import pytest

from pgrest.core.config import Pagination
from pgrest.core.errors import ValidationError
from pgrest.core.validation import SchemaValidator, get_filter_values

from conftest import sessions_config

VALID_ID = "0b0a4a0e-6f4b-4b57-9f36-34e1c1b0b1d2"


@pytest.fixture
def validator() -> SchemaValidator:
    return SchemaValidator(sessions_config())


class TestFilterValues:
    def test_flat_filter_is_unchanged(self):
        flat = {"ip": "a", "email": None, "session_id": ["x", "y"]}
        assert get_filter_values(flat) == flat
        assert get_filter_values(get_filter_values(flat)) == flat

    def test_operator_values_are_flattened(self):
        assert get_filter_values({"ip": {"$or": ["a", "b"]}}) == {"ip": ["a", "b"]}
        assert get_filter_values({"date_created": {"$gte": "x", "$lt": "y"}}) == {
            "date_created": ["x", "y"]
        }

    def test_patterns_and_null_flags_are_skipped(self):
        assert get_filter_values({"email": {"$like": "%@x"}, "ip": {"$notNull": True}}) == {
            "email": [],
            "ip": [],
        }


class TestFilter:
    def test_accepts_values_of_the_field_type(self, validator):
        validator.validate_filter({"session_id": [VALID_ID], "ip": {"$in": ["a", "b"]}})

    def test_accepts_json_path_and_logical_keys(self, validator):
        validator.validate_filter({"session_data->>username": "bob", "$or": [{"ip": "a"}]})

    def test_rejects_wrong_type(self, validator):
        with pytest.raises(ValidationError):
            validator.validate_filter({"ip": {"$in": [1, 2]}})

    def test_rejects_invalid_guid(self, validator):
        with pytest.raises(ValidationError) as e:
            validator.validate_filter({"session_id": "not-a-guid"})
        assert "session_id" in e.value.message


class TestCreate:
    def test_server_generated_key_is_forbidden(self, validator):
        with pytest.raises(ValidationError) as e:
            validator.validate_create({"session_id": VALID_ID, "ip": "a", "session_data": "{}"})
        assert e.value.details[0]["field"] == "session_id"

    def test_required_fields(self, validator):
        with pytest.raises(ValidationError):
            validator.validate_create({"ip": "a"})

    def test_unknown_field(self, validator):
        with pytest.raises(ValidationError):
            validator.validate_create({"ip": "a", "session_data": "{}", "nope": 1})

    def test_transforms_are_applied(self, validator):
        data = validator.validate_create(
            {"ip": "a", "session_data": "{}", "email": "  Bob@Example.COM "}
        )
        assert data == {"ip": "a", "session_data": "{}", "email": "bob@example.com"}

    def test_multi_row(self, validator):
        rows = validator.validate_create(
            [{"ip": "a", "session_data": "{}"}, {"ip": "b", "session_data": "{}"}]
        )
        assert [row["ip"] for row in rows] == ["a", "b"]

    def test_multi_row_error_names_row(self, validator):
        with pytest.raises(ValidationError) as e:
            validator.validate_create(
                [{"ip": "a", "session_data": "{}"}, {"ip": 2, "session_data": "{}"}]
            )
        assert e.value.details[0]["field"] == "1.ip"

    def test_multi_row_keys_must_match(self, validator):
        with pytest.raises(ValidationError, match="same keys"):
            validator.validate_create(
                [{"ip": "a", "session_data": "{}"}, {"ip": "b", "session_data": "{}", "email": "a@b.co"}]
            )

    @pytest.mark.parametrize("payload", [[], "text", 5, [1, 2]])
    def test_bad_shapes(self, validator, payload):
        with pytest.raises(ValidationError):
            validator.validate_create(payload)


class TestUpdate:
    def test_partial_update(self, validator):
        assert validator.validate_update({"ip": "b"}) == {"ip": "b"}

    def test_type_mismatch(self, validator):
        with pytest.raises(ValidationError):
            validator.validate_update({"ip": 123})

    def test_primary_key_cannot_change(self, validator):
        with pytest.raises(ValidationError):
            validator.validate_update({"session_id": VALID_ID})

    @pytest.mark.parametrize("payload", [{}, [], None])
    def test_empty_or_non_object(self, validator, payload):
        with pytest.raises(ValidationError):
            validator.validate_update(payload)


class TestSortPaginationColumns:
    def test_sort(self, validator):
        validator.validate_sort({"date_created": -1, "session_data->>username": 1})

    def test_sort_unknown_field(self, validator):
        with pytest.raises(ValidationError, match="Sort field 'foo' not defined"):
            validator.validate_sort({"foo": 1})

    @pytest.mark.parametrize("direction", [0, 2, "asc", True])
    def test_sort_direction(self, validator, direction):
        with pytest.raises(ValidationError):
            validator.validate_sort({"ip": direction})

    def test_pagination(self, validator):
        pagination = validator.validate_pagination({"page": 2, "perPage": 5})
        assert pagination == Pagination(page=2, per_page=5)
        assert pagination.offset == 5
        assert validator.validate_pagination(None) is None

    @pytest.mark.parametrize("value", [{"page": 0}, {"perPage": 5}, {"page": "x"}, {"page": 1, "size": 2}])
    def test_bad_pagination(self, validator, value):
        with pytest.raises(ValidationError, match="Pagination must contain"):
            validator.validate_pagination(value)

    def test_columns(self, validator):
        validator.validate_columns(["ip", "email"])
        with pytest.raises(ValidationError, match="Column 'password'"):
            validator.validate_columns(["ip", "password"])


def test_json_schema(validator):
    schema = validator.json_schema()
    assert schema["title"] == "sessions"
    assert schema["type"] == "object"
    assert set(schema["properties"]) == {
        "session_id", "session_data", "ip", "date_created", "date_updated", "email"
    }
    assert schema["properties"]["ip"] == {"type": "string"}
    assert schema["required"] == ["session_data", "ip"]
