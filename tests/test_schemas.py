import json

import pytest

from api.schemas import DEFAULT_SCHEMAS, load_schemas, validate_schemas


def test_default_tables():
    schemas = load_schemas()
    assert schemas.columns("SKUs") == ["id", "name", "month", "forecast"]
    assert schemas.columns("Deliveries") == ["id", "date", "sku", "lot", "qty"]
    assert schemas.columns("Plans") == ["id", "date", "sku", "qty"]
    assert sorted(schemas.tables) == sorted(DEFAULT_SCHEMAS)


def test_unknown_table_gets_id_only():
    schemas = load_schemas()
    assert "Returns" not in schemas
    assert schemas.columns("Returns") == ["id"]


def test_columns_returns_a_copy():
    schemas = load_schemas()
    schemas.columns("Plans").append("extra")
    assert schemas.columns("Plans") == ["id", "date", "sku", "qty"]


def test_env_override(monkeypatch):
    monkeypatch.setenv("TABLE_SCHEMAS", json.dumps({"Stock": ["id", "sku", "on_hand"]}))
    schemas = load_schemas()
    assert schemas.tables == ["Stock"]
    assert schemas.columns("Stock") == ["id", "sku", "on_hand"]
    # Defaults are replaced, not merged
    assert schemas.columns("SKUs") == ["id"]


@pytest.mark.parametrize(
    "tables, fragment",
    [
        (["id"], "must be an object"),
        ({"Plans": []}, "at least one column"),
        ({"Plans": ["id", ""]}, "invalid column"),
        ({"Plans": ["id", 3]}, "invalid column"),
        ({"Plans": ["id", "qty", "qty"]}, "duplicate"),
        ({"Plans": ["date", "id"]}, "must start with"),
    ],
)
def test_validation_errors(tables, fragment):
    with pytest.raises(ValueError) as exc:
        validate_schemas(tables)
    assert fragment in str(exc.value)


def test_invalid_json():
    with pytest.raises(ValueError) as exc:
        load_schemas("{not json")
    assert "not valid JSON" in str(exc.value)
