"""
Unit tests for dbexplorer.persistence.entity_store
"""

from __future__ import annotations

import json
import os

import pytest

from dbexplorer.models import (
    Column,
    DocumentWriteError,
    EntityKind,
    EntityNotFoundError,
    MalformedDocumentError,
    StoredProcedure,
    Table,
    View,
)
from dbexplorer.persistence.entity_store import (
    MAX_FILE_NAME_LENGTH,
    entity_file_name,
    entity_to_dict,
    load_entity,
    save_entity,
)


# ---------------------------------------------------------------------------
# File naming
# ---------------------------------------------------------------------------

class TestEntityFileName:

    def test_plain_names(self):
        assert entity_file_name("dbo", "Orders") == "dbo.Orders.json"

    def test_deterministic(self):
        assert entity_file_name("dbo", "Orders") == entity_file_name("dbo", "Orders")

    def test_dots_do_not_collide(self):
        assert entity_file_name("a.b", "c") != entity_file_name("a", "b.c")

    def test_path_separators_escaped(self):
        name = entity_file_name("dbo", "weird/name")
        assert "/" not in name and "\\" not in name

    def test_long_non_ascii_name_is_bounded(self):
        long_name = "客户订单明细" * 5
        file_name = entity_file_name("dbo", long_name)
        assert len(file_name.encode("utf-8")) <= MAX_FILE_NAME_LENGTH
        assert file_name.endswith(".json")
        assert file_name == entity_file_name("dbo", long_name)

    def test_long_names_differing_at_the_end_stay_distinct(self):
        a = entity_file_name("dbo", "客" * 100 + "a")
        b = entity_file_name("dbo", "客" * 100 + "b")
        assert a != b

    def test_occurrence_suffix(self):
        assert entity_file_name("dbo", "T", 1) == "dbo.T.json"
        assert entity_file_name("dbo", "T", 2) == "dbo.T.2.json"
        assert entity_file_name("dbo", "T", 2) != entity_file_name("dbo", "T.2")


# ---------------------------------------------------------------------------
# Save / load
# ---------------------------------------------------------------------------

class TestSaveLoad:

    def test_save_returns_path_and_writes_document(self, tmp_path):
        t = Table("dbo", "Orders", columns=[Column("Id", "int", False, 0)])
        path = save_entity(t, str(tmp_path))
        assert path == os.path.join(str(tmp_path), "dbo.Orders.json")
        data = json.loads(open(path, encoding="utf-8").read())
        assert data["schema"] == "dbo"
        assert data["name"] == "Orders"
        assert "description" not in data
        assert data["columns"] == [
            {"name": "Id", "type": "int", "nullable": False, "ordinal": 0}
        ]

    def test_empty_description_is_kept(self, tmp_path):
        t = Table("dbo", "Orders", description="")
        path = save_entity(t, str(tmp_path))
        loaded = load_entity(path, EntityKind.TABLE)
        assert loaded.description == ""

    def test_absent_description_stays_absent(self, tmp_path):
        path = save_entity(Table("dbo", "Orders"), str(tmp_path))
        assert load_entity(path, EntityKind.TABLE).description is None

    def test_save_overwrites(self, tmp_path):
        t = Table("dbo", "Orders", description="old")
        save_entity(t, str(tmp_path))
        t.description = "new"
        path = save_entity(t, str(tmp_path))
        assert load_entity(path, EntityKind.TABLE).description == "new"
        assert os.listdir(tmp_path) == ["dbo.Orders.json"]

    def test_long_non_ascii_name_round_trips(self, tmp_path):
        t = Table("dbo", "客户订单明细" * 5, description="订单")
        path = save_entity(t, str(tmp_path))
        loaded = load_entity(path, EntityKind.TABLE, expected=t.identity)
        assert loaded.name == t.name
        assert loaded.description == "订单"

    def test_explicit_file_name(self, tmp_path):
        path = save_entity(Table("dbo", "Orders"), str(tmp_path), "dbo.Orders.2.json")
        assert os.path.basename(path) == "dbo.Orders.2.json"
        assert load_entity(path, EntityKind.TABLE).name == "Orders"

    def test_stored_procedure_fields(self, tmp_path):
        p = StoredProcedure("dbo", "usp_Get", definition="SELECT 1",
                            parameters="@Id int", procedure_type="SQL_STORED_PROCEDURE")
        p.semantic_description = "Gets one."
        loaded = load_entity(save_entity(p, str(tmp_path)), EntityKind.STORED_PROCEDURE)
        assert isinstance(loaded, StoredProcedure)
        assert loaded.definition == "SELECT 1"
        assert loaded.parameters == "@Id int"
        assert loaded.procedure_type == "SQL_STORED_PROCEDURE"
        assert loaded.semantic_description == "Gets one."

    def test_view_definition(self, tmp_path):
        v = View("dbo", "V", definition="SELECT 1 AS x")
        loaded = load_entity(save_entity(v, str(tmp_path)), EntityKind.VIEW)
        assert isinstance(loaded, View)
        assert loaded.definition == "SELECT 1 AS x"

    def test_optional_column_fields(self, sample_model, tmp_path):
        orders = sample_model.find_table("dbo", "Orders")
        loaded = load_entity(save_entity(orders, str(tmp_path)), EntityKind.TABLE)
        assert loaded.columns == orders.columns
        assert loaded.indexes == orders.indexes
        doc = entity_to_dict(orders)
        assert doc["columns"][1]["referencedTable"] == "dbo.Customers"
        assert "maxLength" not in doc["columns"][0]


# ---------------------------------------------------------------------------
# Failure modes
# ---------------------------------------------------------------------------

class TestLoadFailures:

    def test_missing_file(self, tmp_path):
        with pytest.raises(EntityNotFoundError):
            load_entity(str(tmp_path / "nope.json"), EntityKind.TABLE)

    def test_invalid_json(self, tmp_path):
        p = tmp_path / "bad.json"
        p.write_text("{not json", encoding="utf-8")
        with pytest.raises(MalformedDocumentError):
            load_entity(str(p), EntityKind.TABLE)

    def test_missing_required_field(self, tmp_path):
        p = tmp_path / "bad.json"
        p.write_text(json.dumps({"schema": "dbo", "columns": []}), encoding="utf-8")
        with pytest.raises(MalformedDocumentError):
            load_entity(str(p), EntityKind.TABLE)

    def test_bad_column(self, tmp_path):
        p = tmp_path / "bad.json"
        p.write_text(json.dumps({
            "schema": "dbo", "name": "T",
            "columns": [{"name": "Id", "type": "int", "nullable": "no", "ordinal": 0}],
        }), encoding="utf-8")
        with pytest.raises(MalformedDocumentError):
            load_entity(str(p), EntityKind.TABLE)

    def test_not_an_object(self, tmp_path):
        p = tmp_path / "bad.json"
        p.write_text("[]", encoding="utf-8")
        with pytest.raises(MalformedDocumentError):
            load_entity(str(p), EntityKind.TABLE)

    def test_identity_mismatch(self, tmp_path):
        path = save_entity(Table("dbo", "Orders"), str(tmp_path))
        with pytest.raises(MalformedDocumentError):
            load_entity(path, EntityKind.TABLE, expected=("dbo", "Customers"))

    def test_write_failure_is_a_domain_error(self, tmp_path):
        with pytest.raises(DocumentWriteError):
            save_entity(Table("dbo", "Orders"), str(tmp_path / "missing-dir"))
        assert not (tmp_path / "missing-dir").exists()

    def test_not_found_is_distinct_from_malformed(self):
        assert not issubclass(EntityNotFoundError, MalformedDocumentError)
        assert not issubclass(MalformedDocumentError, EntityNotFoundError)
