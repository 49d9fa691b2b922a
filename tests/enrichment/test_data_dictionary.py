"""
Unit tests for dbexplorer.enrichment.data_dictionary
"""

from __future__ import annotations

import pytest

from dbexplorer.enrichment.data_dictionary import (
    apply_data_dictionary,
    load_data_dictionaries,
    load_data_dictionary,
)
from dbexplorer.models import MalformedDocumentError


ORDERS_YAML = """\
schema: dbo
name: Orders
description: One row per customer order.
columns:
  Id: Surrogate key.
  CustomerId: Customer placing the order.
  Missing: Not a real column.
"""

LIST_YAML = """\
tables:
  - schema: dbo
    name: Customers
    description: Customers of the shop.
    columns:
      - name: Name
        description: Full name.
  - schema: dbo
    name: Ghost
    description: Not in the model.
"""


@pytest.fixture
def dict_dir(tmp_path):
    (tmp_path / "orders.yaml").write_text(ORDERS_YAML, encoding="utf-8")
    (tmp_path / "more.yaml").write_text(LIST_YAML, encoding="utf-8")
    return tmp_path


class TestLoad:

    def test_single_mapping(self, dict_dir):
        entries = load_data_dictionary(str(dict_dir / "orders.yaml"))
        assert len(entries) == 1
        assert entries[0].ref == ("dbo", "Orders")
        assert entries[0].columns["Id"] == "Surrogate key."

    def test_tables_list(self, dict_dir):
        entries = load_data_dictionary(str(dict_dir / "more.yaml"))
        assert [e.name for e in entries] == ["Customers", "Ghost"]
        assert entries[0].columns == {"Name": "Full name."}

    def test_json_is_yaml(self, tmp_path):
        p = tmp_path / "d.json"
        p.write_text('[{"schema": "dbo", "name": "T", "description": "x"}]',
                     encoding="utf-8")
        assert load_data_dictionary(str(p))[0].description == "x"

    def test_glob_sorted(self, dict_dir):
        entries = load_data_dictionaries(str(dict_dir / "*.yaml"))
        # more.yaml sorts before orders.yaml
        assert [e.name for e in entries] == ["Customers", "Ghost", "Orders"]

    def test_directories_matching_the_glob_are_skipped(self, dict_dir):
        (dict_dir / "archive.yaml").mkdir()
        entries = load_data_dictionaries(str(dict_dir / "*.yaml"))
        assert [e.name for e in entries] == ["Customers", "Ghost", "Orders"]

    def test_no_matches(self, tmp_path):
        assert load_data_dictionaries(str(tmp_path / "*.yaml")) == []

    @pytest.mark.parametrize("content", [
        "schema: [unclosed",
        "just a string",
        "- schema: dbo\n",
        "schema: dbo\nname: T\ncolumns: 5\n",
    ])
    def test_malformed(self, tmp_path, content):
        p = tmp_path / "bad.yaml"
        p.write_text(content, encoding="utf-8")
        with pytest.raises(MalformedDocumentError):
            load_data_dictionary(str(p))


class TestApply:

    def test_applies_descriptions(self, sample_model, dict_dir):
        updated = apply_data_dictionary(sample_model, str(dict_dir / "*.yaml"))
        assert [t.name for t in updated] == ["Customers", "Orders"]
        orders = sample_model.find_table("dbo", "Orders")
        assert orders.description == "One row per customer order."
        assert orders.find_column("Id").description == "Surrogate key."
        assert orders.find_column("Notes").description is None
        customers = sample_model.find_table("dbo", "Customers")
        assert customers.description == "Customers of the shop."
        assert customers.find_column("Name").description == "Full name."

    def test_unmatched_entries_are_warned(self, sample_model, dict_dir, caplog):
        apply_data_dictionary(sample_model, str(dict_dir / "*.yaml"))
        assert "[dbo].[Ghost] not in model" in caplog.text
        assert "Missing not in [dbo].[Orders]" in caplog.text

    def test_filter_by_name(self, sample_model, dict_dir):
        updated = apply_data_dictionary(sample_model, str(dict_dir / "*.yaml"),
                                        schema="dbo", name="Orders")
        assert [t.name for t in updated] == ["Orders"]
        assert sample_model.find_table("dbo", "Customers").description == ""

    def test_views_untouched(self, sample_model, tmp_path):
        (tmp_path / "v.yaml").write_text(
            "schema: sales\nname: OpenOrders\ndescription: changed\n", encoding="utf-8")
        assert apply_data_dictionary(sample_model, str(tmp_path / "*.yaml")) == []
        assert sample_model.find_view("sales", "OpenOrders").description == "Orders not yet shipped"
