"""
Tests for SemanticModel.accept and the visitor contract.
"""

from __future__ import annotations

from dbexplorer.models import SemanticModelVisitor


class CountingVisitor(SemanticModelVisitor):
    """Records entity-level callbacks only."""

    def __init__(self):
        self.calls: list[tuple[str, str]] = []

    def visit_semantic_model(self, model):
        self.calls.append(("model", model.name))

    def visit_table(self, table):
        self.calls.append(("table", table.name))

    def visit_view(self, view):
        self.calls.append(("view", view.name))

    def visit_stored_procedure(self, procedure):
        self.calls.append(("storedprocedure", procedure.name))


class ColumnVisitor(SemanticModelVisitor):

    def __init__(self):
        self.columns: list[str] = []

    def visit_column(self, entity, column):
        self.columns.append(f"{entity.name}.{column.name}")


def test_visits_model_first_then_collections_in_order(sample_model):
    v = CountingVisitor()
    sample_model.accept(v)
    assert v.calls == [
        ("model", "db1"),
        ("table", "Orders"),
        ("table", "Customers"),
        ("view", "OpenOrders"),
        ("storedprocedure", "usp_GetOrder"),
    ]


def test_each_entity_visited_exactly_once(sample_model):
    v = CountingVisitor()
    sample_model.accept(v)
    entity_calls = [c for c in v.calls if c[0] != "model"]
    assert len(entity_calls) == len(list(sample_model.all_entities()))
    assert sum(1 for c in v.calls if c[0] == "model") == 1


def test_entity_level_visitor_sees_no_columns(sample_model):
    v = CountingVisitor()
    sample_model.accept(v)
    assert all(kind != "column" for kind, _ in v.calls)


def test_column_visitor_walks_columns_in_order(sample_model):
    v = ColumnVisitor()
    sample_model.accept(v)
    assert v.columns == [
        "Orders.Id", "Orders.CustomerId", "Orders.Notes",
        "Customers.Id", "Customers.Name",
        "OpenOrders.Id",
    ]


def test_base_visitor_is_a_no_op(sample_model):
    sample_model.accept(SemanticModelVisitor())


def test_entity_accept_alone(sample_model):
    v = CountingVisitor()
    sample_model.find_view("sales", "OpenOrders").accept(v)
    assert v.calls == [("view", "OpenOrders")]
