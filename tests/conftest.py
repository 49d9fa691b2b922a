"""
Shared fixtures for the dbexplorer test suite.
"""

from __future__ import annotations

import sqlite3

import pytest

from dbexplorer.models import Column, Index, SemanticModel, StoredProcedure, Table, View


@pytest.fixture
def sample_model() -> SemanticModel:
    """A small model with two tables, a view and a stored procedure."""
    model = SemanticModel("db1", "Server=localhost;Database=db1", "Sales database")

    orders = Table("dbo", "Orders", columns=[
        Column("Id", "int", nullable=False, ordinal=0, is_primary_key=True),
        Column("CustomerId", "int", nullable=False, ordinal=1,
               referenced_table="dbo.Customers", referenced_column="Id"),
        Column("Notes", "nvarchar(200)", nullable=True, ordinal=2, max_length=200),
    ], indexes=[Index("PK_Orders", "clustered", ["Id"], is_unique=True, is_primary_key=True)])
    customers = Table("dbo", "Customers", description="", columns=[
        Column("Id", "int", nullable=False, ordinal=0, is_primary_key=True),
        Column("Name", "nvarchar(100)", nullable=False, ordinal=1),
    ])
    customers.semantic_description = "People who buy things."
    customers.semantic_description_last_update = "2026-01-01T00:00:00Z"

    view = View("sales", "OpenOrders", description="Orders not yet shipped",
                columns=[Column("Id", "int", nullable=False, ordinal=0)],
                definition="SELECT Id FROM dbo.Orders WHERE ShippedAt IS NULL")
    proc = StoredProcedure("dbo", "usp_GetOrder",
                           definition="SELECT * FROM dbo.Orders WHERE Id = @Id",
                           parameters="@Id int",
                           procedure_type="SQL_STORED_PROCEDURE")

    model.add_table(orders)
    model.add_table(customers)
    model.add_view(view)
    model.add_stored_procedure(proc)
    return model


SQLITE_DDL = """
CREATE TABLE customers (
    id INTEGER PRIMARY KEY,
    name VARCHAR(100) NOT NULL
);
CREATE TABLE orders (
    id INTEGER PRIMARY KEY,
    customer_id INTEGER NOT NULL REFERENCES customers(id),
    total DECIMAL(10,2),
    note TEXT
);
CREATE UNIQUE INDEX ix_orders_customer ON orders(customer_id);
CREATE VIEW big_orders AS SELECT id, total FROM orders WHERE total > 100;
"""


@pytest.fixture
def sqlite_db(tmp_path) -> str:
    """Path to a small SQLite database with two tables and a view."""
    path = tmp_path / "shop.db"
    conn = sqlite3.connect(str(path))
    try:
        conn.executescript(SQLITE_DDL)
        conn.commit()
    finally:
        conn.close()
    return str(path)
