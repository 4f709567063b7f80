"""
Tests for Query.evaluate: table resolution, verb folding and error propagation.
"""

import pyarrow as pa
import pytest

from tablequery import (
    ColumnNotFoundError,
    Table,
    TableNotFoundError,
    query,
)


def ids(table):
    return table.column("id").to_pylist()


# =============================================================================
# Table Resolution
# =============================================================================

class TestTableResolution:
    """Tests for resolving the input table."""

    def test_empty_pipeline_returns_catalog_table(self, catalog):
        result = query("orders").evaluate(None, catalog)
        assert result is catalog("orders")

    def test_empty_pipeline_returns_input_table(self, orders):
        assert query().evaluate(orders) is orders

    def test_plain_function_catalog(self, orders):
        tables = {"orders": orders.data}
        result = query("orders").filter("amount > 20").evaluate(catalog=lambda name: tables[name])
        assert isinstance(result, Table)
        assert ids(result) == [2, 3]

    def test_raw_arrow_input_is_wrapped(self, orders):
        result = query().evaluate(orders.data)
        assert isinstance(result, Table)
        assert result == orders

    def test_explicit_table_skips_catalog(self, orders):
        def catalog(name):
            raise AssertionError("catalog must not be called")

        result = query("missing").select("id").evaluate(orders, catalog)
        assert ids(result) == [1, 2, 3, 4]

    def test_empty_table_is_valid_input(self, catalog):
        empty = Table(pa.table({"amount": pa.array([], pa.int64())}))
        result = query("orders").filter("amount > 1").evaluate(empty, catalog)
        assert result.num_rows == 0

    def test_no_table_and_no_catalog(self):
        with pytest.raises(TableNotFoundError):
            query("orders").evaluate()

    def test_unknown_table(self, catalog):
        with pytest.raises(TableNotFoundError, match="'missing'"):
            query("missing").evaluate(catalog=catalog)

    def test_no_table_name(self, catalog):
        with pytest.raises(LookupError):
            query().evaluate(catalog=catalog)

    def test_catalog_errors_propagate(self):
        def catalog(name):
            raise RuntimeError(f"cannot reach {name}")

        with pytest.raises(RuntimeError, match="cannot reach orders"):
            query("orders").filter("amount > 1").evaluate(catalog=catalog)


# =============================================================================
# Folding
# =============================================================================

class TestFolding:
    """Tests for applying verbs left to right."""

    def test_verbs_applied_in_order(self, catalog):
        q = query("orders").derive({"double": "amount * 2"}).filter("double > 40")
        assert ids(q.evaluate(catalog=catalog)) == [2, 3]

    def test_order_matters(self, catalog):
        q = query("orders").filter("double > 40").derive({"double": "amount * 2"})
        with pytest.raises(ColumnNotFoundError):
            q.evaluate(catalog=catalog)

    def test_multi_stage_pipeline(self, catalog):
        q = (
            query("orders")
            .filter("amount >= 10")
            .rollup({"total": "sum(amount)"}, groupby="region")
            .orderby("-total")
        )
        result = q.evaluate(catalog=catalog)
        assert result.to_pylist() == [
            {"region": "east", "total": 50},
            {"region": "west", "total": 25},
        ]

    def test_source_table_not_modified(self, catalog):
        query("orders").derive({"x": "1"}).select("x").evaluate(catalog=catalog)
        assert catalog("orders").column_names == ["id", "region", "amount"]

    def test_evaluate_twice(self, catalog):
        q = query("orders").filter("amount > 20")
        assert q.evaluate(catalog=catalog) == q.evaluate(catalog=catalog)

    def test_result_carries_params(self, catalog):
        q = query("orders").select("id").params({"a": 1})
        assert q.evaluate(catalog=catalog).params() == {"a": 1}


# =============================================================================
# Error Propagation
# =============================================================================

class TestErrorPropagation:
    """Tests that verb failures reach the caller unchanged."""

    def test_missing_column(self, catalog):
        with pytest.raises(ColumnNotFoundError, match="'missing'"):
            query("orders").select("missing").evaluate(catalog=catalog)

    def test_column_error_is_key_error(self, catalog):
        with pytest.raises(KeyError):
            query("orders").select("missing").evaluate(catalog=catalog)

    def test_arrow_errors_propagate(self, catalog):
        with pytest.raises(pa.ArrowException):
            query("orders").derive({"bad": "region + 1"}).evaluate(catalog=catalog)

    def test_join_table_resolved_through_catalog(self, orders):
        with pytest.raises(TableNotFoundError):
            query().join("regions").evaluate(orders)
