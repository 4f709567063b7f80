"""
Tests for query and table parameters.
"""

import pytest

from tablequery import ParameterNotFoundError, Table, query


def ids(table):
    return table.column("id").to_pylist()


# =============================================================================
# Query Parameters
# =============================================================================

class TestQueryParams:
    """Tests for the params accessor/mutator and its split forms."""

    def test_no_params(self):
        q = query()
        assert q.params() is None
        assert q.get_params() is None

    def test_set_returns_same_query(self):
        q = query()
        assert q.params({"a": 1}) is q
        assert q.params() == {"a": 1}

    def test_merge(self):
        q = query()
        assert q.params({"a": 1}).params({"b": 2}).params() == {"a": 1, "b": 2}

    def test_override(self):
        q = query()
        assert q.params({"a": 1}).params({"a": 2}).params() == {"a": 2}

    def test_empty_mapping_returns_query(self):
        q = query().params({"a": 1})
        assert q.params({}) is q
        assert q.params() == {"a": 1}

    def test_split_forms(self):
        q = query()
        assert q.merge_params({"a": 1}) is q
        assert q.merge_params({"b": 2}).get_params() == {"a": 1, "b": 2}

    def test_none_is_ignored(self):
        q = query().params({"a": 1})
        assert q.params(None) is q
        assert q.params() == {"a": 1}

    def test_argument_not_aliased(self):
        values = {"a": 1}
        q = query().params(values)
        values["a"] = 2
        assert q.params() == {"a": 1}

    def test_params_do_not_change_verbs(self):
        q = query("orders").filter("amount > $min")
        verbs = q.verbs
        q.params({"min": 1})
        assert q.verbs is verbs
        assert q.table_name == "orders"

    def test_earlier_query_unaffected_by_later_merge(self):
        q = query().params({"a": 1})
        appended = q.select("a")
        q.params({"a": 2})
        assert appended.params() == {"a": 1}


# =============================================================================
# Table Parameters
# =============================================================================

class TestTableParams:
    """Tests for Table.params."""

    def test_get(self, orders):
        assert orders.params() is None

    def test_set_returns_new_table(self, orders):
        annotated = orders.params({"min": 1})
        assert annotated is not orders
        assert annotated.params() == {"min": 1}
        assert orders.params() is None
        assert annotated.data is orders.data

    def test_merge(self, orders):
        annotated = orders.params({"a": 1}).params({"a": 2, "b": 3})
        assert annotated.params() == {"a": 2, "b": 3}

    def test_none_returns_same_table(self, orders):
        assert orders.params(None) is orders


# =============================================================================
# Parameters During Evaluation
# =============================================================================

class TestEvaluationParams:
    """Tests that verb expressions see the query's parameters."""

    def test_filter_with_param(self, catalog):
        q = query("orders").filter("amount > $min").params({"min": 20})
        assert ids(q.evaluate(catalog=catalog)) == [2, 3]

    def test_params_set_after_append(self, catalog):
        q = query("orders").filter("amount > $min")
        q.params({"min": 30})
        assert ids(q.evaluate(catalog=catalog)) == [3]

    def test_query_params_override_table_params(self, orders):
        table = orders.params({"min": 100})
        q = query().filter("amount > $min").params({"min": 20})
        assert ids(q.evaluate(table)) == [2, 3]

    def test_table_params_used_without_query_params(self, orders):
        table = orders.params({"min": 30})
        assert ids(query().filter("amount > $min").evaluate(table)) == [3]

    def test_missing_param(self, catalog):
        with pytest.raises(ParameterNotFoundError, match=r"\$min"):
            query("orders").filter("amount > $min").evaluate(catalog=catalog)

    def test_derive_with_param(self, orders):
        q = query().derive({"scaled": "amount * $rate"}).params({"rate": 2})
        assert q.evaluate(orders).column("scaled").to_pylist() == [20, 50, 80, 10]

    def test_input_table_not_modified(self, orders):
        query().filter("amount > $min").params({"min": 1}).evaluate(orders)
        assert orders.params() is None
        assert orders.num_rows == 4

    def test_string_param(self, orders):
        q = query().filter("region == $region").params({"region": "east"})
        assert ids(q.evaluate(orders)) == [1, 3]
