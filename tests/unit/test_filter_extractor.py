"""
Unit Tests for the Filter Extractor and the Authorization Resolver
"""

from services import filter_extractor, stock_authorization
from services.stock_models import Predicate, Principal, StockQuery


# =============================================================================
# Filter Extractor
# =============================================================================

class TestExtract:

    def test_empty_query(self):
        assert filter_extractor.extract(StockQuery()) == {}

    def test_none_query(self):
        assert filter_extractor.extract(None) == {}

    def test_equality_predicates_are_kept(self):
        query = StockQuery(predicates=[
            Predicate("Product", "eq", "P1"),
            Predicate("EWMStockType", "eq", "F2"),
            Predicate("EWMStorageBin", "eq", "A-01"),
        ])

        assert filter_extractor.extract(query) == {
            "Product": "P1",
            "EWMStockType": "F2",
            "EWMStorageBin": "A-01",
        }

    def test_non_equality_operators_are_ignored(self):
        query = StockQuery(predicates=[
            Predicate("Product", "ne", "P1"),
            Predicate("Batch", "gt", "B1"),
        ])

        assert filter_extractor.extract(query) == {}

    def test_undefined_literal_is_ignored(self):
        query = StockQuery(predicates=[Predicate("Batch", "eq", None)])

        assert filter_extractor.extract(query) == {}

    def test_unrecognized_field_is_ignored(self):
        query = StockQuery(predicates=[
            Predicate("EWMWarehouse", "eq", "HMF1"),
            Predicate("Quantity", "eq", "5"),
        ])

        assert filter_extractor.extract(query) == {}

    def test_last_occurrence_wins(self):
        query = StockQuery(predicates=[
            Predicate("Product", "eq", "FIRST"),
            Predicate("Product", "eq", "LAST"),
        ])

        assert filter_extractor.extract(query) == {"Product": "LAST"}


# =============================================================================
# Authorization Resolver
# =============================================================================

class TestResolve:

    def test_no_principal_sees_nothing(self):
        assert stock_authorization.resolve(None) == frozenset()

    def test_absent_attribute_sees_nothing(self):
        assert stock_authorization.resolve(Principal(id="u1")) == frozenset()

    def test_none_attribute_sees_nothing(self):
        principal = Principal(id="u1", attributes={"StockType": None})

        assert stock_authorization.resolve(principal) == frozenset()

    def test_single_value_becomes_singleton(self):
        principal = Principal(id="u1", attributes={"StockType": "F2"})

        assert stock_authorization.resolve(principal) == frozenset({"F2"})

    def test_collection_is_taken_as_is(self):
        principal = Principal(id="u1", attributes={"StockType": ["F1", "F2", "F1"]})

        assert stock_authorization.resolve(principal) == frozenset({"F1", "F2"})

    def test_blank_entries_are_dropped(self):
        principal = Principal(id="u1", attributes={"StockType": ["F1", "", "  "]})

        assert stock_authorization.resolve(principal) == frozenset({"F1"})
