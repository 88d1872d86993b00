"""
Property-Based Tests for Authorization Push-Down

For any request the filter compiler denies, the orchestrator SHALL raise a
403-class StockServiceError and SHALL NOT invoke the remote gateway. For
any request it allows, exactly one gateway call is made and the filter sent
upstream never widens the caller's entitlement.
"""

import asyncio
from unittest.mock import AsyncMock, MagicMock

import pytest
from hypothesis import given, settings, assume
from hypothesis import strategies as st

from services.stock_gateway import RemoteStockGateway
from services.stock_models import (
    Predicate,
    Principal,
    StockErrorKind,
    StockQuery,
    StockServiceError,
)
from services.stock_orchestrator import StockOrchestrator


# =============================================================================
# HYPOTHESIS STRATEGIES
# =============================================================================

stock_type_strategy = st.sampled_from(["F1", "F2", "Q4", "B6", "S1", "K1"])

entitlement_strategy = st.frozensets(stock_type_strategy, max_size=4)

product_strategy = st.text(
    alphabet=st.characters(whitelist_categories=("L", "N"), whitelist_characters="-'"),
    min_size=1,
    max_size=12
)


def _make_orchestrator():
    gateway = MagicMock(spec=RemoteStockGateway)
    gateway.fetch = AsyncMock(return_value={"value": [], "@odata.count": 0})
    return StockOrchestrator(gateway, api_path="/api/stock"), gateway


def _principal(stock_types) -> Principal:
    return Principal(id="u1", attributes={"StockType": sorted(stock_types)})


def _query(product=None, stock_type=None) -> StockQuery:
    predicates = []
    if product is not None:
        predicates.append(Predicate("Product", "eq", product))
    if stock_type is not None:
        predicates.append(Predicate("EWMStockType", "eq", stock_type))
    return StockQuery(predicates=predicates)


# =============================================================================
# PROPERTY: Denied Requests Never Reach The Gateway
# =============================================================================

class TestDeniedRequestsNeverReachGateway:

    @settings(max_examples=100)
    @given(
        entitlement=entitlement_strategy,
        requested=stock_type_strategy,
        product=st.one_of(st.none(), product_strategy),
    )
    def test_unauthorized_type_is_forbidden_without_upstream_call(
        self, entitlement, requested, product
    ):
        assume(entitlement)
        assume(requested not in entitlement)
        orchestrator, gateway = _make_orchestrator()

        with pytest.raises(StockServiceError) as exc_info:
            asyncio.run(orchestrator.read(_query(product, requested), _principal(entitlement)))

        assert exc_info.value.kind == StockErrorKind.FORBIDDEN_TYPE
        assert exc_info.value.status_code == 403
        gateway.fetch.assert_not_called()

    @settings(max_examples=100)
    @given(
        requested=st.one_of(st.none(), stock_type_strategy),
        product=st.one_of(st.none(), product_strategy),
        anonymous=st.booleans(),
    )
    def test_no_entitlement_is_denied_without_upstream_call(self, requested, product, anonymous):
        orchestrator, gateway = _make_orchestrator()
        principal = None if anonymous else Principal(id="u1")

        with pytest.raises(StockServiceError) as exc_info:
            asyncio.run(orchestrator.read(_query(product, requested), principal))

        assert exc_info.value.kind == StockErrorKind.NO_AUTHORIZATION
        assert exc_info.value.status_code == 403
        gateway.fetch.assert_not_called()


# =============================================================================
# PROPERTY: Allowed Requests Make Exactly One Call
# =============================================================================

class TestAllowedRequestsMakeOneCall:

    @settings(max_examples=100)
    @given(
        entitlement=entitlement_strategy,
        product=st.one_of(st.none(), product_strategy),
        data=st.data(),
    )
    def test_single_call_restricted_to_entitlement(self, entitlement, product, data):
        assume(entitlement)
        requested = data.draw(st.one_of(st.none(), st.sampled_from(sorted(entitlement))))
        orchestrator, gateway = _make_orchestrator()

        asyncio.run(orchestrator.read(_query(product, requested), _principal(entitlement)))

        assert gateway.fetch.await_count == 1
        sent_filter = gateway.fetch.await_args.args[1]
        mentioned = {
            stock_type for stock_type in ["F1", "F2", "Q4", "B6", "S1", "K1"]
            if f"EWMStockType eq '{stock_type}'" in sent_filter
        }
        assert mentioned
        assert mentioned <= entitlement
