"""
Unit Tests for Request Principal Extraction
"""

import pytest
from fastapi import HTTPException

from app.auth.principal import (
    PrincipalError,
    build_principal,
    get_current_principal,
    parse_bearer_user,
)
from services.stock_config import StockServiceConfig


@pytest.fixture
def config() -> StockServiceConfig:
    return StockServiceConfig(
        stock_type_assignments={"u1": frozenset({"F2", "F1"}), "u2": frozenset()}
    )


class TestParseBearerUser:

    def test_missing_header(self):
        assert parse_bearer_user(None) is None
        assert parse_bearer_user("   ") is None

    def test_bearer_user(self):
        assert parse_bearer_user("Bearer u1") == "u1"

    def test_wrong_scheme(self):
        with pytest.raises(PrincipalError) as exc_info:
            parse_bearer_user("Basic dTE6cA==")

        assert exc_info.value.error_code == "SEC-001"

    def test_empty_user(self):
        with pytest.raises(PrincipalError) as exc_info:
            parse_bearer_user("Bearer    ")

        assert exc_info.value.error_code == "SEC-002"


class TestBuildPrincipal:

    def test_no_user_no_principal(self, config):
        assert build_principal(None, config) is None

    def test_assigned_types_are_attached(self, config):
        principal = build_principal("u1", config)

        assert principal.id == "u1"
        assert principal.attributes == {"StockType": ["F1", "F2"]}

    def test_user_without_types_has_no_attribute(self, config):
        assert build_principal("u2", config).attributes == {}
        assert build_principal("unknown", config).attributes == {}


class TestGetCurrentPrincipal:

    def test_valid_header(self, config):
        principal = get_current_principal(authorization="Bearer u1", config=config)

        assert principal.id == "u1"

    def test_anonymous(self, config):
        assert get_current_principal(authorization=None, config=config) is None

    def test_malformed_header_is_401(self, config):
        with pytest.raises(HTTPException) as exc_info:
            get_current_principal(authorization="Token u1", config=config)

        assert exc_info.value.status_code == 401
        assert exc_info.value.detail["error_code"] == "SEC-001"
        assert exc_info.value.detail["timestamp"]

    def test_empty_user_is_401_with_full_error_body(self, config):
        with pytest.raises(HTTPException) as exc_info:
            get_current_principal(authorization="Bearer ", config=config)

        assert exc_info.value.status_code == 401
        assert set(exc_info.value.detail) == {"error_code", "message", "timestamp"}
        assert exc_info.value.detail["error_code"] == "SEC-002"
