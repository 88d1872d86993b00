"""
Unit Tests for Stock Service Configuration Parsing

Tests the configuration module:
- Default values for optional configuration
- Custom values from environment variables
- Stock type assignment parsing
- Invalid configuration fails with CFG-001
"""

import os

import pytest

from services.stock_config import (
    DEFAULT_DESTINATION_NAME,
    DEFAULT_EWM_API_PATH,
    DEFAULT_PAGE_SIZE,
    DEFAULT_REQUEST_TIMEOUT_SECONDS,
    StockConfigErrorCode,
    StockConfigurationError,
    StockServiceConfig,
    get_stock_config,
    parse_stock_type_assignments,
    reset_stock_config,
)


# =============================================================================
# Test Fixtures
# =============================================================================

@pytest.fixture(autouse=True)
def clean_environment():
    """
    Clean environment variables before and after each test.
    """
    original_env = {}
    env_vars = [
        "EWM_DESTINATION_NAME",
        "EWM_API_PATH",
        "EWM_AUTHORIZATION_ENABLED",
        "EWM_DEFAULT_PAGE_SIZE",
        "EWM_REQUEST_TIMEOUT_SECONDS",
        "EWM_STOCK_TYPE_ASSIGNMENTS",
    ]

    for var in env_vars:
        original_env[var] = os.environ.pop(var, None)

    reset_stock_config()

    yield

    for var, value in original_env.items():
        if value is not None:
            os.environ[var] = value
        else:
            os.environ.pop(var, None)

    reset_stock_config()


# =============================================================================
# Test Default Values
# =============================================================================

class TestDefaultValues:

    def test_defaults_when_environment_empty(self):
        config = StockServiceConfig.from_environment()

        assert config.destination_name == DEFAULT_DESTINATION_NAME
        assert config.api_path == DEFAULT_EWM_API_PATH
        assert config.authorization_enabled is True
        assert config.default_page_size == DEFAULT_PAGE_SIZE
        assert config.request_timeout_seconds == DEFAULT_REQUEST_TIMEOUT_SECONDS
        assert config.stock_type_assignments == {}

    def test_default_destination_is_ewm_hmf(self):
        assert DEFAULT_DESTINATION_NAME == "EWM_HMF"
        assert DEFAULT_PAGE_SIZE == 100

    def test_invalid_page_size_falls_back_to_default(self):
        os.environ["EWM_DEFAULT_PAGE_SIZE"] = "lots"

        assert StockServiceConfig.from_environment().default_page_size == DEFAULT_PAGE_SIZE

    def test_invalid_timeout_falls_back_to_default(self):
        os.environ["EWM_REQUEST_TIMEOUT_SECONDS"] = "soon"

        config = StockServiceConfig.from_environment()

        assert config.request_timeout_seconds == DEFAULT_REQUEST_TIMEOUT_SECONDS


# =============================================================================
# Test Custom Values
# =============================================================================

class TestCustomValues:

    def test_custom_values(self):
        os.environ["EWM_DESTINATION_NAME"] = "EWM_TEST"
        os.environ["EWM_API_PATH"] = "/custom/Stock"
        os.environ["EWM_DEFAULT_PAGE_SIZE"] = "25"
        os.environ["EWM_REQUEST_TIMEOUT_SECONDS"] = "2.5"
        os.environ["EWM_STOCK_TYPE_ASSIGNMENTS"] = "u1=F2,u2=F1|Q4"

        config = StockServiceConfig.from_environment()

        assert config.destination_name == "EWM_TEST"
        assert config.api_path == "/custom/Stock"
        assert config.default_page_size == 25
        assert config.request_timeout_seconds == 2.5
        assert config.stock_types_for("u1") == frozenset({"F2"})
        assert config.stock_types_for("u2") == frozenset({"F1", "Q4"})

    @pytest.mark.parametrize("raw", ["false", "0", "no", "off", "FALSE"])
    def test_authorization_can_be_disabled(self, raw):
        os.environ["EWM_AUTHORIZATION_ENABLED"] = raw

        assert StockServiceConfig.from_environment().authorization_enabled is False

    @pytest.mark.parametrize("raw", ["true", "1", "yes", "on", ""])
    def test_authorization_stays_enabled(self, raw):
        os.environ["EWM_AUTHORIZATION_ENABLED"] = raw

        assert StockServiceConfig.from_environment().authorization_enabled is True

    def test_unknown_user_has_no_stock_types(self):
        os.environ["EWM_STOCK_TYPE_ASSIGNMENTS"] = "u1=F2"

        config = StockServiceConfig.from_environment()

        assert config.stock_types_for("nobody") == frozenset()
        assert config.stock_types_for("") == frozenset()


# =============================================================================
# Test Assignment Parsing
# =============================================================================

class TestParseStockTypeAssignments:

    def test_empty(self):
        assert parse_stock_type_assignments("") == {}
        assert parse_stock_type_assignments("   ") == {}

    def test_whitespace_is_stripped(self):
        assert parse_stock_type_assignments(" u1 = F1 | F2 ") == {"u1": frozenset({"F1", "F2"})}

    def test_malformed_entries_are_skipped(self):
        assert parse_stock_type_assignments("u1=F2,garbage,=F1") == {"u1": frozenset({"F2"})}

    def test_repeated_user_keeps_union(self):
        assert parse_stock_type_assignments("u1=F1,u1=Q4") == {"u1": frozenset({"F1", "Q4"})}

    def test_user_without_types(self):
        assert parse_stock_type_assignments("u1=") == {"u1": frozenset()}


# =============================================================================
# Test Validation
# =============================================================================

class TestValidation:

    def test_relative_api_path_fails(self):
        os.environ["EWM_API_PATH"] = "sap/opu/odata4/Stock"

        with pytest.raises(StockConfigurationError) as exc_info:
            StockServiceConfig.from_environment()

        assert exc_info.value.error_code == StockConfigErrorCode.CONFIG_INVALID
        assert "EWM_API_PATH" in exc_info.value.message

    def test_non_positive_page_size_fails(self):
        os.environ["EWM_DEFAULT_PAGE_SIZE"] = "0"

        with pytest.raises(StockConfigurationError) as exc_info:
            StockServiceConfig.from_environment()

        assert "EWM_DEFAULT_PAGE_SIZE" in exc_info.value.message

    def test_empty_destination_fails(self):
        config = StockServiceConfig(destination_name="  ")

        with pytest.raises(StockConfigurationError):
            config.validate()

    def test_validation_can_be_skipped(self):
        os.environ["EWM_DEFAULT_PAGE_SIZE"] = "-1"

        config = StockServiceConfig.from_environment(validate=False)

        assert config.default_page_size == -1

    def test_to_dict_hides_assignments(self):
        config = StockServiceConfig(stock_type_assignments={"u1": frozenset({"F2"})})

        result = config.to_dict()

        assert result["assigned_users_count"] == 1
        assert "stock_type_assignments" not in result


# =============================================================================
# Test Global Instance
# =============================================================================

class TestGlobalInstance:

    def test_instance_is_cached(self):
        assert get_stock_config() is get_stock_config()

    def test_reset_reloads_environment(self):
        first = get_stock_config()
        os.environ["EWM_DESTINATION_NAME"] = "EWM_OTHER"
        reset_stock_config()

        second = get_stock_config()

        assert second is not first
        assert second.destination_name == "EWM_OTHER"
