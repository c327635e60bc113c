"""Tests for ConfigLoader resolution order and validation."""

from __future__ import annotations

from unittest.mock import Mock, patch

import pytest

from fieldvisit.config import ConfigLoader, UnknownKeyError, ValidationError, validate_key


def pb_with_config_value(value):
    """Mock PocketBase whose config collection returns one record."""
    mock_pb = Mock()
    mock_pb.collection.return_value.get_first_list_item.return_value = Mock(value=value)
    return mock_pb


class TestResolutionOrder:
    def test_schema_default_without_client(self):
        assert ConfigLoader().get_int("import.batch_size") == 50

    def test_database_value_used(self):
        loader = ConfigLoader(pb_with_config_value("250"))

        assert loader.get_int("import.batch_size") == 250

    def test_environment_beats_database(self):
        loader = ConfigLoader(pb_with_config_value("250"))

        with patch.dict("os.environ", {"CONFIG_IMPORT_BATCH_SIZE": "40"}):
            assert loader.get_int("import.batch_size") == 40

    def test_missing_record_falls_back_to_default(self, mock_pocketbase):
        # The shared mock raises from get_first_list_item, as a missing record does
        loader = ConfigLoader(mock_pocketbase)

        assert loader.get_float("import.request_timeout_seconds") == 30.0

    def test_database_filter_uses_category_and_key(self):
        mock_pb = pb_with_config_value("3")
        ConfigLoader(mock_pb).get("import.max_concurrent_batches")

        mock_pb.collection.assert_called_with("config")
        filter_str = mock_pb.collection.return_value.get_first_list_item.call_args[0][0]
        assert 'category = "import"' in filter_str
        assert 'config_key = "max_concurrent_batches"' in filter_str

    def test_values_are_cached(self):
        mock_pb = pb_with_config_value("3")
        loader = ConfigLoader(mock_pb)

        loader.get("import.max_concurrent_batches")
        loader.get("import.max_concurrent_batches")

        assert mock_pb.collection.return_value.get_first_list_item.call_count == 1

        loader.invalidate_cache()
        loader.get("import.max_concurrent_batches")
        assert mock_pb.collection.return_value.get_first_list_item.call_count == 2


class TestValidation:
    def test_unknown_key(self):
        with pytest.raises(UnknownKeyError):
            ConfigLoader().get("import.nope")

    def test_out_of_range_database_value(self):
        with pytest.raises(ValidationError, match="above maximum"):
            ConfigLoader(pb_with_config_value("5000")).get("import.batch_size")

    def test_non_numeric_environment_value(self):
        with patch.dict("os.environ", {"CONFIG_IMPORT_BATCH_SIZE": "lots"}):
            with pytest.raises(ValidationError, match="invalid type"):
                ConfigLoader().get("import.batch_size")

    @pytest.mark.parametrize("raw,expected", [("true", True), ("1", True), ("off", False), ("no", False)])
    def test_bool_conversion(self, raw, expected):
        with patch.dict("os.environ", {"CONFIG_IMPORT_RETRY_FAILED_BATCHES_PER_ROW": raw}):
            assert ConfigLoader().get_bool("import.retry_failed_batches_per_row") is expected

    def test_blank_form_id_rejected(self):
        assert validate_key("import.form_id", "  ") == "Value must not be blank"
        assert validate_key("import.unknown", 1) == "Unknown config key: import.unknown"


class TestHealthCheck:
    def test_without_client(self):
        result = ConfigLoader().health_check()

        assert result["status"] == "healthy"
        assert result["database_connected"] is False

    def test_unreachable_database(self):
        mock_pb = Mock()
        mock_pb.collection.return_value.get_list.side_effect = Exception("connection refused")

        result = ConfigLoader(mock_pb).health_check()

        assert result["status"] == "unhealthy"
        assert "connection refused" in result["issues"][0]
