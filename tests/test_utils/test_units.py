"""
Tests for vault_advisor/utils/units.py and vault_advisor/utils/logging.py.
"""

from __future__ import annotations

import json
import logging
from decimal import Decimal

import pytest

from vault_advisor.config import LoggingConfig
from vault_advisor.utils.logging import _JsonFormatter, configure_logging
from vault_advisor.utils.units import to_base_units, to_human_units


class TestUnits:
    def test_whole_amount(self):
        assert to_base_units(Decimal("100")) == 1_000_000_000

    def test_fractional_amount(self):
        assert to_base_units("100.5") == 1_005_000_000

    def test_dust_truncated(self):
        assert to_base_units("0.123456789") == 1_234_567

    def test_amount_beyond_default_precision(self):
        assert to_base_units("1e30") == 10**37

    def test_long_fraction_not_rounded_up(self):
        amount = "1" + "0" * 30 + ".99999999"
        assert to_base_units(amount) == 10**37 + 9_999_999

    def test_custom_decimals(self):
        assert to_base_units(3, decimals=2) == 300

    def test_negative_rejected(self):
        with pytest.raises(ValueError):
            to_base_units("-1")

    def test_to_human(self):
        assert to_human_units(1_005_000_000) == Decimal("100.5")

    def test_round_trip_exact_for_base_units(self):
        assert to_base_units(to_human_units(3_947_586_213_424)) == 3_947_586_213_424


class TestLogging:
    def test_json_formatter_fields(self):
        record = logging.makeLogRecord({
            "name": "vault_advisor.test",
            "levelname": "INFO",
            "msg": "parsed %d",
            "args": (5,),
        })
        record.vault_id = "CBNK"
        payload = json.loads(_JsonFormatter().format(record))
        assert payload["msg"] == "parsed 5"
        assert payload["logger"] == "vault_advisor.test"
        assert payload["vault_id"] == "CBNK"

    def test_configure_logging_sets_level(self, tmp_path):
        root = logging.getLogger()
        saved_handlers, saved_level = list(root.handlers), root.level
        log_file = tmp_path / "logs" / "advisor.log"
        try:
            configure_logging(LoggingConfig(level="WARNING", log_file=str(log_file)))
            assert root.level == logging.WARNING
            assert log_file.parent.exists()
            logging.getLogger("vault_advisor.test").warning("hello")
            for handler in root.handlers:
                handler.flush()
            assert "hello" in log_file.read_text(encoding="utf-8")
        finally:
            for handler in root.handlers:
                handler.close()
            root.handlers[:] = saved_handlers
            root.setLevel(saved_level)
