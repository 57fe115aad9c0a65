#!/usr/bin/env python3
"""
Configuration Unit Tests

Tests for LedgerConfig validation and layered loading from YAML and the
environment.
"""

import os
import shutil
import tempfile
import unittest
from decimal import Decimal

from parkledger.config import LedgerConfig, load_config
from parkledger.domain.exceptions import ConfigurationError
from parkledger.domain.models import DEFAULT_PLATE_PATTERN, Money


class TestLedgerConfig(unittest.TestCase):

    def test_defaults(self):
        config = LedgerConfig()
        self.assertEqual(config.hourly_rate, Decimal("10.00"))
        self.assertEqual(config.currency, "BRL")
        self.assertEqual(config.plate_pattern, DEFAULT_PLATE_PATTERN)
        self.assertEqual(config.timezone, "UTC")
        self.assertEqual(config.log_level, "INFO")
        self.assertIsNone(config.log_file)

    def test_coerces_values(self):
        config = LedgerConfig(hourly_rate="7.5", currency="usd", log_level="debug")
        self.assertEqual(config.hourly_rate, Decimal("7.5"))
        self.assertEqual(config.currency, "USD")
        self.assertEqual(config.log_level, "DEBUG")

    def test_float_rate_keeps_decimal_text(self):
        self.assertEqual(LedgerConfig(hourly_rate=2.5).hourly_rate, Decimal("2.5"))

    def test_rate_policy(self):
        policy = LedgerConfig(hourly_rate="12", currency="EUR").rate_policy()
        self.assertEqual(policy.hourly_rate, Money(Decimal("12"), "EUR"))

    def test_invalid_values(self):
        test_cases = [
            {"hourly_rate": "-1"},
            {"hourly_rate": "abc"},
            {"hourly_rate": "NaN"},
            {"currency": "REAL"},
            {"plate_pattern": "[A-Z"},
            {"timezone": "Mars/Olympus_Mons"},
            {"log_level": "VERBOSE"},
        ]
        for values in test_cases:
            with self.subTest(values=values):
                with self.assertRaises(ConfigurationError):
                    LedgerConfig(**values)

    def test_error_lists_every_problem(self):
        with self.assertRaises(ConfigurationError) as ctx:
            LedgerConfig(currency="REAL", log_level="LOUD")
        self.assertIn("currency", str(ctx.exception))
        self.assertIn("log_level", str(ctx.exception))

    def test_zero_rate_allowed(self):
        self.assertEqual(LedgerConfig(hourly_rate="0").hourly_rate, Decimal("0"))

    def test_to_dict(self):
        data = LedgerConfig().to_dict()
        self.assertEqual(data["hourly_rate"], "10.00")
        self.assertEqual(data["currency"], "BRL")


class TestLoadConfig(unittest.TestCase):

    def setUp(self):
        self.temp_dir = tempfile.mkdtemp()

    def tearDown(self):
        shutil.rmtree(self.temp_dir)

    def write_config(self, text: str) -> str:
        path = os.path.join(self.temp_dir, "parkledger.yaml")
        with open(path, "w", encoding="utf-8") as f:
            f.write(text)
        return path

    def test_defaults_without_file(self):
        self.assertEqual(load_config(environ={}), LedgerConfig())

    def test_yaml_file(self):
        path = self.write_config("hourly_rate: '12.50'\ncurrency: USD\ntimezone: America/Sao_Paulo\n")
        config = load_config(path, environ={})
        self.assertEqual(config.hourly_rate, Decimal("12.50"))
        self.assertEqual(config.currency, "USD")
        self.assertEqual(config.timezone, "America/Sao_Paulo")

    def test_yaml_section(self):
        path = self.write_config("parkledger:\n  hourly_rate: 8\n")
        self.assertEqual(load_config(path, environ={}).hourly_rate, Decimal("8"))

    def test_environment_overrides_file(self):
        path = self.write_config("hourly_rate: 8\nlog_level: INFO\n")
        config = load_config(path, environ={
            "PARKLEDGER_HOURLY_RATE": "15.00",
            "PARKLEDGER_LOG_LEVEL": "warning",
        })
        self.assertEqual(config.hourly_rate, Decimal("15.00"))
        self.assertEqual(config.log_level, "WARNING")

    def test_config_path_from_environment(self):
        path = self.write_config("currency: EUR\n")
        config = load_config(environ={"PARKLEDGER_CONFIG": path})
        self.assertEqual(config.currency, "EUR")

    def test_unknown_key(self):
        path = self.write_config("hourly_rate: 8\nslots: 100\n")
        with self.assertRaises(ConfigurationError) as ctx:
            load_config(path, environ={})
        self.assertIn("slots", str(ctx.exception))

    def test_missing_file(self):
        with self.assertRaises(ConfigurationError):
            load_config(os.path.join(self.temp_dir, "missing.yaml"), environ={})

    def test_invalid_yaml(self):
        path = self.write_config("hourly_rate: [8\n")
        with self.assertRaises(ConfigurationError):
            load_config(path, environ={})

    def test_non_mapping(self):
        path = self.write_config("- 8\n- 9\n")
        with self.assertRaises(ConfigurationError):
            load_config(path, environ={})

    def test_non_string_values(self):
        for text in ("timezone: 5\n", "plate_pattern: 7\n", "timezone: [UTC]\n"):
            with self.subTest(text=text):
                path = self.write_config(text)
                with self.assertRaises(ConfigurationError):
                    load_config(path, environ={})

    def test_empty_file(self):
        path = self.write_config("")
        self.assertEqual(load_config(path, environ={}), LedgerConfig())


if __name__ == '__main__':
    unittest.main()
