# File: src/parkledger/config.py
"""
Configuration for the Parking Stay Ledger

Values are resolved in three layers, later layers winning:
1. Defaults declared on LedgerConfig
2. A YAML file (top-level mapping, or a ``parkledger:`` section)
3. PARKLEDGER_* environment variables

The hourly rate is therefore changed without touching code.
"""

from dataclasses import dataclass, asdict, fields
from decimal import Decimal, InvalidOperation
from typing import Dict, Any, Optional, Mapping
from pathlib import Path
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError
import logging
import os
import re

import yaml

from .domain.exceptions import ConfigurationError
from .domain.models import DEFAULT_PLATE_PATTERN, Money
from .domain.pricing import RatePolicy


ENV_PREFIX = "PARKLEDGER_"
CONFIG_PATH_ENV = "PARKLEDGER_CONFIG"
LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


@dataclass
class LedgerConfig:
    """Application configuration"""
    hourly_rate: Decimal = Decimal('10.00')
    currency: str = "BRL"
    plate_pattern: str = DEFAULT_PLATE_PATTERN
    timezone: str = "UTC"
    log_level: str = "INFO"
    log_file: Optional[str] = None

    def __post_init__(self):
        """Coerce raw values and validate"""
        if not isinstance(self.hourly_rate, Decimal):
            try:
                self.hourly_rate = Decimal(str(self.hourly_rate))
            except InvalidOperation:
                raise ConfigurationError(f"Hourly rate is not a number: {self.hourly_rate!r}")
        self.currency = str(self.currency).upper()
        self.log_level = str(self.log_level).upper()
        self.validate()

    def validate(self) -> None:
        """Raise ConfigurationError listing every invalid value"""
        errors = []

        if not self.hourly_rate.is_finite() or self.hourly_rate < 0:
            errors.append(f"hourly_rate must be a non-negative amount, got {self.hourly_rate}")

        if len(self.currency) != 3 or not self.currency.isalpha():
            errors.append(f"currency must be a 3-letter code, got {self.currency!r}")

        if not isinstance(self.plate_pattern, str):
            errors.append(f"plate_pattern must be a string, got {self.plate_pattern!r}")
        else:
            try:
                re.compile(self.plate_pattern)
            except (re.error, TypeError) as e:
                errors.append(f"plate_pattern is not a valid regular expression: {e}")

        if not isinstance(self.timezone, str):
            errors.append(f"timezone must be a string, got {self.timezone!r}")
        else:
            try:
                ZoneInfo(self.timezone)
            except (ZoneInfoNotFoundError, ValueError, TypeError):
                errors.append(f"timezone is unknown: {self.timezone!r}")

        if self.log_level not in LOG_LEVELS:
            errors.append(f"log_level must be one of {', '.join(LOG_LEVELS)}, got {self.log_level!r}")

        if errors:
            raise ConfigurationError("; ".join(errors))

    @property
    def tzinfo(self) -> ZoneInfo:
        return ZoneInfo(self.timezone)

    @property
    def logging_level(self) -> int:
        return getattr(logging, self.log_level)

    def rate_policy(self) -> RatePolicy:
        return RatePolicy(Money(self.hourly_rate, self.currency))

    def to_dict(self) -> Dict[str, Any]:
        data = asdict(self)
        data["hourly_rate"] = str(self.hourly_rate)
        return data


def _read_yaml(path: Path) -> Dict[str, Any]:
    try:
        with open(path, "r", encoding="utf-8") as f:
            data = yaml.safe_load(f) or {}
    except OSError as e:
        raise ConfigurationError(f"Cannot read config file {path}: {e}")
    except yaml.YAMLError as e:
        raise ConfigurationError(f"Invalid YAML in config file {path}: {e}")

    if not isinstance(data, dict):
        raise ConfigurationError(f"Config file {path} must contain a mapping")

    section = data.get("parkledger", data)
    if not isinstance(section, dict):
        raise ConfigurationError(f"'parkledger' section in {path} must be a mapping")
    return section


def load_config(
    path: Optional[str] = None,
    environ: Optional[Mapping[str, str]] = None
) -> LedgerConfig:
    """
    Build a LedgerConfig from defaults, an optional YAML file and the environment
    Raises: ConfigurationError on unreadable files or invalid values
    """
    environ = os.environ if environ is None else environ
    logger = logging.getLogger("LedgerConfig")
    known = {f.name for f in fields(LedgerConfig)}
    values: Dict[str, Any] = {}

    path = path or environ.get(CONFIG_PATH_ENV)
    if path:
        file_values = _read_yaml(Path(path))
        unknown = set(file_values) - known
        if unknown:
            raise ConfigurationError(f"Unknown configuration keys: {', '.join(sorted(unknown))}")
        values.update(file_values)
        logger.debug(f"Loaded configuration file {path}")

    for name in known:
        env_name = ENV_PREFIX + name.upper()
        if env_name in environ:
            values[name] = environ[env_name]

    return LedgerConfig(**values)
