"""Application configuration.

Settings come from the environment, with defaults that work for a
checkout of the repository.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from decimal import Decimal, InvalidOperation
from pathlib import Path
from typing import Mapping

from rentals.domain.exceptions import ConfigurationError

# When installed in editable mode the project root is the repo root.
DEFAULT_DATA_DIR = Path(__file__).resolve().parents[3] / "data"
ORDERS_FILENAME = "orders.json"
PROFILES_FILENAME = "profiles.json"
LOG_MAX_BYTES = 1_000_000
LOG_BACKUP_COUNT = 3


@dataclass(frozen=True)
class Settings:
    data_dir: Path = DEFAULT_DATA_DIR
    default_tax_rate: Decimal = Decimal("5.0")
    call_timeout: float = 10.0
    log_level: str = "WARNING"
    log_file: Path | None = None

    @property
    def orders_file(self) -> Path:
        return self.data_dir / ORDERS_FILENAME

    @property
    def profiles_file(self) -> Path:
        return self.data_dir / PROFILES_FILENAME


def load_settings(environ: Mapping[str, str] | None = None) -> Settings:
    """Build Settings from ``RENTALS_*`` environment variables."""
    env = os.environ if environ is None else environ

    try:
        tax_rate = Decimal(env.get("RENTALS_DEFAULT_TAX_RATE", "5.0"))
    except InvalidOperation:
        raise ConfigurationError(
            f"RENTALS_DEFAULT_TAX_RATE is not a number: {env['RENTALS_DEFAULT_TAX_RATE']!r}"
        )
    try:
        timeout = float(env.get("RENTALS_CALL_TIMEOUT", "10"))
    except ValueError:
        raise ConfigurationError(
            f"RENTALS_CALL_TIMEOUT is not a number: {env['RENTALS_CALL_TIMEOUT']!r}"
        )
    if timeout <= 0:
        raise ConfigurationError("RENTALS_CALL_TIMEOUT must be positive")

    log_file = env.get("RENTALS_LOG_FILE")
    return Settings(
        data_dir=Path(env.get("RENTALS_DATA_DIR", str(DEFAULT_DATA_DIR))),
        default_tax_rate=tax_rate,
        call_timeout=timeout,
        log_level=env.get("RENTALS_LOG_LEVEL", "WARNING").upper(),
        log_file=Path(log_file) if log_file else None,
    )
