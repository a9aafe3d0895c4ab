import os
from dataclasses import dataclass
from decimal import Decimal, InvalidOperation
from pathlib import Path
from typing import Optional, Union

from dotenv import find_dotenv, load_dotenv


@dataclass(frozen=True)
class Settings:
    data_path: Path = Path("data/ledger.json")
    seed_path: Path = Path("data/seed.json")
    log_level: str = "INFO"
    csv_separator: str = ";"
    upcoming_days: int = 7
    recurring_count: int = 12
    anomaly_factor: Decimal = Decimal("1.3")
    currency: str = "BRL"


def _int_env(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return int(raw)
    except ValueError:
        raise ValueError(f"{name} must be an integer, got {raw!r}") from None


def _decimal_env(name: str, default: Decimal) -> Decimal:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return Decimal(raw.strip())
    except InvalidOperation:
        raise ValueError(f"{name} must be a number, got {raw!r}") from None


def load_settings(env_file: Optional[Union[str, Path]] = None) -> Settings:
    """Build settings from the environment and a ``.env`` file.

    Without ``env_file`` the nearest ``.env`` above the working directory is
    used. Variables already set in the environment win over the file.
    """
    load_dotenv(env_file or find_dotenv(usecwd=True))
    defaults = Settings()
    return Settings(
        data_path=Path(os.getenv("LEDGER_DATA_PATH", str(defaults.data_path))),
        seed_path=Path(os.getenv("LEDGER_SEED_PATH", str(defaults.seed_path))),
        log_level=os.getenv("LEDGER_LOG_LEVEL", defaults.log_level),
        csv_separator=os.getenv("LEDGER_CSV_SEPARATOR", defaults.csv_separator),
        upcoming_days=_int_env("LEDGER_UPCOMING_DAYS", defaults.upcoming_days),
        recurring_count=_int_env("LEDGER_RECURRING_COUNT", defaults.recurring_count),
        anomaly_factor=_decimal_env("LEDGER_ANOMALY_FACTOR", defaults.anomaly_factor),
        currency=os.getenv("LEDGER_CURRENCY", defaults.currency),
    )
