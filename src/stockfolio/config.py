"""
Configuration for stockfolio.

Two kinds of settings are loaded here:

- application settings (``AppConfig``) from a YAML file, with defaults for
  anything left out;
- the EODHD API key, merged from config/api_keys.yaml, a .env file and the
  process environment (later sources win).
"""

import os
from datetime import date, datetime
from decimal import Decimal, InvalidOperation
from pathlib import Path
from typing import Any, Callable, Optional

import yaml
from dotenv import dotenv_values

from stockfolio.models import AppConfig


PROJECT_ROOT = Path(__file__).parent.parent.parent
DEFAULT_ENV_FILE = PROJECT_ROOT / ".env"
DEFAULT_API_KEYS_FILE = PROJECT_ROOT / "config" / "api_keys.yaml"
DEFAULT_CONFIG_FILE = PROJECT_ROOT / "config" / "stockfolio.yaml"

API_KEY_ENV_VAR = "EODHD_API_KEY"


class ConfigurationError(Exception):
    """Raised when configuration is invalid or cannot be loaded."""
    pass


def _read_yaml(path: Path) -> Any:
    try:
        with open(path, "r") as f:
            return yaml.safe_load(f)
    except yaml.YAMLError as e:
        raise ConfigurationError(f"Invalid YAML in {path}: {e}")
    except OSError as e:
        raise ConfigurationError(f"Could not read {path}: {e}")


def _key_from_yaml(path: Path) -> Optional[str]:
    if not path.exists():
        return None
    content = _read_yaml(path)
    if isinstance(content, dict) and content.get("eodhd_api_key"):
        return str(content["eodhd_api_key"])
    return None


def _key_from_env_file(path: Path) -> Optional[str]:
    if not path.exists():
        return None
    return dotenv_values(path).get(API_KEY_ENV_VAR) or None


def _key_from_environ() -> Optional[str]:
    return os.environ.get(API_KEY_ENV_VAR) or None


def load_api_keys(
    env_file: str | Path | None = None,
    api_keys_file: str | Path | None = None,
) -> dict[str, str]:
    """
    Collect API keys from every configured source.

    Priority, lowest to highest: config/api_keys.yaml, the .env file, the
    EODHD_API_KEY environment variable.

    Args:
        env_file: .env file to read (defaults to the project root .env)
        api_keys_file: YAML key file (defaults to config/api_keys.yaml)

    Returns:
        {"eodhd_api_key": ...} when any source provides one, else {}

    Raises:
        ConfigurationError: If the YAML key file exists but cannot be read
    """
    candidates = [
        _key_from_yaml(Path(api_keys_file) if api_keys_file else DEFAULT_API_KEYS_FILE),
        _key_from_env_file(Path(env_file) if env_file else DEFAULT_ENV_FILE),
        _key_from_environ(),
    ]
    found = [key for key in candidates if key]
    return {"eodhd_api_key": found[-1]} if found else {}


def get_eodhd_api_key() -> str:
    """
    Return the EODHD API key.

    Raises:
        ConfigurationError: If no source provides one
    """
    key = load_api_keys().get("eodhd_api_key")
    if not key:
        raise ConfigurationError(
            "EODHD API key is not configured. Please set it using one of:\n"
            f"  1. Environment variable: export {API_KEY_ENV_VAR}=your-key\n"
            f"  2. .env file: {API_KEY_ENV_VAR}=your-key\n"
            "  3. config/api_keys.yaml: eodhd_api_key: your-key\n"
            "\n"
            "Alternatively pass --prices with a local price history file."
        )
    return key


def load_app_config(config_path: Optional[str | Path] = None) -> AppConfig:
    """
    Load application settings from YAML.

    Without a path, config/stockfolio.yaml is used when present and the
    built-in defaults otherwise. An empty file also yields the defaults.

    Raises:
        ConfigurationError: If the file is missing, unreadable or invalid
    """
    if config_path is None:
        if not DEFAULT_CONFIG_FILE.exists():
            return AppConfig()
        config_path = DEFAULT_CONFIG_FILE

    config_path = Path(config_path)
    if not config_path.exists():
        raise ConfigurationError(f"Configuration file not found: {config_path}")

    raw = _read_yaml(config_path)
    if raw is None:
        return AppConfig()
    if not isinstance(raw, dict):
        raise ConfigurationError(f"Configuration file {config_path} must contain a mapping")

    return _parse_app_config(raw)


def _parse_path(value: Any, field_name: str) -> Path:
    if not isinstance(value, (str, Path)) or not str(value).strip():
        raise ConfigurationError(f"{field_name} must be a path, got {value!r}")
    return Path(str(value))


def _parse_tolerance(value: Any, field_name: str) -> Decimal:
    return _parse_decimal(value, field_name, min_val=Decimal("0"), max_val=Decimal("1"))


def parse_date(value: Any, field_name: str) -> date:
    """
    Parse a YYYY-MM-DD string (or pass through a date/datetime).

    Raises:
        ConfigurationError: If the value is not a valid date
    """
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if isinstance(value, str):
        try:
            return datetime.strptime(value, "%Y-%m-%d").date()
        except ValueError:
            pass

    raise ConfigurationError(
        f"Invalid date format for {field_name}: {value}. Expected YYYY-MM-DD"
    )


def _parse_decimal(
    value: Any,
    field_name: str,
    min_val: Decimal | None = None,
    max_val: Decimal | None = None,
) -> Decimal:
    """
    Parse a finite decimal, optionally bounded (inclusive).

    Raises:
        ConfigurationError: If the value is invalid or out of range
    """
    if isinstance(value, bool):
        raise ConfigurationError(f"Invalid decimal value for {field_name}: {value}")
    try:
        decimal_value = Decimal(str(value))
    except InvalidOperation:
        raise ConfigurationError(f"Invalid decimal value for {field_name}: {value}")
    if not decimal_value.is_finite():
        raise ConfigurationError(f"Invalid decimal value for {field_name}: {value}")

    if min_val is not None and decimal_value < min_val:
        raise ConfigurationError(f"{field_name} must be >= {min_val}, got {decimal_value}")
    if max_val is not None and decimal_value > max_val:
        raise ConfigurationError(f"{field_name} must be <= {max_val}, got {decimal_value}")

    return decimal_value


def _parse_positive_int(value: Any, field_name: str) -> int:
    if isinstance(value, bool) or not isinstance(value, (int, str)):
        raise ConfigurationError(f"{field_name} must be a positive integer, got {value}")
    try:
        int_value = int(value)
    except ValueError:
        raise ConfigurationError(f"{field_name} must be a positive integer, got {value}")
    if int_value <= 0:
        raise ConfigurationError(f"{field_name} must be a positive integer, got {value}")
    return int_value


_FIELD_PARSERS: dict[str, Callable[[Any, str], Any]] = {
    "portfolio_dir": _parse_path,
    "cache_dir": _parse_path,
    "log_path": _parse_path,
    "rebalance_tolerance": _parse_tolerance,
    "chart_max_rows": _parse_positive_int,
    "chart_width": _parse_positive_int,
}


def _parse_app_config(raw: dict[str, Any]) -> AppConfig:
    """
    Validate a YAML mapping into an AppConfig.

    Keys left out keep their AppConfig defaults.

    Raises:
        ConfigurationError: On unknown keys or invalid values
    """
    unknown = sorted(set(raw) - set(_FIELD_PARSERS))
    if unknown:
        raise ConfigurationError(f"Unknown configuration fields: {unknown}")

    values = {
        name: _FIELD_PARSERS[name](value, name)
        for name, value in raw.items()
    }
    return AppConfig(**values)


def write_config(config: AppConfig, output_path: str | Path) -> None:
    """Write an AppConfig as YAML that load_app_config reads back unchanged."""
    output_path = Path(output_path)
    output_path.parent.mkdir(parents=True, exist_ok=True)

    with open(output_path, "w") as f:
        yaml.safe_dump(
            {
                "portfolio_dir": str(config.portfolio_dir),
                "cache_dir": str(config.cache_dir),
                "log_path": str(config.log_path),
                "rebalance_tolerance": str(config.rebalance_tolerance),
                "chart_max_rows": config.chart_max_rows,
                "chart_width": config.chart_width,
            },
            f,
            default_flow_style=False,
            sort_keys=False,
        )
