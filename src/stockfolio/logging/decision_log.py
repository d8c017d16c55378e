"""
Append-only audit trail of portfolio changes.

Every buy, sell, rebalance, save and load is appended to a JSONL file as
one object per line:

    {"timestamp": ..., "action_type": ..., "portfolio_name": ..., "details": {...}}

Decimals, dates and paths inside ``details`` are written as strings so the
log never loses precision.
"""

import json
from datetime import date, datetime
from decimal import Decimal
from pathlib import Path
from typing import Any, Iterator, Optional

from stockfolio.models import ActionType, AppConfig, DecisionLogEntry


def _json_default(obj: Any) -> Any:
    if isinstance(obj, (Decimal, Path)):
        return str(obj)
    if isinstance(obj, (date, datetime)):
        return obj.isoformat()
    raise TypeError(f"{type(obj).__name__} is not JSON serializable")


def entry_to_json(entry: DecisionLogEntry) -> str:
    """Serialize one entry to a single JSON line (without newline)."""
    return json.dumps(
        {
            "timestamp": entry.timestamp.isoformat(),
            "action_type": entry.action_type.value,
            "portfolio_name": entry.portfolio_name,
            "details": entry.details,
        },
        default=_json_default,
    )


def entry_from_json(line: str) -> DecisionLogEntry:
    """Parse one JSON line back into an entry."""
    record = json.loads(line)
    return DecisionLogEntry(
        timestamp=datetime.fromisoformat(record["timestamp"]),
        action_type=ActionType(record["action_type"]),
        portfolio_name=record.get("portfolio_name"),
        details=record.get("details") or {},
    )


class DecisionLogger:
    """
    Appends DecisionLogEntry records to a JSONL file.

    The file and its parent directory are created on demand; existing
    entries are never rewritten.
    """

    def __init__(self, log_path: str | Path):
        self.log_path = Path(log_path)
        self.log_path.parent.mkdir(parents=True, exist_ok=True)

    def __repr__(self) -> str:
        return f"DecisionLogger({str(self.log_path)!r})"

    def log(self, entry: DecisionLogEntry) -> None:
        with self.log_path.open("a", encoding="utf-8") as f:
            f.write(entry_to_json(entry) + "\n")

    def record(
        self,
        action_type: ActionType,
        portfolio_name: Optional[str],
        **details: Any,
    ) -> None:
        """Append a timestamped entry built from keyword details."""
        self.log(DecisionLogEntry.create(
            action_type=action_type,
            portfolio_name=portfolio_name,
            details=details,
        ))

    def log_portfolio_created(self, portfolio_name: str) -> None:
        self.record(ActionType.PORTFOLIO_CREATED, portfolio_name)

    def log_portfolio_saved(
        self,
        portfolio_name: str,
        path: str | Path,
        num_lots: int,
    ) -> None:
        """
        Record that a portfolio file was written.

        Args:
            portfolio_name: Portfolio name
            path: File written
            num_lots: Number of lot lines written
        """
        self.record(
            ActionType.PORTFOLIO_SAVED,
            portfolio_name,
            path=str(path),
            num_lots=num_lots,
        )

    def log_portfolio_loaded(
        self,
        portfolio_name: str,
        path: str | Path,
        symbols: list[str],
    ) -> None:
        self.record(
            ActionType.PORTFOLIO_LOADED,
            portfolio_name,
            path=str(path),
            symbols=list(symbols),
        )

    def log_config_loaded(
        self,
        config: AppConfig,
        config_path: Optional[str | Path],
    ) -> None:
        """
        Record which settings a CLI run is using.

        Args:
            config: Effective configuration
            config_path: File it came from (None when defaults were used)
        """
        self.record(
            ActionType.CONFIG_LOADED,
            None,
            config_path=str(config_path) if config_path is not None else None,
            portfolio_dir=str(config.portfolio_dir),
            cache_dir=str(config.cache_dir),
            rebalance_tolerance=str(config.rebalance_tolerance),
        )

    def iter_entries(
        self,
        portfolio_name: Optional[str] = None,
        action_type: Optional[ActionType] = None,
    ) -> Iterator[DecisionLogEntry]:
        """
        Stream entries in the order they were written.

        Args:
            portfolio_name: Only yield entries for this portfolio
            action_type: Only yield entries of this type

        Yields:
            Matching entries; blank lines are skipped
        """
        if not self.log_path.exists():
            return

        with self.log_path.open("r", encoding="utf-8") as f:
            for line in f:
                if not line.strip():
                    continue
                entry = entry_from_json(line)
                if portfolio_name is not None and entry.portfolio_name != portfolio_name:
                    continue
                if action_type is not None and entry.action_type != action_type:
                    continue
                yield entry

    def read_log(self) -> list[DecisionLogEntry]:
        return list(self.iter_entries())

    def filter_by_portfolio(self, portfolio_name: str) -> list[DecisionLogEntry]:
        return list(self.iter_entries(portfolio_name=portfolio_name))

    def filter_by_action_type(self, action_type: ActionType) -> list[DecisionLogEntry]:
        return list(self.iter_entries(action_type=action_type))


_default_logger: Optional[DecisionLogger] = None


def get_logger(log_path: Optional[str | Path] = None) -> DecisionLogger:
    """
    Return the process-wide decision logger.

    Passing a path (re)binds it to that file; otherwise the first call binds
    it to the default ``AppConfig().log_path``.
    """
    global _default_logger

    if log_path is not None:
        _default_logger = DecisionLogger(log_path)
    elif _default_logger is None:
        _default_logger = DecisionLogger(AppConfig().log_path)

    return _default_logger


def log_action(
    action_type: ActionType,
    portfolio_name: Optional[str],
    details: dict,
    log_path: Optional[str | Path] = None,
) -> None:
    """Append one entry through the process-wide logger."""
    get_logger(log_path).log(DecisionLogEntry.create(
        action_type=action_type,
        portfolio_name=portfolio_name,
        details=details,
    ))
