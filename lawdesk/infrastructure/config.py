"""
lawdesk configuration and settings.

Centralizes configuration for the core library: logging output,
invoice defaults and table filter behavior, read from environment
variables.
"""
from dataclasses import dataclass
from typing import Optional, Dict, Any
from pathlib import Path
import os


def _env_flag(name: str, default: str) -> bool:
    return os.getenv(name, default).strip().lower() in ("1", "true", "yes", "on")


@dataclass(frozen=True)
class LawdeskConfig:
    """Configuration for the lawdesk core."""

    # Logging
    log_level: str = "INFO"
    log_json: bool = False
    log_dir: Optional[str] = None

    # Invoices
    invoice_due_days: int = 30

    # Table views: filter text is a regular expression when True,
    # a literal substring otherwise
    filter_regex: bool = True

    def __post_init__(self):
        if self.invoice_due_days < 0:
            raise ValueError("invoice_due_days must be >= 0")

    @classmethod
    def from_env(cls) -> 'LawdeskConfig':
        """Create config from environment variables."""
        return cls(
            log_level=os.getenv("LAWDESK_LOG_LEVEL", "INFO").upper(),
            log_json=_env_flag("LAWDESK_LOG_JSON", "false"),
            log_dir=os.getenv("LAWDESK_LOG_DIR") or None,
            invoice_due_days=int(os.getenv("LAWDESK_INVOICE_DUE_DAYS", "30")),
            filter_regex=_env_flag("LAWDESK_FILTER_REGEX", "true"),
        )

    @property
    def log_file(self) -> Optional[Path]:
        """JSON log file path, when a log directory is configured."""
        if not self.log_dir:
            return None
        return Path(self.log_dir) / "lawdesk.log"

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for diagnostics."""
        return {
            "log_level": self.log_level,
            "log_json": self.log_json,
            "log_dir": self.log_dir,
            "invoice_due_days": self.invoice_due_days,
            "filter_regex": self.filter_regex,
        }
