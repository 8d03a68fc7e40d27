"""
Audit Logger Module - Logging of keychain administration for auditing.

Records key creation, removal, loads, saves and verification outcomes.
Secrets and hashes are never written to the log, only key ids.
"""

import logging
import os
from datetime import datetime
from pathlib import Path
from typing import Optional


DEFAULT_LOG_DIR = os.path.join(os.path.expanduser("~"), ".access_keychain", "logs")


class AuditLogger:
    """
    Handles audit logging for keychain operations.

    Logs go to a daily file in a private directory, with timestamps,
    operation names and key=value details.
    """

    def __init__(
        self,
        log_dir: Optional[str] = None,
        log_level: int = logging.INFO,
        console_output: bool = False
    ):
        """
        Initialize the audit logger.

        Args:
            log_dir: Directory to store log files. Defaults to ~/.access_keychain/logs
            log_level: Logging level (default: INFO)
            console_output: Whether to also output to console
        """
        self.log_dir = Path(log_dir or DEFAULT_LOG_DIR)
        self.log_dir.mkdir(parents=True, exist_ok=True)

        # Set restrictive permissions on log directory
        try:
            os.chmod(self.log_dir, 0o700)
        except OSError:
            pass  # May fail on some systems, continue anyway

        self.logger = logging.getLogger("access_keychain.audit")
        self.logger.setLevel(log_level)
        for handler in list(self.logger.handlers):
            self.logger.removeHandler(handler)
            handler.close()

        log_file = self.log_dir / f"audit_{datetime.now().strftime('%Y%m%d')}.log"
        file_handler = logging.FileHandler(log_file, encoding='utf-8')
        file_handler.setLevel(log_level)

        formatter = logging.Formatter(
            '%(asctime)s | %(levelname)s | %(message)s',
            datefmt='%Y-%m-%d %H:%M:%S'
        )
        file_handler.setFormatter(formatter)
        self.logger.addHandler(file_handler)

        if console_output:
            console_handler = logging.StreamHandler()
            console_handler.setLevel(log_level)
            console_handler.setFormatter(formatter)
            self.logger.addHandler(console_handler)

    def log_info(self, message: str, **kwargs) -> None:
        """Log an informational message."""
        self.logger.info(f"{message}{self._format_extra(kwargs)}")

    def log_warning(self, message: str, **kwargs) -> None:
        """Log a warning message."""
        self.logger.warning(f"{message}{self._format_extra(kwargs)}")

    def log_error(self, message: str, **kwargs) -> None:
        """Log an error message."""
        self.logger.error(f"{message}{self._format_extra(kwargs)}")

    def log_keychain_loaded(self, path: str, keys: int) -> None:
        self.log_info("KEYCHAIN_LOADED", path=path, keys=keys)

    def log_keychain_saved(self, path: str, keys: int) -> None:
        self.log_info("KEYCHAIN_SAVED", path=path, keys=keys)

    def log_key_created(self, key_id: str) -> None:
        """Log a key creation event (without logging the secret)."""
        self.log_info("KEY_CREATED", key_id=key_id)

    def log_key_added(self, key_id: str) -> None:
        self.log_info("KEY_ADDED", key_id=key_id)

    def log_key_removed(self, key_id: str) -> None:
        self.log_info("KEY_REMOVED", key_id=key_id)

    def log_authentication(self, key_id: str, success: bool) -> None:
        """Log a verification attempt."""
        if success:
            self.log_info("AUTH_SUCCESS", key_id=key_id)
        else:
            self.log_warning("AUTH_FAILURE", key_id=key_id)

    def _format_extra(self, kwargs: dict) -> str:
        """Format extra keyword arguments for logging."""
        if not kwargs:
            return ""
        return "".join(f" | {k}={v}" for k, v in kwargs.items())

    def close(self) -> None:
        """Detach and close all handlers."""
        for handler in list(self.logger.handlers):
            self.logger.removeHandler(handler)
            handler.close()

    def get_log_files(self) -> list:
        """Get list of all log files."""
        return sorted(self.log_dir.glob("audit_*.log"))

    def get_recent_logs(self, lines: int = 100) -> list:
        """Get the most recent log entries."""
        log_files = self.get_log_files()
        if not log_files:
            return []

        for handler in self.logger.handlers:
            handler.flush()

        try:
            with open(log_files[-1], 'r', encoding='utf-8') as f:
                return f.readlines()[-lines:]
        except OSError:
            return []
