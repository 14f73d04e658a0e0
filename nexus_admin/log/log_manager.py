"""
Logging for the service: one file per process run under ``log_dir`` plus an
optional console handler, with retention applied at startup.

Configuration is the ``logging`` section of ``Settings`` (``as_dict()``).
"""
import logging
from datetime import datetime, timedelta
from pathlib import Path
from typing import Any

_MB = 1024 * 1024
_FORMAT = "%(asctime)s.%(msecs)03d | %(levelname)s | %(name)s | %(message)s"
_DATEFMT = "%Y-%m-%d %H:%M:%S"


class LogManager:
    """Hands out named loggers bound to the current run file and prunes old runs."""

    def __init__(self, config: dict[str, Any] | None = None):
        config = config or {}
        default_dir = Path(__file__).resolve().parents[2] / "logs" / "app"
        self.log_dir = Path(config["log_dir"]) if config.get("log_dir") else default_dir
        self.log_dir.mkdir(parents=True, exist_ok=True)

        self.level = getattr(logging, str(config.get("level") or "INFO").upper(), logging.INFO)
        self.console_output = bool(config.get("console_output", True))
        self.max_size_mb = int(config.get("max_size_mb", 100))
        self.max_age_days = int(config.get("max_age_days", 30))
        self.min_keep_mb = int(config.get("min_keep_mb", 20))

        self.run_file = self.log_dir / datetime.now().strftime("%Y-%m-%d_%H-%M-%S.log")
        self._names: set[str] = set()

    def _handlers(self) -> list[logging.Handler]:
        handlers: list[logging.Handler] = [logging.FileHandler(self.run_file, encoding="utf-8")]
        if self.console_output:
            handlers.append(logging.StreamHandler())
        formatter = logging.Formatter(_FORMAT, datefmt=_DATEFMT)
        for handler in handlers:
            handler.setLevel(self.level)
            handler.setFormatter(formatter)
        return handlers

    def _bind(self, name: str) -> logging.Logger:
        logger = logging.getLogger(name)
        for old in list(logger.handlers):
            logger.removeHandler(old)
            old.close()
        for handler in self._handlers():
            logger.addHandler(handler)
        logger.setLevel(self.level)
        logger.propagate = False
        self._names.add(name)
        return logger

    def get_logger(self, name: str) -> logging.Logger:
        logger = logging.getLogger(name)
        if name in self._names and logger.handlers:
            return logger
        return self._bind(name)

    def adopt(self, names: set[str]) -> None:
        """Rebind loggers created by a previous manager to this one."""
        for name in names:
            self._bind(name)

    # ── retention ──────────────────────────────────────────────────────

    def cleanup(self) -> dict[str, Any]:
        """
        Prune ``*.log`` files. Below ``min_keep_mb`` in total nothing is touched;
        otherwise files older than ``max_age_days`` go, then the oldest until the
        total fits ``max_size_mb``. The current run file is never deleted.
        """
        report: dict[str, Any] = {"deleted_by_age": [], "deleted_by_size": [], "remaining_mb": 0.0}
        files = sorted(self.log_dir.glob("*.log"), key=lambda p: p.stat().st_mtime)
        if sum(f.stat().st_size for f in files) >= self.min_keep_mb * _MB:
            cutoff = (datetime.now() - timedelta(days=self.max_age_days)).timestamp()
            kept = []
            for f in files:
                if f != self.run_file and f.stat().st_mtime < cutoff:
                    f.unlink()
                    report["deleted_by_age"].append(f.name)
                else:
                    kept.append(f)

            prunable = [f for f in kept if f != self.run_file]
            while prunable and sum(f.stat().st_size for f in kept) > self.max_size_mb * _MB:
                oldest = prunable.pop(0)
                kept.remove(oldest)
                oldest.unlink()
                report["deleted_by_size"].append(oldest.name)
            files = kept

        report["remaining_mb"] = sum(f.stat().st_size for f in files) / _MB
        return report


_manager: LogManager | None = None


def init_logging(config: dict[str, Any] | None = None) -> LogManager:
    """(Re)configure logging; loggers handed out earlier move to the new run file.

    Without *config* the ``logging`` section of the process-wide settings is used.
    """
    global _manager
    if config is None:
        from config.settings import settings
        config = settings.logging.as_dict()
    previous = _manager
    _manager = LogManager(config)
    if previous is not None:
        _manager.adopt(previous._names)
    return _manager


def get_logger(name: str) -> logging.Logger:
    if _manager is None:
        init_logging()
    return _manager.get_logger(name)


def cleanup_logs() -> dict[str, Any]:
    if _manager is None:
        init_logging()
    return _manager.cleanup()
