"""
Root logging setup for relaychat plus structured error aggregation.

``LoggerConfigurator`` installs a colorlog handler on the root logger;
``log_structured_error`` is the single sink for categorised failures and keeps
per-category counts in ``error_aggregator``.
"""

import atexit
import logging
import os
import sys
import threading
import time
from collections import defaultdict, deque
from typing import Any

import colorlog

LOG_FORMAT = (
    "%(asctime)s %(log_color)s%(levelname)-8s%(reset)s "
    "%(message_log_color)s%(message)s"
)
LOG_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"
LOG_COLORS = {
    "DEBUG": "cyan",
    "INFO": "green",
    "WARNING": "yellow",
    "ERROR": "red",
    "CRITICAL": "magenta",
}
# Rate (per hour) above which a category raises a CRITICAL alert.
ALERT_RATE_PER_HOUR = 10.0


def debug_enabled() -> bool:
    return os.environ.get("DEBUG", "").lower() in ("true", "1", "yes")


class ErrorAggregator:
    """Keeps the most recent error records per category.

    Used for the rate alert in ``log_structured_error`` and for the summary
    printed when the process exits.
    """

    def __init__(self, max_per_type: int = 500):
        self.max_per_type = max_per_type
        self.lock = threading.Lock()
        self.errors: dict[str, deque[dict[str, Any]]] = defaultdict(
            lambda: deque(maxlen=self.max_per_type)
        )
        self.start_time = time.time()

    def record_error(
        self, error_type: str, message: str, context: dict[str, Any] | None = None
    ) -> None:
        entry = {"timestamp": time.time(), "message": message, "context": context or {}}
        with self.lock:
            self.errors[error_type].append(entry)

    def _rate(self, count: int, now: float) -> float:
        # Rates are per hour, never averaged over less than one hour.
        hours = max((now - self.start_time) / 3600, 1)
        return count / hours

    def get_error_summary(self) -> dict[str, Any]:
        """Per category: total, last-hour count, hourly rate, last record."""
        now = time.time()
        with self.lock:
            snapshot = {k: list(v) for k, v in self.errors.items()}
        summary: dict[str, Any] = {}
        for error_type, entries in snapshot.items():
            summary[error_type] = {
                "total_count": len(entries),
                "recent_count": sum(
                    1 for e in entries if now - e["timestamp"] < 3600
                ),
                "rate_per_hour": self._rate(len(entries), now),
                "last_occurrence": entries[-1] if entries else None,
            }
        return summary

    def should_alert(
        self, error_type: str, threshold_rate: float = ALERT_RATE_PER_HOUR
    ) -> bool:
        stats = self.get_error_summary().get(error_type)
        return stats is not None and stats["rate_per_hour"] > threshold_rate

    def clear(self) -> None:
        with self.lock:
            self.errors.clear()
            self.start_time = time.time()

    def log_summary_report(self) -> None:
        summary = self.get_error_summary()
        if not summary:
            logging.info("No errors recorded in current session")
            return
        logging.warning("Error summary for this session:")
        for error_type, stats in sorted(summary.items()):
            last = stats["last_occurrence"]
            logging.warning(
                "  %s: %d total, %d in last hour, %.1f/hour%s",
                error_type,
                stats["total_count"],
                stats["recent_count"],
                stats["rate_per_hour"],
                f" (last: {last['message']})" if last else "",
            )


error_aggregator = ErrorAggregator()


def log_structured_error(
    error_type: str,
    message: str,
    exception: BaseException | None = None,
    context: dict[str, Any] | None = None,
    level: int = logging.ERROR,
) -> None:
    """Log ``[CATEGORY] message | Exception: X | Context: k=v`` and aggregate it."""
    parts = [f"[{error_type.upper()}] {message}"]
    if exception is not None:
        parts.append(f"Exception: {type(exception).__name__}")
    if context:
        parts.append("Context: " + " | ".join(f"{k}={v}" for k, v in context.items()))
    logging.log(level, " | ".join(parts))

    error_aggregator.record_error(error_type, message, context)
    if error_aggregator.should_alert(error_type):
        rate = error_aggregator.get_error_summary()[error_type]["rate_per_hour"]
        logging.critical(f"High error rate: {error_type} at {rate:.1f}/hour")


class LoggerConfigurator:
    """Configures the root logger with colorlog output on stderr.

    The level is DEBUG when the ``DEBUG`` environment variable is truthy and
    INFO otherwise. Pass ``{"summary_on_exit": False}`` to skip the error
    summary at interpreter exit.
    """

    def __init__(self, config=None):
        self.config = config or {}
        self._summary_registered = False

    def build_formatter(self) -> colorlog.ColoredFormatter:
        return colorlog.ColoredFormatter(
            LOG_FORMAT,
            datefmt=LOG_DATE_FORMAT,
            log_colors=LOG_COLORS,
            secondary_log_colors={"message": {"ERROR": "red", "CRITICAL": "magenta"}},
            reset=True,
        )

    def configure(self):
        level = logging.DEBUG if debug_enabled() else logging.INFO
        handler = logging.StreamHandler(sys.stderr)
        handler.setFormatter(self.build_formatter())

        root = logging.getLogger()
        for existing in list(root.handlers):
            root.removeHandler(existing)
        root.addHandler(handler)
        root.setLevel(level)
        logging.getLogger("asyncio").setLevel(logging.INFO)

        if self.config.get("summary_on_exit", True) and not self._summary_registered:
            atexit.register(self._log_final_error_summary)
            self._summary_registered = True

    def _log_final_error_summary(self):
        try:
            error_aggregator.log_summary_report()
        except Exception as e:  # noqa: BLE001
            logging.error(f"Failed to log final error summary: {e}")
