"""
Structured logging for the topic map core.
Index mutations, parking store changes and heartbeat tasks are logged through one formatter.
"""

import logging
from typing import Any, Dict

MAX_VALUE_LENGTH = 50


def truncate(value: Any, limit: int = MAX_VALUE_LENGTH) -> Any:
    """Shorten long strings so labels and metadata don't flood the log."""
    if isinstance(value, str) and len(value) > limit:
        return value[:limit - 3] + "..."
    return value


class StructuredLogger:
    """Structured logger for vector, staging and heartbeat operations."""

    def __init__(self, name: str = "topic_map"):
        self.logger = logging.getLogger(name)
        self.logger.setLevel(logging.INFO)

        # Create handler if not already set
        if not self.logger.handlers:
            handler = logging.StreamHandler()
            formatter = logging.Formatter(
                '%(asctime)s - %(name)s - %(levelname)s - %(message)s'
            )
            handler.setFormatter(formatter)
            self.logger.addHandler(handler)

    def log_operation(self, operation: str, status: str, details: Dict[str, Any] = None):
        """Log a structured operation."""
        message = f"Operation: {operation}, Status: {status}"
        if details:
            message += f", Details: {details}"

        if status in ("failed", "rejected"):
            self.logger.warning(message)
        else:
            self.logger.info(message)

    def log_vector_operation(self, operation: str, record_id: str, details: Dict[str, Any] = None, status: str = "success"):
        """Log a vector index operation."""
        log_details = {"record_id": record_id}
        if details:
            log_details.update({k: truncate(v) for k, v in details.items()})

        self.log_operation(f"vector.{operation}", status, log_details)

    def log_staging_operation(self, operation: str, item_id: str = None, details: Dict[str, Any] = None, status: str = "success"):
        """Log a parking store operation."""
        log_details = {}
        if item_id is not None:
            log_details["item_id"] = item_id
        if details:
            log_details.update({k: truncate(v) for k, v in details.items()})

        self.log_operation(f"staging.{operation}", status, log_details)

    def log_heartbeat_task(self, task_name: str, start_time: float, end_time: float, status: str = "success", details: Dict[str, Any] = None):
        """Log heartbeat task execution."""
        duration_ms = round((end_time - start_time) * 1000, 2)
        log_details = {"duration_ms": duration_ms}
        if details:
            log_details.update(details)
        elif status == "success":
            log_details["message"] = f"Heartbeat task '{task_name}' completed in {duration_ms}ms"
        elif status == "failed":
            log_details["message"] = f"Heartbeat task '{task_name}' failed after {duration_ms}ms"

        self.log_operation(f"heartbeat.{task_name}", status, log_details)

    # Standard logging methods for compatibility
    def info(self, message: str) -> None:
        """Log an info message."""
        self.logger.info(message)

    def warning(self, message: str) -> None:
        """Log a warning message."""
        self.logger.warning(message)

    def error(self, message: str) -> None:
        """Log an error message."""
        self.logger.error(message)

    def debug(self, message: str) -> None:
        """Log a debug message."""
        self.logger.debug(message)


# Global logger instance
logger = StructuredLogger()
