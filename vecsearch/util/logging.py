"""
Structured logging for index, store and graph operations.
"""

import logging
from typing import Any, Dict, List


class StructuredLogger:
    """Structured logger for exact index, object store and HNSW operations."""

    def __init__(self, name: str = "vecsearch"):
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

        if status == "failed":
            self.logger.error(message)
        else:
            self.logger.info(message)

    def log_index_operation(self, operation: str, position: int = None, details: Dict[str, Any] = None, status: str = "success"):
        """Log an in-memory index mutation."""
        log_details = {}
        if position is not None:
            log_details["position"] = position
        if details:
            log_details.update(details)

        self.log_operation(f"index.{operation}", status, log_details)

    def log_store_operation(self, operation: str, store_name: str, details: Dict[str, Any] = None, status: str = "success"):
        """Log an object store operation."""
        log_details = {"store": store_name}
        if details:
            log_details.update(details)

        self.log_operation(f"store.{operation}", status, log_details)

    def log_graph_operation(self, operation: str, details: Dict[str, Any] = None, status: str = "success"):
        """Log an HNSW graph operation."""
        self.log_operation(f"hnsw.{operation}", status, details)

    def log_search(self, source: str, top_k: int, scanned: int, returned: int, start_time: float, end_time: float):
        """Log search execution with timing."""
        duration_ms = round((end_time - start_time) * 1000, 2)
        log_details = {
            "top_k": top_k,
            "scanned": scanned,
            "returned": returned,
            "duration_ms": duration_ms,
        }
        self.log_operation(f"search.{source}", "success", log_details)

    def log_validation_error(self, operation: str, errors: List[Any]):
        """Log record validation errors without leaking embedding values."""
        sanitized_errors = [str(error)[:100] for error in errors]
        log_details = {
            "operation": operation,
            "errors": sanitized_errors,
            "error_count": len(sanitized_errors)
        }
        self.log_operation("validation.error", "rejected", log_details)

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


def sanitize_record(record: Any, max_items: int = 4) -> Any:
    """Shorten records for log output; long embeddings are truncated."""
    if isinstance(record, dict):
        return {k: sanitize_record(v, max_items) for k, v in record.items()}
    elif isinstance(record, (list, tuple)) and len(record) > max_items:
        return list(record[:max_items]) + [f"... ({len(record)} items)"]
    elif isinstance(record, str):
        return record[:100] + "..." if len(record) > 100 else record
    else:
        return record
