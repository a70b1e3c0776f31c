"""
Structured logging for Backend Pumpwatch.

JSON logs with timestamp, event_type and keyword context (mint, score, verdict).
"""

from backend_pumpwatch.pumpwatch_logging.logger import LOG_STREAM, get_logger, log_to_stderr

__all__ = ["get_logger", "log_to_stderr", "LOG_STREAM"]
