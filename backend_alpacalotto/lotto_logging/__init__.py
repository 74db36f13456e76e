"""
Structured logging for Backend AlpacaLotto.

JSON logs with timestamp, level, event_type and keyword context.
Use get_logger() in all modules for aggregation-friendly output.
"""

from backend_alpacalotto.lotto_logging.logger import bind_owner, get_logger

__all__ = ["bind_owner", "get_logger"]
