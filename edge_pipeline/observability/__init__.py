# Logger exports
from .logger import StructuredLogger, configure_logger, get_logger, reset_logger

__all__ = ["StructuredLogger", "configure_logger", "get_logger", "reset_logger"]
