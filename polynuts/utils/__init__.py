# Utilities
from .logger import setup_logging, get_logger, OrderLogger

__all__ = ["setup_logging", "get_logger", "OrderLogger"]
