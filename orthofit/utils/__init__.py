"""Utility modules."""

from .config_loader import load_config, merge_configs, get_nested
from .logger import setup_logger, get_logger, LoggerMixin, log_function_call

__all__ = [
    "load_config",
    "merge_configs",
    "get_nested",
    "setup_logger",
    "get_logger",
    "LoggerMixin",
    "log_function_call",
]
