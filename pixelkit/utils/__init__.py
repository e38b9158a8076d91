"""Shared utilities for PixelKit."""

from .logger import get_logger, setup_logging, setup_from_config, LoggerAdapter, log_execution_time

__all__ = ['get_logger', 'setup_logging', 'setup_from_config', 'LoggerAdapter', 'log_execution_time']
