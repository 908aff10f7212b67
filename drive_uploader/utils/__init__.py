"""
Utility modules for the Drive uploader.

- logging: Structured logging with entry/exit decorators and the action prefix
- config: Environment configuration
- config_loader: YAML job files for the CLI
- metrics: Prometheus collectors
"""

from drive_uploader.utils.logging import get_logger, log_function_call

__all__ = ["get_logger", "log_function_call"]
