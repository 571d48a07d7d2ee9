import logging
import json
import os
from typing import Any, Dict

from brokerlink.core.config import get_settings


class ServiceLogger:
    """Centralized logging for auth and broker operations"""

    def __init__(self, name: str = "brokerlink"):
        self.logger = logging.getLogger(name)
        self._setup_logger()

    def _setup_logger(self):
        """Configure logger with console and optional file handlers"""
        if self.logger.handlers:
            return
        settings = get_settings()
        formatter = logging.Formatter(
            '%(asctime)s - %(name)s - %(levelname)s - %(message)s'
        )

        console_handler = logging.StreamHandler()
        console_handler.setFormatter(formatter)
        self.logger.addHandler(console_handler)

        if settings.LOG_FILE:
            log_dir = os.path.dirname(settings.LOG_FILE)
            if log_dir:
                os.makedirs(log_dir, exist_ok=True)
            handler = logging.FileHandler(settings.LOG_FILE)
            handler.setFormatter(formatter)
            self.logger.addHandler(handler)

        self.logger.setLevel(settings.LOG_LEVEL.upper())
        self.logger.propagate = False

    def log_error(self, error: str, context: Dict[str, Any] = None):
        """Log errors with context"""
        context = context or {}
        self.logger.error(f"ERROR: {error} | Context: {self._dump(context)}")

    def log_api_call(self, broker: str, endpoint: str, status: str):
        """Log API calls"""
        self.logger.info(f"API_CALL: Broker={broker}, Endpoint={endpoint}, Status={status}")

    def log_info(self, message: str, context: Dict[str, Any] = None):
        """Generic info logging with optional context."""
        context = context or {}
        self.logger.info(f"INFO: {message} | Context: {self._dump(context)}")

    @staticmethod
    def _dump(context: Dict[str, Any]) -> str:
        try:
            return json.dumps(context, default=str)
        except Exception:
            return str(context)


logger = ServiceLogger()
