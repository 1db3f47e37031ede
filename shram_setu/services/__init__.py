"""Services package exports."""

from shram_setu.services.logging_service import configure_logging, get_logger

__all__ = [
    "configure_logging",
    "get_logger",
]
