"""Logging setup for the API process."""

import logging

from snaptosheet.shared.config import Settings

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


def configure_logging(settings: Settings) -> None:
    """Configure root logging from settings.

    Args:
        settings: Application settings (log_level is used)
    """
    logging.basicConfig(level=getattr(logging, settings.log_level), format=LOG_FORMAT)
