"""Process-wide logging setup, called once from the app factory."""

import logging

from circuitsim.config import Settings

LOG_FORMAT = "%(asctime)s %(levelname)-8s %(name)s — %(message)s"


def configure_logging(settings: Settings) -> None:
    level = logging.DEBUG if settings.debug else settings.log_level.upper()
    logging.basicConfig(level=level, format=LOG_FORMAT)
    logging.getLogger("circuitsim").setLevel(level)
