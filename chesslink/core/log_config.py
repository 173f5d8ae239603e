"""Logging setup for applications embedding chesslink. The library itself only creates module loggers."""

import logging

LOG_FORMAT = "%(asctime)s  %(levelname)-7s %(name)s: %(message)s"


def configure_logging(level: str = "INFO") -> None:
    logging.basicConfig(level=level, format=LOG_FORMAT)
    logging.getLogger("chesslink").setLevel(level)
