import logging

LOG_FORMAT = "%(asctime)s %(levelname)-5s %(name)s - %(message)s"

NOISY_LOGGERS = ("httpx", "httpcore", "sqlalchemy.engine")


def configure_logging(level: str | int = logging.INFO) -> None:
    """Install the service log format on the root logger and quiet chatty libraries."""
    if isinstance(level, str):
        level = logging.getLevelName(level.upper())
    logging.basicConfig(level=level, format=LOG_FORMAT)
    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)
