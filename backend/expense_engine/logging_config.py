import logging
from logging.config import dictConfig
from typing import Union


def configure_logging(level: Union[int, str] = logging.INFO) -> None:
    """Install a console handler on the root and uvicorn loggers."""
    if isinstance(level, str):
        level = logging.getLevelName(level.upper())
        if not isinstance(level, int):
            level = logging.INFO

    dictConfig(
        {
            "version": 1,
            "disable_existing_loggers": False,
            "formatters": {
                "standard": {"format": "%(asctime)s %(levelname)s %(name)s: %(message)s"}
            },
            "handlers": {
                "console": {
                    "class": "logging.StreamHandler",
                    "formatter": "standard",
                    "level": level,
                }
            },
            "loggers": {
                "": {"handlers": ["console"], "level": level},
                "uvicorn": {"handlers": ["console"], "level": level, "propagate": False},
            },
        }
    )
