import logging.config
from enum import Enum

from pyboot.config.config import config


class LogLevel(Enum):
    """LogLevel"""

    DEBUG = 10
    INFO = 20
    WARNING = 30
    ERROR = 40
    CRITICAL = 50

    @classmethod
    def _missing_(cls, value):
        """Accept level names in any case, fall back to INFO."""
        if isinstance(value, str):
            value = value.strip().upper()
            for member in cls:
                if member.name == value:
                    return member
        return cls.INFO

    @classmethod
    def from_verbosity(cls, verbosity: int) -> "LogLevel":
        """Map the count of -v flags to a level."""
        if verbosity <= 0:
            return cls.INFO
        return cls.DEBUG


def configure_logging():
    """(Re)apply the `logging` section of the active config."""
    logging.config.dictConfig(config.get("logging"))


configure_logging()


class MainLogger:
    """Aplication wide logging."""

    @classmethod
    def get_logger(
        cls, service_name: str = "MAIN", log_level: str = "INFO"
    ) -> logging.Logger:
        """Logging instance getter, configurable by service name and level
        Args:
            service_name(str): Logger instance
            log_level(str): Log level desired for your instance
        Returns:
            logging.Logger: Configured logger instance.
        """
        logger = logging.getLogger(service_name)
        logger.setLevel(LogLevel(log_level).value)
        return logger
