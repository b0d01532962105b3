"""
Logging setup for car
"""
import logging
import sys
from typing import Any, Dict, List, Optional

from pythonjsonlogger.json import JsonFormatter


__all__ = ['ExtraStreamHandler', 'configure_logging']

LOGGER_NAME = 'car'
# Context every executor record carries; on the console only with --verbose
CONTEXT_FIELDS = ['format', 'destination']


class ExtraStreamHandler(logging.StreamHandler):
    """
    StreamHandler that appends a record's `extra` fields to the message
    """
    LOGGING_RESERVED_ATTRS = frozenset(
        logging.LogRecord('', 0, '', 0, '', (), None).__dict__,
    ) | {'asctime', 'message'}
    SEPARATOR = ' | '

    def __init__(self, stream: Any = None, exclude_extra: Optional[List[str]] = None):
        super().__init__(stream=stream)
        self.exclude_extra = exclude_extra or []

    def _format_extra(self, extra: Dict) -> str:
        if not extra:
            return ''
        return self.SEPARATOR + self.SEPARATOR.join(
            f'{key}: {value}' for key, value in extra.items()
        )

    def _get_extra(self, record: logging.LogRecord) -> Dict:
        return {
            key: value
            for key, value in record.__dict__.items()
            if key not in self.LOGGING_RESERVED_ATTRS
            and key not in self.exclude_extra
            and not key.startswith('_')
        }

    def format(self, record: logging.LogRecord) -> str:
        return super().format(record) + self._format_extra(self._get_extra(record))


def _reset(logger: logging.Logger):
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()


def configure_logging(config, stream: Any = None) -> logging.Logger:
    """
    Attach handlers to the `car` logger according to `config`.

    With `logging` disabled nothing is emitted. Otherwise messages go to the
    console (DEBUG with `verbose`, INFO without) and, when `logfile` is set,
    to a JSON log file for longer-term records.
    """
    logger = logging.getLogger(LOGGER_NAME)
    _reset(logger)
    logger.propagate = False

    if not config.get_bool('logging'):
        logger.addHandler(logging.NullHandler())
        logger.setLevel(logging.CRITICAL + 1)
        return logger

    logger.setLevel(logging.DEBUG)

    verbose = config.get_bool('verbose')
    console_handler = ExtraStreamHandler(
        stream=stream or sys.stdout,
        exclude_extra=[] if verbose else CONTEXT_FIELDS,
    )
    console_handler.setLevel(logging.DEBUG if verbose else logging.INFO)
    console_handler.setFormatter(logging.Formatter('[%(levelname)s] %(message)s'))
    logger.addHandler(console_handler)

    logfile = config.get_string('logfile')
    if logfile:
        file_handler = logging.FileHandler(logfile)
        file_handler.setLevel(logging.DEBUG)
        file_handler.setFormatter(JsonFormatter(timestamp=True))
        logger.addHandler(file_handler)

    return logger
