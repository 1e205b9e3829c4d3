"""Logging configuration
"""
import copy
import logging
from logging.config import dictConfig

from googleprojection import config

logger = logging.getLogger(__name__)

__all__ = [
    'configure_logging',
    'set_level',
    ]


LOG_CONF = {
    'version': 1,
    'disable_existing_loggers': False,
    'formatters': {
        'cmd_fmt': {'format': None},
    },
    'handlers': {
        'cmd': {
            'level': 'DEBUG',
            'formatter': 'cmd_fmt',
            'class': 'logging.StreamHandler',
            'stream': 'ext://sys.stderr',
            },
        },
    'loggers': {
        'googleprojection': {
            'handlers': ['cmd'],
            'level': None,
            'propagate': False,
            },
        },
    }


def _level_number(levelname):
    level_names = {v: k for k, v in logging._levelToName.items()}
    level_names['WARN'] = level_names['WARNING']
    try:
        return level_names[levelname.upper()]
    except KeyError:
        raise ValueError(f'Invalid log level: {levelname}') from None


def set_level(levelname, name='googleprojection'):
    """Set the level of the library logger (or any named logger) and its handlers"""
    level = _level_number(levelname)
    this_logger = logging.getLogger(name)
    for handler in this_logger.handlers:
        handler.setLevel(level)
    this_logger.setLevel(level)


def configure_logging(level=None):
    """Send library log records to stderr

    Parameters
        level: level name for the `googleprojection` logger, defaults to
            the `log.level` setting. Settings are read on every call.
    """
    level = level or config.log.level
    _level_number(level)
    logconfig = copy.deepcopy(LOG_CONF)
    logconfig['formatters']['cmd_fmt']['format'] = config.log.format
    logconfig['loggers']['googleprojection']['level'] = level.upper()
    dictConfig(logconfig)
    logger.debug('Configured googleprojection logging')


if __name__ == '__main__':
    configure_logging('debug')
    from googleprojection.projection import GoogleProjection
    GoogleProjection(512, precompute=False).forward_pixel((0.0, 0.0), 1)
