import logging
import os
from datetime import datetime, timezone
from logging import handlers

from appreg.util.ensure import ensure_bool

logger = logging.getLogger(__name__)

# Config path of a list of logger names -> level forced onto those loggers
_LOGGER_LEVEL_OVERRIDES = (
    ('logging.loglevel_info', logging.INFO),
    ('logging.loglevel_warning', logging.WARNING),
)


class TimeOfLaunchRotatingFileHandler(handlers.RotatingFileHandler):
    """One log file per launch of the host, named "<filename_base><UTC timestamp>.log". The file never rolls over."""

    def __init__(self, log_dir: str, filename_base: str, mode='a', maxbytes=0, backupcount=0, encoding=None, delay=False):
        self.log_dir = log_dir
        self.filename_base = filename_base
        launch_timestamp = datetime.now(tz=timezone.utc).strftime('%Y-%m-%d_%H%M%S')
        self.logfile_path = os.path.join(log_dir, f'{filename_base}{launch_timestamp}.log')

        super().__init__(self.logfile_path, mode, maxbytes, backupcount, encoding, delay)

    def shouldRollover(self, record):
        return 0


def _build_formatter(app_config, section: str) -> logging.Formatter:
    return logging.Formatter(fmt=app_config.get_config(f'{section}.format'), datefmt=app_config.get_config(f'{section}.datetime_format'))


def _build_debug_file_handler(app_config) -> logging.Handler:
    section = 'logging.debug_log'
    log_dir = app_config.get_config(f'{section}.log_dir')
    try:
        os.makedirs(name=log_dir, exist_ok=True)
    except OSError:
        logger.error(f'Could not create log dir: {log_dir}')
        raise

    handler = TimeOfLaunchRotatingFileHandler(log_dir=log_dir, filename_base=app_config.get_config(f'{section}.filename_base'),
                                              mode=app_config.get_config(f'{section}.filemode'))
    handler.setLevel(logging.getLevelName(app_config.get_config(f'{section}.level')))
    handler.setFormatter(_build_formatter(app_config, section))
    return handler


def _build_console_handler(app_config) -> logging.Handler:
    section = 'logging.console'
    handler = logging.StreamHandler()
    handler.setLevel(logging.getLevelName(app_config.get_config(f'{section}.level')))
    handler.setFormatter(_build_formatter(app_config, section))
    return handler


def configure_logging(app_config):
    """Sets up the root logger from the "logging" section of the config. The host's own handlers are left alone."""
    root_logger = logging.getLogger()
    root_logger.setLevel(logging.DEBUG)

    if ensure_bool(app_config.get_config('logging.debug_log.enable')):
        root_logger.addHandler(_build_debug_file_handler(app_config))

    if ensure_bool(app_config.get_config('logging.console.enable')):
        root_logger.addHandler(_build_console_handler(app_config))

    for cfg_path, level in _LOGGER_LEVEL_OVERRIDES:
        for logger_name in app_config.get_config_list(cfg_path):
            logging.getLogger(logger_name).setLevel(level)
