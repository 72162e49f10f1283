"""
Logging configuration for the court booking bot.

Console output plus rotating files under ``logs/latest_log``; the directory is
cleared each time the process starts so the files always describe one run.
"""

import logging
import logging.handlers
import os
import shutil
from datetime import datetime

from tracking import t

LOG_DIR = os.path.join(os.path.dirname(os.path.dirname(os.path.abspath(__file__))), 'logs', 'latest_log')

COMPONENT_LOGGERS = (
    'CourtBookingDriver',
    'AutomationSession',
    'SessionRegistry',
    'ActionDispatcher',
    'CalendarSync',
    'CourtBot',
    'LifecycleManager',
)


def _clear_log_dir(log_dir: str) -> None:
    t('infrastructure.logging_config._clear_log_dir')
    if not os.path.exists(log_dir):
        return
    for filename in os.listdir(log_dir):
        file_path = os.path.join(log_dir, filename)
        try:
            if os.path.isfile(file_path) or os.path.islink(file_path):
                os.unlink(file_path)
            elif os.path.isdir(file_path):
                shutil.rmtree(file_path)
        except OSError as e:
            print(f'Failed to delete {file_path}. Reason: {e}')


def setup_logging(production_mode: bool = False, log_dir: str = LOG_DIR) -> None:
    """
    Configure the root logger with console and rotating file handlers.

    Args:
        production_mode: Quieter levels (WARNING+) and no debug file when True
        log_dir: Directory receiving the log files; cleared first
    """
    t('infrastructure.logging_config.setup_logging')
    _clear_log_dir(log_dir)
    os.makedirs(log_dir, exist_ok=True)

    main_log_file = os.path.join(log_dir, 'bot.log')
    debug_log_file = os.path.join(log_dir, 'bot_debug.log')
    error_log_file = os.path.join(log_dir, 'bot_errors.log')

    root_logger = logging.getLogger()
    root_logger.setLevel(logging.WARNING if production_mode else logging.DEBUG)
    root_logger.handlers = []

    detailed_formatter = logging.Formatter(
        '%(asctime)s - %(name)s - %(levelname)s - [%(filename)s:%(lineno)d in %(funcName)s()] - %(message)s',
        datefmt='%Y-%m-%d %H:%M:%S'
    )
    console_formatter = logging.Formatter(
        '%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        datefmt='%H:%M:%S'
    )

    console_handler = logging.StreamHandler()
    console_handler.setLevel(logging.WARNING if production_mode else logging.INFO)
    console_handler.setFormatter(console_formatter)
    root_logger.addHandler(console_handler)

    main_file_handler = logging.handlers.RotatingFileHandler(
        main_log_file,
        maxBytes=10*1024*1024,  # 10MB
        backupCount=5,
        encoding='utf-8'
    )
    main_file_handler.setLevel(logging.WARNING if production_mode else logging.INFO)
    main_file_handler.setFormatter(detailed_formatter)
    root_logger.addHandler(main_file_handler)

    if not production_mode:
        debug_file_handler = logging.handlers.RotatingFileHandler(
            debug_log_file,
            maxBytes=50*1024*1024,  # 50MB
            backupCount=3,
            encoding='utf-8'
        )
        debug_file_handler.setLevel(logging.DEBUG)
        debug_file_handler.setFormatter(detailed_formatter)
        root_logger.addHandler(debug_file_handler)

    error_file_handler = logging.handlers.RotatingFileHandler(
        error_log_file,
        maxBytes=5*1024*1024,  # 5MB
        backupCount=5,
        encoding='utf-8'
    )
    error_file_handler.setLevel(logging.ERROR)
    error_file_handler.setFormatter(detailed_formatter)
    root_logger.addHandler(error_file_handler)

    # Booking components stay at INFO in production so a failed booking is traceable
    for name in COMPONENT_LOGGERS:
        logging.getLogger(name).setLevel(logging.INFO if production_mode else logging.DEBUG)

    logging.getLogger('httpx').setLevel(logging.WARNING)
    logging.getLogger('telegram').setLevel(logging.INFO)
    logging.getLogger('googleapiclient').setLevel(logging.WARNING)

    root_logger.info("=" * 80)
    root_logger.info(f"Court bot logging initialized - {datetime.now()}")
    root_logger.info(f"Production Mode: {'ON' if production_mode else 'OFF'}")
    root_logger.info(f"Main log: {main_log_file}")
    if not production_mode:
        root_logger.info(f"Debug log: {debug_log_file}")
    root_logger.info(f"Error log: {error_log_file}")
    root_logger.info("=" * 80)
