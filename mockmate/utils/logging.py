"""
Logging setup for the interview coach.

The terminal belongs to the interview itself, so detailed logs go to a
file and the console only carries critical failures.
"""
import os
import logging

FILE_FORMAT = '%(asctime)s %(levelname)s %(name)s - %(message)s'

# Libraries that log every HTTP request or token refresh
NOISY_LOGGERS = ("urllib3", "google.auth", "google.api_core")


def setup_logging(log_file_path: str, level: str = "DEBUG") -> str:
    """
    Route all logging to a session log file.

    Args:
        log_file_path: Log file; its directory is created if missing
        level: Level name for the file handler (unknown names mean DEBUG)

    Returns:
        Path to the log file
    """
    log_dir = os.path.dirname(log_file_path)
    if log_dir:
        os.makedirs(log_dir, exist_ok=True)

    root_logger = logging.getLogger()
    root_logger.handlers.clear()
    root_logger.setLevel(logging.DEBUG)

    # Sessions append so restarts keep earlier interviews
    file_handler = logging.FileHandler(log_file_path, mode='a')
    file_handler.setLevel(getattr(logging, level.upper(), logging.DEBUG))
    file_handler.setFormatter(logging.Formatter(FILE_FORMAT))
    root_logger.addHandler(file_handler)

    console_handler = logging.StreamHandler()
    console_handler.setLevel(logging.CRITICAL)
    console_handler.setFormatter(logging.Formatter('%(message)s'))
    root_logger.addHandler(console_handler)

    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)

    return log_file_path
