import logging
import os
import sys
from logging.handlers import TimedRotatingFileHandler

LOG_FORMAT = '%(asctime)s - %(levelname)s - %(message)s'
LOG_FILE = 'proximity.log'


def setup_logging(debug=False, log_dir=None):
    """Log to stdout and, when log_dir is given, to a file rotated at midnight (7 days kept)."""
    level = logging.DEBUG if debug else logging.INFO
    logger = logging.getLogger('blueproximity')
    logger.setLevel(level)
    if logger.handlers:
        return logger

    formatter = logging.Formatter(LOG_FORMAT)

    stream_handler = logging.StreamHandler(sys.stdout)
    stream_handler.setFormatter(formatter)
    logger.addHandler(stream_handler)

    if log_dir:
        os.makedirs(log_dir, exist_ok=True)
        file_handler = TimedRotatingFileHandler(
            os.path.join(log_dir, LOG_FILE), when='midnight', interval=1, backupCount=7
        )
        file_handler.setFormatter(formatter)
        logger.addHandler(file_handler)
    return logger
