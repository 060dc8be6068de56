import logging
import os
import sys
import traceback


class ErrorFormatter(logging.Formatter):
    """Formatter that adds file and line info for ERROR and higher levels"""

    def format(self, record):
        if record.levelno >= logging.ERROR:
            self._style._fmt = '%(asctime)s - %(levelname)s - %(name)s:%(lineno)d - %(message)s'
        else:
            self._style._fmt = '%(asctime)s - %(levelname)s - %(message)s'
        return super().format(record)


def setup_logger(name='pySpline', log_file=None, level=None):
    """Set up logger to output to both console and file with enhanced error formatting"""
    if level is None:
        level = os.environ.get('PYSPLINE_LOG_LEVEL', 'WARNING').upper()

    logger = logging.getLogger(name)
    logger.setLevel(level)

    # Clear existing handlers to avoid duplicates if called multiple times
    if logger.hasHandlers():
        logger.handlers.clear()

    formatter = ErrorFormatter()

    console = logging.StreamHandler()
    console.setLevel(level)
    console.setFormatter(formatter)
    logger.addHandler(console)

    if log_file:
        log_dir = os.path.dirname(log_file)
        if log_dir:
            os.makedirs(log_dir, exist_ok=True)
        file_handler = logging.FileHandler(log_file)
        file_handler.setLevel(level)
        file_handler.setFormatter(formatter)
        logger.addHandler(file_handler)

    return logger


def log_exception(logger, exc_info=None, message="An exception occurred"):
    """Log an exception with the location it was raised from"""
    if exc_info is None:
        exc_info = sys.exc_info()

    exc_type, exc_value, exc_tb = exc_info
    tb_details = traceback.extract_tb(exc_tb)

    if tb_details:
        # Frame where the exception was actually raised
        error_frame = tb_details[-1]
        file_name = os.path.basename(error_frame.filename)
        error_msg = (f"{message}: {exc_type.__name__} in {file_name}:{error_frame.lineno} "
                     f"(function: {error_frame.name}): {exc_value}")
        logger.error(error_msg)

        tb_formatted = ''.join(traceback.format_exception(exc_type, exc_value, exc_tb))
        logger.debug(f"Full traceback:\n{tb_formatted}")
    else:
        logger.error(f"{message}: {exc_type.__name__}: {exc_value}")


default_logger = setup_logger()
