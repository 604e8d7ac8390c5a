# logging_handlers.py
import datetime
import glob
import logging
import logging.config
import os
import time

from logging.handlers import TimedRotatingFileHandler

PACKAGE_LOGGER = "hof_merge"
LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


class CustomTimedRotatingFileHandler(TimedRotatingFileHandler):
    def __init__(self, filename, log_dir='logs', when='midnight', interval=1, maxBytes=10485760, backupCount=5,
                 encoding='utf-8', delay=False, utc=False, atTime=None):
        self.maxBytes = maxBytes
        self.log_dir = log_dir
        os.makedirs(self.log_dir, exist_ok=True)
        full_log_file = os.path.join(self.log_dir, filename)
        super().__init__(full_log_file, when, interval, backupCount, encoding, delay, utc, atTime)

    def getLogFileName(self, current_time):
        """Имя файла после ротации с полным временным штампом."""
        base_filename, file_extension = os.path.splitext(self.baseFilename)
        timestamp = current_time.strftime("%Y-%m-%d_%H-%M-%S")
        return f"{base_filename}_{timestamp}{file_extension}"

    def shouldRollover(self, record):
        """Ротация по истечении интервала или при превышении размера файла."""
        time_based = super().shouldRollover(record)

        if self.maxBytes <= 0 or not os.path.exists(self.baseFilename):
            size_based = False
        else:
            size_based = os.stat(self.baseFilename).st_size >= self.maxBytes

        return bool(time_based or size_based)

    def getRotatedFiles(self):
        base_filename, file_extension = os.path.splitext(self.baseFilename)
        return sorted(glob.glob(f"{glob.escape(base_filename)}_*{file_extension}"))

    def doRollover(self):
        if self.stream:
            self.stream.close()
            self.stream = None

        dfn = self.getLogFileName(datetime.datetime.now())
        if os.path.exists(dfn):
            os.remove(dfn)
        self.rotate(self.baseFilename, dfn)

        if self.backupCount > 0:
            rotated = self.getRotatedFiles()
            for old_file in rotated[:-self.backupCount]:
                os.remove(old_file)
        if not self.delay:
            self.stream = self._open()

        current_time_sec = int(time.time())
        new_rollover_at = self.computeRollover(current_time_sec)
        while new_rollover_at <= current_time_sec:
            new_rollover_at += self.interval
        self.rolloverAt = new_rollover_at


def setup_logging(logging_config, verbose=False, config_path=None):
    """
    Applies ``config_path`` (logging.conf) when it exists, otherwise installs a
    console handler on the package logger. In both cases the rotating file
    handler and the level come from ``logging_config``.
    """
    package_logger = logging.getLogger(PACKAGE_LOGGER)
    formatter = logging.Formatter(LOG_FORMAT)

    if config_path and os.path.exists(config_path):
        logging.config.fileConfig(config_path, disable_existing_loggers=False)
    else:
        for handler in list(package_logger.handlers):
            package_logger.removeHandler(handler)
            handler.close()

        console_handler = logging.StreamHandler()
        console_handler.setFormatter(formatter)
        package_logger.addHandler(console_handler)

    # Только один файловый обработчик на логгер
    for handler in list(package_logger.handlers):
        if isinstance(handler, CustomTimedRotatingFileHandler):
            package_logger.removeHandler(handler)
            handler.close()

    file_handler = CustomTimedRotatingFileHandler(
        logging_config.log_file,
        log_dir=logging_config.log_dir,
        maxBytes=logging_config.max_bytes,
        backupCount=logging_config.backup_count,
    )
    file_handler.setFormatter(formatter)
    package_logger.addHandler(file_handler)
    package_logger.setLevel(logging_config.level_number)

    if verbose:
        package_logger.setLevel(logging.DEBUG)
    return package_logger
