# config_manager.py
from dataclasses import dataclass
import configparser
import logging
import os

from dotenv import load_dotenv
from hof_merge.core.types import ConfigError, DEFAULT_DB_TIMEOUT

ENV_PREFIX = "HOF_MERGE_"
TRUE_VALUES = {"1", "true", "yes", "on"}


@dataclass
class MergeConfig:
    continue_on_error: bool = False
    dry_run: bool = False
    db_timeout: int = DEFAULT_DB_TIMEOUT


@dataclass
class LoggingConfig:
    level: str = "INFO"
    log_dir: str = "logs"
    log_file: str = "merge_log.txt"
    max_bytes: int = 2_000_000
    backup_count: int = 10

    @property
    def level_number(self) -> int:
        level = logging.getLevelName(self.level.upper())
        return level if isinstance(level, int) else logging.INFO


class ConfigManager:
    def __init__(self, config_file, env_file='.env'):
        self.config_file = config_file
        self.config = configparser.ConfigParser()
        self.config.read(config_file)
        load_dotenv(dotenv_path=env_file)

        # Ленивая загрузка конфигов
        self._merge_config = None
        self._logging_config = None

    @property
    def merge(self) -> MergeConfig:
        """Параметры слияния (ленивая загрузка)"""
        if self._merge_config is None:
            self._merge_config = self._load_merge_config()
        return self._merge_config

    @property
    def logging(self) -> LoggingConfig:
        """Параметры логирования (ленивая загрузка)"""
        if self._logging_config is None:
            self._logging_config = self._load_logging_config()
        return self._logging_config

    def _load_merge_config(self) -> MergeConfig:
        defaults = MergeConfig()
        section = self.config["Merge"] if self.config.has_section("Merge") else {}
        continue_on_error = self._getboolean(section, "continue_on_error", defaults.continue_on_error)
        dry_run = self._getboolean(section, "dry_run", defaults.dry_run)
        db_timeout = self._int_setting("[Merge] db_timeout", section.get("db_timeout", defaults.db_timeout))

        continue_on_error = self._env_bool("CONTINUE_ON_ERROR", continue_on_error)
        env_timeout = os.environ.get(ENV_PREFIX + "DB_TIMEOUT")
        if env_timeout is not None:
            db_timeout = self._int_setting(ENV_PREFIX + "DB_TIMEOUT", env_timeout)
        return MergeConfig(continue_on_error=continue_on_error, dry_run=dry_run, db_timeout=db_timeout)

    def _load_logging_config(self) -> LoggingConfig:
        defaults = LoggingConfig()
        section = self.config["Logging"] if self.config.has_section("Logging") else {}
        return LoggingConfig(
            level=os.environ.get(ENV_PREFIX + "LOG_LEVEL", section.get("level", defaults.level)),
            log_dir=os.environ.get(ENV_PREFIX + "LOG_DIR", section.get("log_dir", defaults.log_dir)),
            log_file=section.get("log_file", defaults.log_file),
            max_bytes=self._int_setting("[Logging] max_bytes", section.get("max_bytes", defaults.max_bytes)),
            backup_count=self._int_setting("[Logging] backup_count", section.get("backup_count", defaults.backup_count)),
        )

    @staticmethod
    def _getboolean(section, key, fallback):
        value = section.get(key)
        if value is None:
            return fallback
        return str(value).strip().lower() in TRUE_VALUES

    @staticmethod
    def _env_bool(name, fallback):
        value = os.environ.get(ENV_PREFIX + name)
        if value is None:
            return fallback
        return value.strip().lower() in TRUE_VALUES

    @staticmethod
    def _int_setting(name, value):
        try:
            return int(value)
        except (TypeError, ValueError) as e:
            raise ConfigError(f"{name} must be an integer, got {value!r}") from e
