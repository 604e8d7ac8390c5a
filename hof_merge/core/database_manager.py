import logging
import os
import shutil
import sqlite3

from sqlalchemy import create_engine, inspect, NullPool
from sqlalchemy.orm import sessionmaker
from hof_merge.core.get import GetManager
from hof_merge.core.tables import Base, CORE_TABLES, REQUIRED_TABLES
from hof_merge.core.types import ArchiveError, SchemaError, DEFAULT_DB_TIMEOUT

logger = logging.getLogger(__name__)


class ArchiveManager:
    """One Hall of Fame archive: engine, sessions and schema checks."""

    def __init__(self, db_path, timeout=DEFAULT_DB_TIMEOUT):
        self.logger = logging.getLogger(__name__)
        self.path = db_path
        self.engine = create_engine(
            f"sqlite:///{db_path}",
            connect_args={'timeout': timeout},
            poolclass=NullPool
        )
        self.Session = sessionmaker(autoflush=False, bind=self.engine)
        self._get_manager = None

    @property
    def get_manager(self) -> GetManager:
        if self._get_manager is None:
            self._get_manager = GetManager(self.engine)
        return self._get_manager

    def initialize_tables(self):
        # Создаем таблицы, если они еще не существуют
        Base.metadata.create_all(self.engine)
        self.logger.info(f"Schema of archive {self.path} initialized.")

    def verify_schema(self):
        return verify_schema(self.engine)

    def dispose(self):
        self.engine.dispose()


def verify_schema(engine):
    """
    Checks that the archive has every expected table and that the tables the
    merge copies carry the columns it reads. Returns the set of found tables.
    """
    database = engine.url.database
    inspector = inspect(engine)
    existing_tables = set(inspector.get_table_names())

    for table_name in sorted(existing_tables & REQUIRED_TABLES):
        logger.debug(f"Found expected table {table_name}")

    missing_tables = REQUIRED_TABLES - existing_tables
    missing_columns = {}
    for table_name, model in CORE_TABLES.items():
        if table_name not in existing_tables:
            continue
        columns = {col['name'] for col in inspector.get_columns(table_name)}
        required_columns = {col.name for col in model.__table__.columns}
        if required_columns - columns:
            missing_columns[table_name] = required_columns - columns

    if missing_tables or missing_columns:
        error = SchemaError(database, missing_tables, missing_columns)
        logger.error(str(error))
        raise error

    logger.info(f"Verification of {database} successful")
    return existing_tables


def is_valid_sqlite_file(file_path):
    """Проверяет, является ли файл корректной базой данных SQLite."""
    if not os.path.exists(file_path):
        logger.error(f"File not found: {file_path}")
        return False

    if os.path.getsize(file_path) == 0:
        logger.error(f"File is empty: {file_path}")
        return False

    conn = None
    try:
        conn = sqlite3.connect(file_path)
        result = conn.execute("PRAGMA integrity_check;").fetchone()
    except sqlite3.DatabaseError:
        logger.error(f"File is not a valid SQLite database: {file_path}")
        return False
    finally:
        if conn is not None:
            conn.close()

    if not result or result[0] != 'ok':
        logger.error(f"Integrity check failed for {file_path}: {result}")
        return False
    logger.info(f"File is a valid SQLite database: {file_path}")
    return True


def is_same_archive(first_path, second_path):
    if os.path.exists(first_path) and os.path.exists(second_path):
        return os.path.samefile(first_path, second_path)
    return os.path.abspath(first_path) == os.path.abspath(second_path)


def check_target_path(target_path, input_paths):
    """Input archives are read only: the target may not be any of them."""
    for input_path in input_paths:
        if is_same_archive(input_path, target_path):
            raise ArchiveError(f"Target {target_path} is the input archive {input_path} itself")


def seed_target_archive(source_path, target_path):
    """Byte copy of the first archive; the merge then runs against this copy."""
    check_target_path(target_path, [source_path])
    if os.path.exists(target_path):
        logger.warning(f"Target {target_path} already exists and will be overwritten")

    try:
        shutil.copyfile(source_path, target_path)
    except OSError as e:
        raise ArchiveError(f"Cannot copy {source_path} to {target_path}: {e}") from e

    copied_bytes = os.path.getsize(target_path)
    logger.info(f"Created {target_path} with {copied_bytes}b based of {source_path}")
    return copied_bytes
