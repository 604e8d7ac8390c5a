import argparse
import logging
import os
import sys
import time

from sqlalchemy.exc import SQLAlchemyError
from hof_merge import __version__
from hof_merge.core.database_manager import (
    ArchiveManager, check_target_path, is_valid_sqlite_file, seed_target_archive
)
from hof_merge.core.merge import MergeDriver
from hof_merge.core.types import ArchiveError, ConfigError, MergeError
from hof_merge.utils.config_manager import ConfigManager
from hof_merge.utils.logging_handlers import setup_logging

CONFIG_FOLDER = "config"
CONFIG_FILE_NAME = "config.ini"
LOGGING_CONFIG_NAME = "logging.conf"

logger = logging.getLogger(__name__)


def build_parser():
    parser = argparse.ArgumentParser(
        prog="hof-merge",
        description=f"Hall of Fame archive merge utility version {__version__}")
    parser.add_argument('source', help='First archive; the target starts as a copy of it')
    parser.add_argument('enrich', help='Second archive whose games are merged into the target')
    parser.add_argument('target', help='Path of the merged archive to create')
    parser.add_argument('-v', '--verbose', action='store_true', help='Log every copied row')
    parser.add_argument('--config', default=os.path.join(CONFIG_FOLDER, CONFIG_FILE_NAME),
                        help='INI file with [Merge] and [Logging] sections')
    parser.add_argument('--continue-on-error', action='store_true',
                        help='Log a failing game and go on with the next one instead of stopping')
    parser.add_argument('--dry-run', action='store_true',
                        help='Report what would be copied without keeping it in the target')
    return parser


def open_archive(path, timeout):
    if not is_valid_sqlite_file(path):
        raise ArchiveError(f"{path} is not a readable SQLite archive")
    archive = ArchiveManager(path, timeout=timeout)
    try:
        archive.verify_schema()
    except Exception:
        archive.dispose()
        raise
    return archive


def run_merge(source_path, enrich_path, target_path, merge_config):
    """Seeds the target from ``source_path`` and merges ``enrich_path`` into it."""
    check_target_path(target_path, [source_path, enrich_path])
    archives = []
    try:
        archives.append(open_archive(source_path, merge_config.db_timeout))
        enrich = open_archive(enrich_path, merge_config.db_timeout)
        archives.append(enrich)

        seed_target_archive(source_path, target_path)
        target = open_archive(target_path, merge_config.db_timeout)
        archives.append(target)

        driver = MergeDriver(
            enrich, target,
            continue_on_error=merge_config.continue_on_error,
            dry_run=merge_config.dry_run,
        )
        return driver.run()
    finally:
        for archive in archives:
            archive.dispose()


def main(argv=None):
    start_time = time.time()
    args = build_parser().parse_args(argv)

    config_manager = ConfigManager(args.config)
    try:
        merge_config = config_manager.merge
        logging_config = config_manager.logging
    except ConfigError as e:
        print(f"Invalid configuration: {e}", file=sys.stderr)
        return 1
    if args.continue_on_error:
        merge_config.continue_on_error = True
    if args.dry_run:
        merge_config.dry_run = True

    logging_config_path = os.path.join(os.path.dirname(args.config), LOGGING_CONFIG_NAME)
    setup_logging(logging_config, verbose=args.verbose, config_path=logging_config_path)

    logger.info(f"Hall of Fame merge utility version {__version__}")
    logger.info(f"Source: '{args.source}', enrich: '{args.enrich}', target: '{args.target}'")

    try:
        report = run_merge(args.source, args.enrich, args.target, merge_config)
    except (MergeError, SQLAlchemyError) as e:
        logger.critical(f"Merge failed: {e}")
        print(f"Merge failed: {e}", file=sys.stderr)
        partial_report = getattr(e, "report", None)
        if partial_report is not None:
            print(partial_report.summary())
        return 1

    print(report.summary())
    for source_game_id, message in report.failures:
        print(f"  failed game {source_game_id}: {message}")
    elapsed_time = time.time() - start_time
    print(f"Execution time: {elapsed_time:.2f} seconds.")
    return 1 if report.games_failed else 0


if __name__ == "__main__":
    sys.exit(main())
