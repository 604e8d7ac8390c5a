import logging
import os

import pytest
from sqlalchemy import func

from hof_merge.core.database_manager import ArchiveManager
from hof_merge.core.tables import Game, GamePlayer, GameObject, GameDataPointValue
from hof_merge.utils.logging_handlers import PACKAGE_LOGGER

SHIPPED_CONFIG_DIR = os.path.join(os.path.dirname(os.path.dirname(os.path.abspath(__file__))), "config")

GAME_DEFAULTS = {
    'ruleset': 'RULESET_STANDARD',
    'game_mode': 0,
    'turn_count': 50,
    'game_speed_type': 'GAMESPEED_STANDARD',
    'map_size_type': 'MAPSIZE_SMALL',
    'map': 'Continents.lua',
    'start_era_type': 'ERA_ANCIENT',
    'start_turn': 1,
    'victor_team_id': None,
    'victory_type': None,
    'last_played': 1600000000,
}

PLAYER_DEFAULTS = {
    'is_local': True,
    'is_ai': False,
    'is_major': True,
    'leader_type': 'LEADER_GANDHI',
    'leader_name': 'Gandhi',
    'civilization_type': 'CIVILIZATION_INDIA',
    'civilization_name': 'India',
    'difficulty_type': 'DIFFICULTY_PRINCE',
    'score': 100,
    'player_id': 0,
    'team_id': 0,
}


class ArchiveBuilder:
    """Fills a freshly created archive with rows for a test."""

    def __init__(self, archive):
        self.archive = archive

    @property
    def path(self):
        return self.archive.path

    def _add(self, record):
        with self.archive.Session() as session:
            session.add(record)
            session.commit()
            return record.as_dict()

    def add_game(self, **overrides):
        return self._add(Game(**{**GAME_DEFAULTS, **overrides}))['game_id']

    def add_player(self, **overrides):
        return self._add(GamePlayer(**{**PLAYER_DEFAULTS, **overrides}))['player_object_id']

    def add_object(self, game_id, type='UNIT_WARRIOR', **overrides):
        return self._add(GameObject(game_id=game_id, type=type, **overrides))['object_id']

    def add_data_point(self, game_id, data_point, **values):
        self._add(GameDataPointValue(game_id=game_id, data_point=data_point, **values))

    def count(self, model, **filters):
        with self.archive.Session() as session:
            return session.query(func.count()).select_from(model).filter_by(**filters).scalar()

    def rows(self, model, **filters):
        with self.archive.Session() as session:
            return session.query(model).filter_by(**filters).all()


@pytest.fixture
def make_archive(tmp_path):
    archives = []

    def _make(name):
        archive = ArchiveManager(str(tmp_path / name))
        archive.initialize_tables()
        archives.append(archive)
        return ArchiveBuilder(archive)

    yield _make
    for archive in archives:
        archive.dispose()


@pytest.fixture
def source(make_archive):
    return make_archive("source.sqlite")


@pytest.fixture
def target(make_archive):
    return make_archive("target.sqlite")


@pytest.fixture
def restore_logging():
    """Undoes what setup_logging and fileConfig do to the root and package loggers."""
    package_logger = logging.getLogger(PACKAGE_LOGGER)
    saved = {
        logger: (list(logger.handlers), logger.level, logger.propagate)
        for logger in (logging.getLogger(), package_logger)
    }
    yield package_logger
    for logger, (handlers, level, propagate) in saved.items():
        for handler in list(logger.handlers):
            if handler not in handlers:
                logger.removeHandler(handler)
                handler.close()
        logger.setLevel(level)
        logger.propagate = propagate
