import sqlite3

import pytest

from hof_merge.core.database_manager import ArchiveManager, check_target_path, is_valid_sqlite_file, \
    seed_target_archive, verify_schema
from hof_merge.core.tables import Game, REQUIRED_TABLES
from hof_merge.core.types import ArchiveError, SchemaError


def test_initialized_archive_passes_verification(source):
    assert source.archive.verify_schema() == set(REQUIRED_TABLES)


def test_missing_tables_are_reported(tmp_path):
    path = tmp_path / "partial.sqlite"
    with sqlite3.connect(path) as conn:
        conn.execute("CREATE TABLE Games (GameId INTEGER PRIMARY KEY)")
        conn.execute("CREATE TABLE Unrelated (Id INTEGER)")
    archive = ArchiveManager(str(path))

    with pytest.raises(SchemaError) as exc_info:
        verify_schema(archive.engine)
    archive.dispose()

    assert exc_info.value.missing_tables == REQUIRED_TABLES - {"Games"}
    assert "Games" in exc_info.value.missing_columns
    assert "Ruleset" in exc_info.value.missing_columns["Games"]


def test_missing_columns_are_reported(source):
    with sqlite3.connect(source.path) as conn:
        conn.execute("DROP TABLE GameObjects")
        conn.execute("CREATE TABLE GameObjects (ObjectId INTEGER PRIMARY KEY, GameId INTEGER)")

    with pytest.raises(SchemaError) as exc_info:
        source.archive.verify_schema()

    assert not exc_info.value.missing_tables
    assert exc_info.value.missing_columns["GameObjects"] == {
        "PlayerObjectId", "Type", "Name", "PlotIndex", "ExtraData", "Icon"}


def test_is_valid_sqlite_file(tmp_path, source):
    empty = tmp_path / "empty.sqlite"
    empty.touch()
    garbage = tmp_path / "garbage.sqlite"
    garbage.write_bytes(b"this is not a database, just some bytes" * 10)

    assert is_valid_sqlite_file(source.path)
    assert not is_valid_sqlite_file(str(tmp_path / "missing.sqlite"))
    assert not is_valid_sqlite_file(str(empty))
    assert not is_valid_sqlite_file(str(garbage))


def test_seed_target_archive_copies_bytes(tmp_path, source):
    source.add_game()
    target_path = str(tmp_path / "seeded.sqlite")

    copied = seed_target_archive(source.path, target_path)

    with open(source.path, "rb") as src, open(target_path, "rb") as dst:
        assert src.read() == dst.read()
    assert copied > 0
    seeded = ArchiveManager(target_path)
    assert seeded.get_manager.count_games() == 1
    seeded.dispose()


def test_seed_target_archive_overwrites(tmp_path, source):
    target_path = tmp_path / "seeded.sqlite"
    target_path.write_bytes(b"old")

    seed_target_archive(source.path, str(target_path))

    assert target_path.read_bytes() != b"old"


def test_seed_target_archive_refuses_source_as_target(source):
    with pytest.raises(ArchiveError):
        seed_target_archive(source.path, source.path)


def test_seed_target_archive_refuses_other_spelling_of_source(tmp_path, source, monkeypatch):
    monkeypatch.chdir(tmp_path)

    with pytest.raises(ArchiveError):
        seed_target_archive(source.path, "./source.sqlite")


def test_check_target_path_refuses_any_input(tmp_path, source, target):
    check_target_path(str(tmp_path / "new.sqlite"), [source.path, target.path])

    with pytest.raises(ArchiveError, match="input archive"):
        check_target_path(target.path, [source.path, target.path])


def test_seed_target_archive_missing_source(tmp_path):
    with pytest.raises(ArchiveError):
        seed_target_archive(str(tmp_path / "nope.sqlite"), str(tmp_path / "out.sqlite"))


def test_initialize_tables_is_idempotent(source):
    source.add_game()
    source.archive.initialize_tables()

    assert source.count(Game) == 1
