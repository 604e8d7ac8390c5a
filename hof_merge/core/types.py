from dataclasses import dataclass, field
from enum import Enum
from typing import Final, Union


@dataclass(frozen=True)
class Inserted:
    """The game was new; it now lives in the target under ``game_id``."""
    game_id: int


@dataclass(frozen=True)
class AlreadyExists:
    """An equivalent game is already in the target; nothing was written."""


ResolveResult = Union[Inserted, AlreadyExists]


class GameOutcome(Enum):
    COPIED = "copied"
    SKIPPED = "skipped"
    FAILED = "failed"


@dataclass
class CopyStats:
    players: int = 0
    objects: int = 0
    data_point_values: int = 0

    def __add__(self, other):
        return CopyStats(
            players=self.players + other.players,
            objects=self.objects + other.objects,
            data_point_values=self.data_point_values + other.data_point_values,
        )


@dataclass
class MergeReport:
    games_seen: int = 0
    games_copied: int = 0
    games_skipped: int = 0
    games_failed: int = 0
    copied: CopyStats = field(default_factory=CopyStats)
    failures: list[tuple[int, str]] = field(default_factory=list)
    dry_run: bool = False

    def record(self, outcome: GameOutcome, source_game_id: int, stats: CopyStats | None = None,
               error: str | None = None):
        self.games_seen += 1
        if outcome is GameOutcome.COPIED:
            self.games_copied += 1
            if stats is not None:
                self.copied = self.copied + stats
        elif outcome is GameOutcome.SKIPPED:
            self.games_skipped += 1
        else:
            self.games_failed += 1
            self.failures.append((source_game_id, error or ""))

    def summary(self) -> str:
        prefix = "Dry run summary" if self.dry_run else "Merge summary"
        return (
            f"{prefix}: {self.games_seen} games seen, {self.games_copied} copied, "
            f"{self.games_skipped} skipped as duplicates, {self.games_failed} failed; "
            f"{self.copied.players} players, {self.copied.objects} objects, "
            f"{self.copied.data_point_values} data point values copied."
        )


class MergeError(Exception):
    """Base class for everything the merge raises on purpose."""


class ArchiveError(MergeError):
    """Archive file is missing, is not SQLite or could not be copied."""


class ConfigError(MergeError):
    """Configuration value that cannot be used."""


class SchemaError(MergeError):
    def __init__(self, database, missing_tables=(), missing_columns=None):
        self.database = database
        self.missing_tables = frozenset(missing_tables)
        self.missing_columns = dict(missing_columns or {})
        parts = []
        if self.missing_tables:
            parts.append(f"missing table(s) {sorted(self.missing_tables)}")
        for table_name, columns in sorted(self.missing_columns.items()):
            parts.append(f"table {table_name} is missing column(s) {sorted(columns)}")
        super().__init__(f"Schema verification of {database} failed: {'; '.join(parts)}")


class ReferentialIntegrityError(MergeError):
    def __init__(self, kind: str, key):
        self.kind = kind
        self.key = key
        super().__init__(f"Referenced {kind} {key} does not exist in the source archive")


class GameMergeError(MergeError):
    def __init__(self, source_game_id: int, operation: str, cause: Exception):
        self.source_game_id = source_game_id
        self.operation = operation
        self.cause = cause
        # Games merged before the failure, set by the driver when it aborts
        self.report = None
        super().__init__(f"{operation} failed for game {source_game_id}: {cause}")


DEFAULT_DB_TIMEOUT: Final[int] = 30
