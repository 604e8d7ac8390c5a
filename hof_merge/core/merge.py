# merge.py
import logging

from sqlalchemy.exc import SQLAlchemyError
from hof_merge.core.save import SaveManager
from hof_merge.core.tables import Game, EQUIVALENCE_COLUMNS
from hof_merge.core.types import Inserted, AlreadyExists, ResolveResult, GameOutcome, CopyStats, MergeReport, \
    MergeError, GameMergeError


def equivalence_key(game: Game) -> tuple:
    return tuple(getattr(game, name) for name in EQUIVALENCE_COLUMNS)


class IdentityResolver:
    """Admits a game into the target unless an equivalent one is already there."""

    def __init__(self, session, save_manager: SaveManager | None = None):
        self.logger = logging.getLogger(__name__)
        self.session = session
        self.save_manager = save_manager or SaveManager(session)

    def find_equivalent(self, candidate: Game):
        # IS instead of = so that two NULL victors still match
        conditions = [
            getattr(Game, name).is_not_distinct_from(getattr(candidate, name))
            for name in EQUIVALENCE_COLUMNS
        ]
        return self.session.query(Game.game_id).filter(*conditions).limit(1).scalar()

    def resolve(self, candidate: Game) -> ResolveResult:
        existing_id = self.find_equivalent(candidate)
        if existing_id is not None:
            self.logger.debug(f"Game {candidate.game_id} matches target game {existing_id}")
            return AlreadyExists()
        return Inserted(self.save_manager.insert_game(candidate))


class DependentCopier:
    """
    Copies the players, objects and data point values of one game.

    An object can be reached twice: as a child of the game and as the value
    of a data point. Data points go first and report which objects they
    already copied; the remaining objects are copied with that set excluded.
    """

    def __init__(self, get_manager, save_manager: SaveManager):
        self.logger = logging.getLogger(__name__)
        self.get_manager = get_manager
        self.save_manager = save_manager
        self.stats = CopyStats()
        self._copied_players = set()

    def copy_dependents(self, source_game_id: int, target_game_id: int) -> CopyStats:
        copied_object_ids = self.copy_data_point_values(source_game_id, target_game_id)
        self.copy_remaining_objects(source_game_id, target_game_id, exclude_object_ids=copied_object_ids)
        return self.stats

    def copy_data_point_values(self, source_game_id: int, target_game_id: int) -> set[int]:
        object_ids = {}
        for value in self.get_manager.get_game_data_point_values(source_game_id):
            new_object_id = None
            if value.value_object_id is not None:
                new_object_id = object_ids.get(value.value_object_id)
                if new_object_id is None:
                    new_object_id = self.copy_object(source_game_id, value.value_object_id, target_game_id)
                    object_ids[value.value_object_id] = new_object_id
            self.save_manager.insert_data_point_value(value, target_game_id, new_object_id)
            self.stats.data_point_values += 1

        self.logger.debug(
            f"Copied {self.stats.data_point_values} GameDataPointValues from game {source_game_id} "
            f"to {target_game_id}, {len(object_ids)} referenced objects")
        return set(object_ids)

    def copy_object(self, source_game_id: int, source_object_id: int, target_game_id: int) -> int:
        game_object = self.get_manager.get_game_object(source_game_id, source_object_id)
        return self._copy_object(game_object, target_game_id)

    def _copy_object(self, game_object, target_game_id: int) -> int:
        new_player_id = None
        if game_object.player_object_id is not None:
            new_player_id = self.copy_player(game_object.player_object_id)
        new_object_id = self.save_manager.insert_object(game_object, target_game_id, new_player_id)
        self.stats.objects += 1
        return new_object_id

    def copy_player(self, source_player_object_id: int) -> int:
        if source_player_object_id in self._copied_players:
            self.logger.warning(
                f"GamePlayers {source_player_object_id} is referenced by more than one object, "
                f"copying it again")
        player = self.get_manager.get_game_player(source_player_object_id)
        new_player_id = self.save_manager.insert_player(player)
        self._copied_players.add(source_player_object_id)
        self.stats.players += 1
        self.logger.debug(f"Copied GamePlayers {source_player_object_id} as {new_player_id}")
        return new_player_id

    def copy_remaining_objects(self, source_game_id: int, target_game_id: int, *, exclude_object_ids: set[int]):
        remaining = self.get_manager.get_game_objects(source_game_id, exclude_object_ids)
        for game_object in remaining:
            self._copy_object(game_object, target_game_id)
        self.logger.debug(
            f"Copied {len(remaining)} GameObjects from game {source_game_id} to {target_game_id} "
            f"({len(exclude_object_ids)} already copied through data points)")


class MergeDriver:
    """Walks every game of the source archive and merges it into the target."""

    def __init__(self, source, target, continue_on_error=False, dry_run=False):
        self.logger = logging.getLogger(__name__)
        self.source = source
        self.target = target
        self.continue_on_error = continue_on_error
        self.dry_run = dry_run
        # dry run rolls every game back, so admitted games are remembered here
        self._admitted = set()

    def run(self) -> MergeReport:
        report = MergeReport(dry_run=self.dry_run)
        games = self.source.get_manager.get_games()
        self.logger.info(f"Synchronizing {len(games)} games from {self.source.path} into {self.target.path}")

        for game in games:
            try:
                outcome, stats = self.merge_game(game)
            except GameMergeError as e:
                report.record(GameOutcome.FAILED, game.game_id, error=str(e))
                if not self.continue_on_error:
                    self.logger.error(f"Merge aborted: {e}")
                    self.logger.info(report.summary())
                    e.report = report
                    raise
                self.logger.error(f"{e}; continuing with the next game")
                continue
            report.record(outcome, game.game_id, stats)

        self.logger.info(report.summary())
        return report

    def merge_game(self, game: Game) -> tuple[GameOutcome, CopyStats | None]:
        if self.dry_run and equivalence_key(game) in self._admitted:
            self.logger.info(f"- game {game.game_id} duplicates a game admitted earlier in this run")
            return GameOutcome.SKIPPED, None

        with self.target.Session() as session:
            operation = "Resolving game identity"
            try:
                save_manager = SaveManager(session)
                result = IdentityResolver(session, save_manager).resolve(game)
                if isinstance(result, AlreadyExists):
                    self.logger.info(f"- game {game.game_id} already present in target, skipped")
                    return GameOutcome.SKIPPED, None

                operation = "Copying dependents"
                copier = DependentCopier(self.source.get_manager, save_manager)
                stats = copier.copy_dependents(game.game_id, result.game_id)

                if self.dry_run:
                    session.rollback()
                    self._admitted.add(equivalence_key(game))
                else:
                    operation = "Committing game"
                    session.commit()
            except (MergeError, SQLAlchemyError) as e:
                session.rollback()
                raise GameMergeError(game.game_id, operation, e) from e

        self.logger.info(
            f"+ game {game.game_id} copied to {result.game_id}: {stats.players} players, "
            f"{stats.objects} objects, {stats.data_point_values} data point values")
        return GameOutcome.COPIED, stats
