# save.py
import logging

from hof_merge.core.tables import Game, GamePlayer, GameObject, GameDataPointValue


class SaveManager:
    """
    Insert-only writes into the target archive.

    Bound to the session of the current game's transaction: nothing is
    committed here, the caller decides when the game is complete.
    """

    def __init__(self, session):
        self.logger = logging.getLogger(__name__)
        self.session = session

    def _insert(self, record):
        self.session.add(record)
        # flush so that the autoincrement key is assigned right away
        self.session.flush()
        return record

    def insert_game(self, game: Game) -> int:
        new_game = self._insert(Game(**game.as_dict(exclude=('game_id',))))
        self.logger.debug(f"Inserted game {game.game_id} as {new_game.game_id}")
        return new_game.game_id

    def insert_player(self, player: GamePlayer) -> int:
        new_player = self._insert(GamePlayer(**player.as_dict(exclude=('player_object_id',))))
        self.logger.debug(f"Inserted GamePlayer {player.player_object_id} as {new_player.player_object_id}")
        return new_player.player_object_id

    def insert_object(self, game_object: GameObject, game_id: int, player_object_id: int | None) -> int:
        values = game_object.as_dict(exclude=('object_id', 'game_id', 'player_object_id'))
        new_object = self._insert(GameObject(game_id=game_id, player_object_id=player_object_id, **values))
        self.logger.debug(f"Inserted GameObject {game_object!r} under {new_object.object_id}")
        return new_object.object_id

    def insert_data_point_value(self, value: GameDataPointValue, game_id: int, value_object_id: int | None):
        values = value.as_dict(exclude=('game_id', 'value_object_id'))
        self._insert(GameDataPointValue(game_id=game_id, value_object_id=value_object_id, **values))
        self.logger.debug(f"Inserted GameDataPointValue {value.data_point} for game {game_id}")
