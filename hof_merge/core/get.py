# get.py
import logging

from sqlalchemy import func
from sqlalchemy.orm import sessionmaker
from hof_merge.core.tables import Game, GamePlayer, GameObject, GameDataPointValue
from hof_merge.core.types import CopyStats, ReferentialIntegrityError


class GetManager:
    """Read-only queries against one archive, scoped by game, object or player."""

    def __init__(self, engine):
        self.logger = logging.getLogger(__name__)
        self.Session = sessionmaker(bind=engine)

    def get_games(self):
        with self.Session() as session:
            games = session.query(Game).order_by(Game.game_id).all()
            self.logger.debug(f"Loaded {len(games)} games")
            return games

    def count_games(self):
        with self.Session() as session:
            return session.query(func.count(Game.game_id)).scalar()

    def get_game_data_point_values(self, game_id):
        with self.Session() as session:
            return session.query(GameDataPointValue).filter(
                GameDataPointValue.game_id == game_id
            ).order_by(GameDataPointValue.data_point).all()

    def get_game_object(self, game_id, object_id):
        with self.Session() as session:
            game_object = session.query(GameObject).filter(
                GameObject.game_id == game_id,
                GameObject.object_id == object_id
            ).one_or_none()
            if game_object is None:
                raise ReferentialIntegrityError("GameObject", (game_id, object_id))
            return game_object

    def get_game_objects(self, game_id, exclude_object_ids):
        """
        Objects of a game except the ids in ``exclude_object_ids``.
        Ids are bound one by one, so membership is numeric.
        """
        with self.Session() as session:
            query = session.query(GameObject).filter(GameObject.game_id == game_id)
            if exclude_object_ids:
                query = query.filter(GameObject.object_id.not_in(sorted(exclude_object_ids)))
            return query.order_by(GameObject.object_id).all()

    def get_game_player(self, player_object_id):
        with self.Session() as session:
            player = session.get(GamePlayer, player_object_id)
            if player is None:
                raise ReferentialIntegrityError("GamePlayer", player_object_id)
            return player

    def count_game_dependents(self, game_id) -> CopyStats:
        """Rows a full copy of the game is expected to produce."""
        with self.Session() as session:
            objects = session.query(func.count(GameObject.object_id)).filter(
                GameObject.game_id == game_id
            ).scalar()
            players = session.query(func.count(GameObject.object_id)).filter(
                GameObject.game_id == game_id,
                GameObject.player_object_id.isnot(None)
            ).scalar()
            data_point_values = session.query(func.count()).select_from(GameDataPointValue).filter(
                GameDataPointValue.game_id == game_id
            ).scalar()
            return CopyStats(players=players, objects=objects, data_point_values=data_point_values)
