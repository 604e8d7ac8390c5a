# tables.py
from sqlalchemy import Column, Integer, String, Boolean, Float, Text, ForeignKey, PrimaryKeyConstraint, inspect
from sqlalchemy.orm import declarative_base


class _RecordMixin:
    def as_dict(self, exclude=()):
        """Column values keyed by attribute name."""
        return {
            attr.key: getattr(self, attr.key)
            for attr in inspect(self).mapper.column_attrs
            if attr.key not in exclude
        }


Base = declarative_base(cls=_RecordMixin)


# Модели для таблиц, которые копирует слияние
class Game(Base):
    __tablename__ = 'Games'
    game_id = Column('GameId', Integer, primary_key=True, autoincrement=True)
    ruleset = Column('Ruleset', String, nullable=False)
    game_mode = Column('GameMode', Integer, nullable=False)
    turn_count = Column('TurnCount', Integer, nullable=False)
    game_speed_type = Column('GameSpeedType', String, nullable=False)
    map_size_type = Column('MapSizeType', String, nullable=False)
    map = Column('Map', String, nullable=False)
    start_era_type = Column('StartEraType', String, nullable=False)
    start_turn = Column('StartTurn', Integer, nullable=False)
    victor_team_id = Column('VictorTeamId', Integer, nullable=True)
    victory_type = Column('VictoryType', String, nullable=True)
    last_played = Column('LastPlayed', Integer, nullable=False)

    def __repr__(self):
        return f"<Game {self.game_id} {self.ruleset} turn {self.turn_count} on {self.map}>"


class GamePlayer(Base):
    __tablename__ = 'GamePlayers'
    player_object_id = Column('PlayerObjectId', Integer, primary_key=True, autoincrement=True)
    is_local = Column('IsLocal', Boolean, nullable=False)
    is_ai = Column('IsAI', Boolean, nullable=False)
    is_major = Column('IsMajor', Boolean, nullable=False)
    leader_type = Column('LeaderType', String, nullable=False)
    leader_name = Column('LeaderName', String)
    civilization_type = Column('CivilizationType', String)
    civilization_name = Column('CivilizationName', String)
    difficulty_type = Column('DifficultyType', String)
    score = Column('Score', Integer, nullable=False)
    player_id = Column('PlayerId', Integer, nullable=False)
    team_id = Column('TeamId', Integer, nullable=False)

    def __repr__(self):
        return f"<GamePlayer {self.player_object_id} {self.leader_type}>"


class GameObject(Base):
    __tablename__ = 'GameObjects'
    object_id = Column('ObjectId', Integer, primary_key=True, autoincrement=True)
    game_id = Column('GameId', Integer, ForeignKey('Games.GameId'), nullable=False)
    player_object_id = Column('PlayerObjectId', Integer, ForeignKey('GamePlayers.PlayerObjectId'), nullable=True)
    type = Column('Type', String, nullable=False)
    name = Column('Name', String)
    plot_index = Column('PlotIndex', Integer)
    extra_data = Column('ExtraData', String)
    icon = Column('Icon', String)

    def __repr__(self):
        return f"<GameObject {self.object_id} {self.type} game {self.game_id}>"


class GameDataPointValue(Base):
    __tablename__ = 'GameDataPointValues'
    data_point = Column('DataPoint', String, nullable=False)
    game_id = Column('GameId', Integer, ForeignKey('Games.GameId'), nullable=False)
    value_object_id = Column('ValueObjectId', Integer, ForeignKey('GameObjects.ObjectId'), nullable=True)
    value_type = Column('ValueType', String)
    value_string = Column('ValueString', String)
    value_numeric = Column('ValueNumeric', Float)
    __table_args__ = (
        PrimaryKeyConstraint('DataPoint', 'GameId'),
    )

    @property
    def value_kind(self):
        """Which value slot is populated: object, string, numeric or empty."""
        if self.value_object_id is not None:
            return 'object'
        if self.value_string is not None:
            return 'string'
        if self.value_numeric is not None:
            return 'numeric'
        return 'empty'

    def __repr__(self):
        return f"<GameDataPointValue {self.data_point} game {self.game_id} ({self.value_kind})>"


# Вспомогательные таблицы: нужны для проверки схемы, слиянием не копируются
class Migration(Base):
    __tablename__ = 'Migrations'
    migration_id = Column('MigrationId', String, primary_key=True)
    completed_on = Column('CompletedOn', String)


class Ruleset(Base):
    __tablename__ = 'Rulesets'
    ruleset = Column('Ruleset', String, primary_key=True)
    type = Column('Type', String)
    name = Column('Name', String)
    description = Column('Description', Text)
    icon = Column('Icon', String)


class RulesetType(Base):
    __tablename__ = 'RulesetTypes'
    ruleset = Column('Ruleset', String, nullable=False)
    type = Column('Type', String, nullable=False)
    kind = Column('Kind', String)
    name = Column('Name', String)
    icon = Column('Icon', String)
    __table_args__ = (
        PrimaryKeyConstraint('Ruleset', 'Type'),
    )


class RulesetDataPointValue(Base):
    __tablename__ = 'RulesetDataPointValues'
    data_point = Column('DataPoint', String, nullable=False)
    ruleset = Column('Ruleset', String, nullable=False)
    value_type = Column('ValueType', String)
    value_string = Column('ValueString', String)
    value_numeric = Column('ValueNumeric', Float)
    __table_args__ = (
        PrimaryKeyConstraint('DataPoint', 'Ruleset'),
    )


class ObjectDataPointValue(Base):
    __tablename__ = 'ObjectDataPointValues'
    data_point = Column('DataPoint', String, nullable=False)
    object_id = Column('ObjectId', Integer, nullable=False)
    value_object_id = Column('ValueObjectId', Integer)
    value_type = Column('ValueType', String)
    value_string = Column('ValueString', String)
    value_numeric = Column('ValueNumeric', Float)
    __table_args__ = (
        PrimaryKeyConstraint('DataPoint', 'ObjectId'),
    )


class DataSet(Base):
    __tablename__ = 'DataSets'
    data_set_id = Column('DataSetId', Integer, primary_key=True, autoincrement=True)
    data_set = Column('DataSet', String, nullable=False)
    game_id = Column('GameId', Integer)
    object_id = Column('ObjectId', Integer)
    type = Column('Type', String)


class DataSetValue(Base):
    __tablename__ = 'DataSetValues'
    data_set_id = Column('DataSetId', Integer, nullable=False)
    x = Column('X', Float, nullable=False)
    y = Column('Y', Float)
    __table_args__ = (
        PrimaryKeyConstraint('DataSetId', 'X'),
    )


# Атрибуты, по которым две игры считаются одинаковыми (без GameId)
EQUIVALENCE_COLUMNS = (
    'ruleset', 'game_mode', 'turn_count', 'game_speed_type', 'map_size_type', 'map',
    'start_era_type', 'start_turn', 'victor_team_id', 'victory_type', 'last_played',
)

CORE_TABLES = {
    Game.__tablename__: Game,
    GamePlayer.__tablename__: GamePlayer,
    GameObject.__tablename__: GameObject,
    GameDataPointValue.__tablename__: GameDataPointValue,
}

REQUIRED_TABLES = frozenset(Base.metadata.tables.keys())
