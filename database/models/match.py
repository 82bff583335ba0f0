import uuid

from sqlalchemy import (
    Column, Text, TIMESTAMP, ForeignKey, Float, Enum, Uuid, func, Index, CheckConstraint
)
from sqlalchemy.orm import relationship

from .base import Base
from .enums import MatchFormat, MatchStatus


class Match(Base):
    """
    Canonical record of one cricket fixture.

    external_id is the stable key from the snapshot source; every poll is an
    upsert keyed on it. This row is the "last known state" the transition
    detector diffs incoming snapshots against.
    """
    __tablename__ = 'match'

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    external_id = Column(Text, nullable=False, unique=True)
    name = Column(Text)

    competition_id = Column(Uuid, ForeignKey('competition.id'), nullable=False)
    home_team_id = Column(Uuid, ForeignKey('team.id'), nullable=False)
    away_team_id = Column(Uuid, ForeignKey('team.id'), nullable=False)

    format = Column(Enum(MatchFormat, native_enum=False, length=32), nullable=False, default=MatchFormat.T20)
    status = Column(Enum(MatchStatus, native_enum=False, length=32), nullable=False, default=MatchStatus.SCHEDULED)

    venue = Column(Text)
    city = Column(Text)
    start_time = Column(TIMESTAMP(timezone=True), nullable=False)
    end_time = Column(TIMESTAMP(timezone=True))

    # Toss / result
    toss_winner_id = Column(Uuid, ForeignKey('team.id'))
    toss_decision = Column(Text)  # bat | field
    winner_id = Column(Uuid, ForeignKey('team.id'))
    result = Column(Text)

    # Live score
    current_score = Column(Text)  # "runs/wickets"
    current_overs = Column(Text)
    current_run_rate = Column(Float)

    last_polled_at = Column(TIMESTAMP(timezone=True))
    created_at = Column(TIMESTAMP(timezone=True), nullable=False, server_default=func.now())
    updated_at = Column(TIMESTAMP(timezone=True), nullable=False, server_default=func.now(), onupdate=func.now())

    competition = relationship("Competition", back_populates="matches")
    home_team = relationship("Team", foreign_keys=[home_team_id])
    away_team = relationship("Team", foreign_keys=[away_team_id])

    __table_args__ = (
        CheckConstraint('home_team_id <> away_team_id', name='ck_match_distinct_teams'),
        Index('idx_match_status', 'status'),
        Index('idx_match_start_time', 'start_time'),
    )

    def __repr__(self) -> str:
        return f"<Match {self.external_id} {self.status}>"
