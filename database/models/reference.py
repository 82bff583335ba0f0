import uuid

from sqlalchemy import Column, Text, TIMESTAMP, Boolean, Date, Enum, Uuid, func, Index
from sqlalchemy.orm import relationship

from .base import Base
from .enums import CompetitionType

DEFAULT_COMPETITION_EXTERNAL_ID = 'default'
DEFAULT_COMPETITION_NAME = 'Other Matches'


class Team(Base):
    """
    Canonical side (national or franchise), keyed by the provider's external id.

    Created lazily from snapshot data; display fields are refreshed whenever
    richer data arrives. Never deleted by the pipeline.
    """
    __tablename__ = 'team'

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    external_id = Column(Text, nullable=False, unique=True)
    name = Column(Text, nullable=False)
    short_name = Column(Text)
    logo_url = Column(Text)
    country = Column(Text)
    is_national = Column(Boolean, nullable=False, default=False)

    created_at = Column(TIMESTAMP(timezone=True), nullable=False, server_default=func.now())
    updated_at = Column(TIMESTAMP(timezone=True), nullable=False, server_default=func.now(), onupdate=func.now())

    favorites = relationship("FavoriteTeam", back_populates="team")

    def __repr__(self) -> str:
        return f"<Team {self.external_id} {self.name}>"


class Competition(Base):
    """
    Tournament or series grouping.

    A sentinel row (external_id='default') holds matches the source does not
    attribute to any series, so every match has exactly one competition.
    """
    __tablename__ = 'competition'

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    external_id = Column(Text, nullable=False, unique=True)
    name = Column(Text, nullable=False)
    short_name = Column(Text)
    type = Column(Enum(CompetitionType, native_enum=False, length=32), nullable=False,
                  default=CompetitionType.INTERNATIONAL)
    country = Column(Text)
    season = Column(Text)
    start_date = Column(Date)
    end_date = Column(Date)
    logo_url = Column(Text)

    created_at = Column(TIMESTAMP(timezone=True), nullable=False, server_default=func.now())
    updated_at = Column(TIMESTAMP(timezone=True), nullable=False, server_default=func.now(), onupdate=func.now())

    matches = relationship("Match", back_populates="competition")

    __table_args__ = (
        Index('idx_competition_type', 'type'),
    )

    @property
    def is_default(self) -> bool:
        return self.external_id == DEFAULT_COMPETITION_EXTERNAL_ID
