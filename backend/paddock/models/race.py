"""Race model."""

import datetime

from sqlalchemy import Date, Integer, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship

from paddock.database import Base
from paddock.models.base import TimestampMixin


class Race(Base, TimestampMixin):
    """Race table model.

    Identity is (date, track, race_number); reprocessing a day only replaces
    distance, going and class.
    """

    __tablename__ = "races"
    __table_args__ = (
        UniqueConstraint("date", "track", "race_number", name="races_date_track_number_index"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    date: Mapped[datetime.date] = mapped_column(Date, nullable=False)
    track: Mapped[str] = mapped_column(String(100), nullable=False)
    country: Mapped[str] = mapped_column(String(3), nullable=False)
    distance_m: Mapped[int] = mapped_column(Integer, nullable=False)
    surface: Mapped[str | None] = mapped_column(String(50), nullable=True)
    going: Mapped[str | None] = mapped_column(String(50), nullable=True)
    race_class: Mapped[str | None] = mapped_column(String(100), nullable=True)
    race_number: Mapped[int] = mapped_column(Integer, nullable=False)

    # Relationships
    entries = relationship(
        "Entry",
        back_populates="race",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )

    def __repr__(self) -> str:
        return f"<Race(id={self.id}, track='{self.track}', race_number={self.race_number}, date={self.date})>"
