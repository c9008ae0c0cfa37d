"""Race entry model."""

from sqlalchemy import Float, ForeignKey, Integer, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship

from paddock.database import Base
from paddock.models.base import TimestampMixin

# Columns merged with COALESCE when an entry is seen again.
MERGED_COLUMNS = (
    "trainer_id",
    "jockey_id",
    "barrier",
    "weight_kg",
    "finishing_pos",
    "margin_l",
    "sp_odds",
    "bf_sp",
)


class Entry(Base, TimestampMixin):
    """Race entry table model: one row per horse per race."""

    __tablename__ = "entries"
    __table_args__ = (
        UniqueConstraint("race_id", "horse_id", name="entries_race_id_horse_id_index"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    race_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("races.id", ondelete="CASCADE"), nullable=False
    )
    horse_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("horses.id", ondelete="CASCADE"), nullable=False, index=True
    )
    trainer_id: Mapped[int | None] = mapped_column(
        Integer, ForeignKey("trainers.id", ondelete="SET NULL"), nullable=True, index=True
    )
    jockey_id: Mapped[int | None] = mapped_column(
        Integer, ForeignKey("jockeys.id", ondelete="SET NULL"), nullable=True, index=True
    )

    barrier: Mapped[int | None] = mapped_column(Integer, nullable=True)
    weight_kg: Mapped[float | None] = mapped_column(Float, nullable=True)
    finishing_pos: Mapped[int | None] = mapped_column(Integer, nullable=True)
    margin_l: Mapped[float | None] = mapped_column(Float, nullable=True)  # lengths
    sp_odds: Mapped[float | None] = mapped_column(Float, nullable=True)  # fixed/tote
    bf_sp: Mapped[float | None] = mapped_column(Float, nullable=True)  # exchange SP

    # Relationships
    race = relationship("Race", back_populates="entries")
    horse = relationship("Horse", back_populates="entries")
    trainer = relationship("Trainer", back_populates="entries")
    jockey = relationship("Jockey", back_populates="entries")

    def __repr__(self) -> str:
        return f"<Entry(id={self.id}, race_id={self.race_id}, horse_id={self.horse_id})>"
