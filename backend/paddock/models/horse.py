"""Horse model."""

from sqlalchemy import ForeignKey, Index, Integer, String, func
from sqlalchemy.orm import Mapped, mapped_column, relationship

from paddock.database import Base
from paddock.models.base import TimestampMixin


class Horse(Base, TimestampMixin):
    """Horse table model.

    Sire, dam and damsire point back into this table. Parents are created by
    name first and then referenced by id, so the pedigree is a plain graph of
    rows rather than nested objects.
    """

    __tablename__ = "horses"
    __table_args__ = (
        Index("ix_horses_sire_id_dam_id", "sire_id", "dam_id"),
        Index("ix_horses_sex_sire_id", "sex", "sire_id"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(String(100), nullable=False)
    country: Mapped[str | None] = mapped_column(String(3), nullable=True)
    year_foaled: Mapped[int | None] = mapped_column(Integer, nullable=True)
    sex: Mapped[str | None] = mapped_column(String(1), nullable=True)  # m/f/g/c/h

    sire_id: Mapped[int | None] = mapped_column(
        Integer, ForeignKey("horses.id", ondelete="SET NULL"), nullable=True, index=True
    )
    dam_id: Mapped[int | None] = mapped_column(
        Integer, ForeignKey("horses.id", ondelete="SET NULL"), nullable=True, index=True
    )
    damsire_id: Mapped[int | None] = mapped_column(
        Integer, ForeignKey("horses.id", ondelete="SET NULL"), nullable=True, index=True
    )

    # Relationships
    sire = relationship("Horse", foreign_keys=[sire_id], remote_side=[id])
    dam = relationship("Horse", foreign_keys=[dam_id], remote_side=[id])
    damsire = relationship("Horse", foreign_keys=[damsire_id], remote_side=[id])
    entries = relationship("Entry", back_populates="horse", passive_deletes=True)

    def __repr__(self) -> str:
        return f"<Horse(id={self.id}, name='{self.name}')>"


# Names are unique regardless of case.
Index("horses_name_uniq", func.lower(Horse.name), unique=True)
