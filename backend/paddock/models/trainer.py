"""Trainer model."""

from sqlalchemy import Index, Integer, String, func
from sqlalchemy.orm import Mapped, mapped_column, relationship

from paddock.database import Base
from paddock.models.base import TimestampMixin


class Trainer(Base, TimestampMixin):
    """Trainer table model."""

    __tablename__ = "trainers"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(String(100), nullable=False)

    # Relationships
    entries = relationship("Entry", back_populates="trainer", passive_deletes=True)

    def __repr__(self) -> str:
        return f"<Trainer(id={self.id}, name='{self.name}')>"


Index("trainers_name_uniq", func.lower(Trainer.name), unique=True)
