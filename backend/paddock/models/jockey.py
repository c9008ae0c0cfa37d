"""Jockey model."""

from sqlalchemy import Index, Integer, String, func
from sqlalchemy.orm import Mapped, mapped_column, relationship

from paddock.database import Base
from paddock.models.base import TimestampMixin


class Jockey(Base, TimestampMixin):
    """Jockey table model."""

    __tablename__ = "jockeys"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(String(100), nullable=False)

    # Relationships
    entries = relationship("Entry", back_populates="jockey", passive_deletes=True)

    def __repr__(self) -> str:
        return f"<Jockey(id={self.id}, name='{self.name}')>"


Index("jockeys_name_uniq", func.lower(Jockey.name), unique=True)
