"""SQLAlchemy models."""

from paddock.models.entry import Entry
from paddock.models.horse import Horse
from paddock.models.jockey import Jockey
from paddock.models.race import Race
from paddock.models.trainer import Trainer

__all__ = [
    "Race",
    "Horse",
    "Jockey",
    "Trainer",
    "Entry",
]
