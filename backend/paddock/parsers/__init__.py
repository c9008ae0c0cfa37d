"""Feed value parsers."""

from paddock.parsers import breeding
from paddock.parsers.breeding import BreedingInfo
from paddock.parsers.fields import (
    extract_first,
    extract_float,
    extract_number,
    extract_string,
    normalize_country,
    normalize_string,
    to_float,
    to_int,
)

__all__ = [
    "breeding",
    "BreedingInfo",
    "extract_first",
    "extract_float",
    "extract_number",
    "extract_string",
    "normalize_country",
    "normalize_string",
    "to_float",
    "to_int",
]
