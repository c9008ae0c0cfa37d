"""
Breeding string parser.

TAB reports the winner's parentage as a compact string such as
``"2 f TIZ THE LAW (USA)-CONQUEST STRATE UP (CAN)"``: age, sex letter, then
``SIRE-DAM`` with optional territory suffixes.
"""

import re
from dataclasses import dataclass

from paddock.parsers.fields import normalize_string, to_int

BREEDING_PATTERN = re.compile(r"(\d+)\s+([mfgch])\s+(.+?)-(.+)", re.IGNORECASE)
_TERRITORY_SUFFIX = re.compile(r"\s*\([A-Z]{2,3}\)\s*$")
_WHITESPACE = re.compile(r"\s+")

SEX_ALIASES = {
    "m": "m",
    "male": "m",
    "f": "f",
    "female": "f",
    "mare": "f",
    "g": "g",
    "gelding": "g",
    "c": "c",
    "colt": "c",
    "filly": "f",
    "rig": "h",
    "stallion": "h",
    "h": "h",
    "horse": "h",
}


@dataclass(frozen=True)
class BreedingInfo:
    """Parsed breeding string."""

    age: int | None = None
    sex: str | None = None
    sire_name: str | None = None
    dam_name: str | None = None

    @property
    def is_valid(self) -> bool:
        """True only when both parents are known."""
        return bool(self.sire_name) and bool(self.dam_name)

    @property
    def parents(self) -> tuple[str | None, str | None]:
        return self.sire_name, self.dam_name


EMPTY_BREEDING = BreedingInfo()


def normalize_sex(sex: str | None) -> str | None:
    """Canonical single-letter sex code; anything unrecognised is None."""
    if sex is None:
        return None
    lowered = sex.strip().lower()
    if not lowered:
        return None
    return SEX_ALIASES.get(lowered)


def clean_horse_name(name_part: str | None) -> str | None:
    """Strip a trailing territory code like ``(USA)`` and collapse whitespace."""
    if name_part is None:
        return None
    name = _TERRITORY_SUFFIX.sub("", name_part)
    return normalize_string(_WHITESPACE.sub(" ", name))


def parse(breeding_str: str | None) -> BreedingInfo:
    """
    Parse a breeding string.

    Examples:
        >>> parse("2 f TIZ THE LAW (USA)-CONQUEST STRATE UP (CAN)")
        BreedingInfo(age=2, sex='f', sire_name='TIZ THE LAW', dam_name='CONQUEST STRATE UP')
        >>> parse("SUPER STALLION-MARE NAME")
        BreedingInfo(age=None, sex=None, sire_name='SUPER STALLION', dam_name='MARE NAME')
        >>> parse(None)
        BreedingInfo(age=None, sex=None, sire_name=None, dam_name=None)
    """
    text = normalize_string(breeding_str)
    if text is None:
        return EMPTY_BREEDING

    match = BREEDING_PATTERN.search(text)
    if match:
        age_str, sex, sire_part, dam_part = match.groups()
        return BreedingInfo(
            age=to_int(age_str),
            sex=normalize_sex(sex),
            sire_name=clean_horse_name(sire_part),
            dam_name=clean_horse_name(dam_part),
        )

    # Some records drop age/sex but still carry SIRE-DAM.
    if "-" not in text:
        return EMPTY_BREEDING

    sire_part, dam_part = text.split("-", 1)
    return BreedingInfo(
        sire_name=clean_horse_name(sire_part),
        dam_name=clean_horse_name(dam_part),
    )
