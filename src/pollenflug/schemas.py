"""
Domain models for pollenflug.

Pydantic models for the upstream DWD pollen dataset, plus the fixed
enumerations (forecast days, species, locales) the projection is built on.
The datasource normalizes API responses to these.
"""

from __future__ import annotations

from enum import StrEnum

from pydantic import BaseModel, ConfigDict, Field

# =============================================================================
# Enumerations
# =============================================================================


class Day(StrEnum):
    """Forecast days that are projected into the state tree."""

    TODAY = "today"
    TOMORROW = "tomorrow"

    @property
    def ordinal(self) -> int:
        """Day position used in DWD chart image names (today = 1)."""
        return list(Day).index(self) + 1


class Species(StrEnum):
    """Pollen species published by DWD, in chart-image order."""

    HASEL = "Hasel"
    ERLE = "Erle"
    BIRKE = "Birke"
    GRAESER = "Graeser"
    ROGGEN = "Roggen"
    BEIFUSS = "Beifuss"
    AMBROSIA = "Ambrosia"
    ESCHE = "Esche"

    @classmethod
    def lookup(cls, key: str | None) -> Species | None:
        """Case-insensitive lookup of a raw species key, None if unknown."""
        if not key:
            return None
        key = key.strip().lower()
        for member in cls:
            if member.value.lower() == key:
                return member
        value = SPECIES_ALIASES.get(key)
        return cls(value) if value else None

    @property
    def ordinal(self) -> int:
        """Species position used in DWD chart image names (Hasel = 0)."""
        return list(Species).index(self)


#: English names accepted wherever a species key is looked up.
SPECIES_ALIASES: dict[str, str] = {
    "hazel": "Hasel",
    "alder": "Erle",
    "birch": "Birke",
    "grasses": "Graeser",
    "rye": "Roggen",
    "mugwort": "Beifuss",
    "ragweed": "Ambrosia",
    "ash": "Esche",
}


class Locale(StrEnum):
    """Supported text locales."""

    DE = "DE"
    EN = "EN"

    @classmethod
    def from_language(cls, language: str | None) -> Locale:
        """Pick German for any ``de*`` language setting, English otherwise."""
        if language and language.strip().upper().startswith("DE"):
            return cls.DE
        return cls.EN


# =============================================================================
# Raw upstream dataset
# =============================================================================


class PollenForecast(BaseModel):
    """Raw risk codes of one species for each forecast day."""

    model_config = ConfigDict(extra="allow", coerce_numbers_to_str=True)

    today: str | None = None
    tomorrow: str | None = None
    dayafter_to: str | None = None

    def code_for(self, day: Day) -> str | None:
        """Raw risk code for a projected day."""
        code: str | None = getattr(self, day.value)
        return code


class RawRegionEntry(BaseModel):
    """One region or part-region entry of the upstream ``content`` list."""

    model_config = ConfigDict(populate_by_name=True, coerce_numbers_to_str=True)

    region_id: str
    region_name: str = ""
    partregion_id: str = "-1"
    partregion_name: str = ""
    pollen: dict[str, PollenForecast] = Field(default_factory=dict, alias="Pollen")

    @property
    def has_partregion(self) -> bool:
        """Whether this entry describes a part-region."""
        return self.partregion_id.strip() != "-1"


class RawDataset(BaseModel):
    """Top-level upstream payload."""

    model_config = ConfigDict(extra="ignore")

    last_update: str = ""
    next_update: str = ""
    name: str | None = None
    sender: str | None = None
    content: list[RawRegionEntry] = Field(default_factory=list)
