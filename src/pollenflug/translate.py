"""Translation of raw DWD risk codes into derived representations.

DWD publishes risk as one of seven categorical codes. Each code maps to a
dense 0..6 index (the "in-between" codes get their own step), a localized
phrase, and the species maps to a chart image.
"""

from __future__ import annotations

from pollenflug.schemas import Day, Locale, Species

IMAGE_BASE_URL = "https://www.dwd.de/DWD/warnungen/medizin/pollen/"

#: Raw code -> dense ordinal index. Order matters: index == position.
RISK_CODES: tuple[str, ...] = ("0", "0-1", "1", "1-2", "2", "2-3", "3")

UNKNOWN_RISK = -1

RISK_TEXTS: dict[Locale, dict[str, str]] = {
    Locale.DE: {
        "0": "keine Belastung",
        "0-1": "keine bis geringe Belastung",
        "1": "geringe Belastung",
        "1-2": "geringe bis mittlere Belastung",
        "2": "mittlere Belastung",
        "2-3": "mittlere bis hohe Belastung",
        "3": "hohe Belastung",
    },
    Locale.EN: {
        "0": "not any pollen concentration",
        "0-1": "not any to low pollen concentration",
        "1": "low pollen concentration",
        "1-2": "low to medium pollen concentration",
        "2": "medium pollen concentration",
        "2-3": "medium to high pollen concentration",
        "3": "high pollen concentration",
    },
}

NO_DATA_TEXTS: dict[Locale, str] = {
    Locale.DE: "keine Daten vorhanden",
    Locale.EN: "no data available",
}

SPECIES_SUFFIX: dict[Locale, str] = {
    Locale.DE: "für",
    Locale.EN: "for",
}


def risk_number(code: str | None) -> int:
    """Map a raw risk code to 0..6, or -1 for anything unrecognized."""
    if code is None:
        return UNKNOWN_RISK
    try:
        return RISK_CODES.index(code)
    except ValueError:
        return UNKNOWN_RISK


def risk_text(code: str | None, species: str | None = None, locale: Locale = Locale.EN) -> str:
    """
    Localized phrase for a raw risk code.

    Args:
        code: Raw risk code (``"0"`` .. ``"3"``).
        species: Optional species label, appended as "for <species>".
        locale: Text locale.
    """
    text = RISK_TEXTS[locale].get(code or "", NO_DATA_TEXTS[locale])
    if species:
        text = f"{text} {SPECIES_SUFFIX[locale]} {species}"
    return text


def bucket_text(number: int, locale: Locale = Locale.EN) -> str:
    """
    Localized phrase for a risk bucket (0..6).

    The bucket number is looked up as a raw code, so buckets 0..3 read like
    the whole-number codes and buckets 4..6 have no text.
    """
    return risk_text(str(number), locale=locale)


def image_url(day: str | None, species: str | None) -> str:
    """
    DWD chart image URL for a forecast day and species.

    Returns an empty string if either input is missing or unknown.
    """
    if not day or not species:
        return ""
    try:
        forecast_day = Day(str(day).strip().lower())
    except ValueError:
        return ""
    member = Species.lookup(species)
    if member is None:
        return ""
    return f"{IMAGE_BASE_URL}pollen_{forecast_day.ordinal}_{member.ordinal}.png"
