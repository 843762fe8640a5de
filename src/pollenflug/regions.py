"""Region selection and canonical region identities."""

from __future__ import annotations

from typing import TYPE_CHECKING

from pollenflug.errors import DuplicateRegionError

if TYPE_CHECKING:
    from collections.abc import Iterable

    from pollenflug.schemas import RawDataset, RawRegionEntry

WILDCARD = "*"
DEVICE_PREFIX = "region#"


def filter_regions(dataset: RawDataset | None, selector: str | int | None) -> list[RawRegionEntry]:
    """
    Select the entries of a dataset matching a region selector.

    An empty selector or ``*`` selects every entry. Otherwise entries whose
    ``region_id`` equals the selector are kept. Numeric ids compare as integers
    (``"031"`` matches ``31``), anything else as stripped strings.
    Original order is preserved and the dataset is not modified.
    """
    if dataset is None:
        return []
    wanted = "" if selector is None else str(selector).strip()
    if not wanted or wanted == WILDCARD:
        return list(dataset.content)
    return [entry for entry in dataset.content if _same_region(str(entry.region_id), wanted)]


def _same_region(region_id: str, wanted: str) -> bool:
    region_id = region_id.strip()
    try:
        return int(region_id) == int(wanted)
    except ValueError:
        return region_id == wanted


def canonical_id(entry: RawRegionEntry) -> str:
    """Part-region id when the entry has one, region id otherwise."""
    return entry.partregion_id if entry.has_partregion else entry.region_id


def device_id(entry: RawRegionEntry) -> str:
    """Top-level object id of a region entry (e.g. ``region#31``)."""
    return f"{DEVICE_PREFIX}{canonical_id(entry)}"


def display_name(entry: RawRegionEntry) -> str:
    """Human readable region name, including the part-region when present."""
    if entry.has_partregion:
        return f"{entry.region_name} - {entry.partregion_name}"
    return entry.region_name


def check_unique(entries: Iterable[RawRegionEntry]) -> None:
    """Raise DuplicateRegionError if two entries share a canonical identity."""
    seen: set[str] = set()
    for entry in entries:
        ident = device_id(entry)
        if ident in seen:
            raise DuplicateRegionError(ident)
        seen.add(ident)
