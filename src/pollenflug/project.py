"""Projection of filtered region entries into the object tree.

Two phases per cycle:
  1. ``ensure_schema``: create-if-absent every device, channel and state.
  2. ``write_values``: overwrite all leaf values from the current dataset.

Every store call is best-effort. A failing call is logged and counted and the
remaining calls still run.
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

from pollenflug.errors import MalformedTimestampError, PersistenceError
from pollenflug.reconcile import IMAGES_DEVICE, INFO_DEVICE
from pollenflug.regions import device_id, display_name
from pollenflug.schemas import Day, Locale
from pollenflug.timestamps import DEFAULT_TIMEZONE, forecast_dates
from pollenflug.translate import RISK_CODES, bucket_text, image_url, risk_number, risk_text

if TYPE_CHECKING:
    from pollenflug.schemas import RawRegionEntry
    from pollenflug.store import ObjectStore

logger = logging.getLogger(__name__)

BUCKETS = range(len(RISK_CODES))
SUMMARY_CHANNEL = "summary"


@dataclass
class WriteStats:
    """Counts of leaf writes in one projection."""

    written: int = 0
    failed: int = 0


# =============================================================================
# Object descriptors
# =============================================================================


def _device(name: str) -> dict[str, Any]:
    return {"type": "device", "common": {"name": name}, "native": {}}


def _channel(name: str) -> dict[str, Any]:
    return {"type": "channel", "common": {"name": name}, "native": {}}


def _state(name: str, value_type: str = "string", role: str = "state") -> dict[str, Any]:
    return {
        "type": "state",
        "common": {
            "name": name,
            "type": value_type,
            "role": role,
            "read": True,
            "write": False,
        },
        "native": {},
    }


# =============================================================================
# Summaries (pure)
# =============================================================================


def index_summary(entry: RawRegionEntry, day: Day, locale: Locale = Locale.EN) -> list[dict[str, Any]]:
    """Species with a known risk for ``day``, as Pollen/Riskindex/Riskindextext dicts."""
    summary = []
    for species, forecast in entry.pollen.items():
        code = forecast.code_for(day)
        number = risk_number(code)
        if number < 0:
            continue
        summary.append(
            {
                "Pollen": species,
                "Riskindex": number,
                "Riskindextext": risk_text(code, locale=locale),
            }
        )
    return summary


def species_by_bucket(entry: RawRegionEntry, day: Day) -> dict[int, list[str]]:
    """Species names grouped by risk index (0..6) for ``day``."""
    buckets: dict[int, list[str]] = {n: [] for n in BUCKETS}
    for species, forecast in entry.pollen.items():
        number = risk_number(forecast.code_for(day))
        if number in buckets:
            buckets[number].append(species)
    return buckets


def bucket_summary(entry: RawRegionEntry, day: Day, locale: Locale = Locale.EN) -> list[dict[str, Any]]:
    """One dict per risk index 0..6 listing the species in it (``""`` if none)."""
    return [
        {
            "Riskindex": number,
            "Riskindextext": bucket_text(number, locale),
            "Pollen": ", ".join(species),
        }
        for number, species in species_by_bucket(entry, day).items()
    ]


# =============================================================================
# Phase 1: schema
# =============================================================================


class _Ensurer:
    """Counts created nodes and swallows per-call persistence failures."""

    def __init__(self, store: ObjectStore) -> None:
        self.store = store
        self.created = 0

    def __call__(self, obj_id: str, descriptor: dict[str, Any]) -> None:
        try:
            if self.store.ensure_exists(obj_id, descriptor):
                self.created += 1
        except PersistenceError as e:
            logger.error("Error creating object %s: %s", obj_id, e)


def ensure_schema(store: ObjectStore, entries: list[RawRegionEntry]) -> int:
    """
    Create every object the projection writes to, if missing.

    Returns:
        Number of newly created objects.
    """
    ensure = _Ensurer(store)

    ensure(INFO_DEVICE, _device("Information"))
    ensure(f"{INFO_DEVICE}.today", _state("Today", role="date"))
    ensure(f"{INFO_DEVICE}.tomorrow", _state("Tomorrow", role="date"))

    for entry in entries:
        device = device_id(entry)
        ensure(device, _device(display_name(entry)))
        ensure(f"{device}.{SUMMARY_CHANNEL}", _channel("summary"))
        for day in Day:
            summary = f"{device}.{SUMMARY_CHANNEL}"
            ensure(f"{summary}.json_index_{day}", _state(f"Summary {day} (index)"))
            ensure(f"{summary}.json_riskindex_{day}", _state(f"Summary {day} (riskindex)"))
            riskindex = f"{device}.riskindex_{day}"
            ensure(riskindex, _channel("riskindex"))
            for number in BUCKETS:
                ensure(f"{riskindex}.riskindex_{number}", _state(f"Riskindex {number}"))
        for species in entry.pollen:
            channel = f"{device}.{species}"
            ensure(channel, _channel(species))
            for day in Day:
                ensure(f"{channel}.index_{day}", _state(str(day), value_type="number"))
                ensure(f"{channel}.text_{day}", _state(str(day)))

    ensure(IMAGES_DEVICE, _device("Images"))
    species_seen = dict.fromkeys(s for entry in entries for s in entry.pollen)
    for species in species_seen:
        channel = f"{IMAGES_DEVICE}.{species}"
        ensure(channel, _channel(f"Images for {species}"))
        for day in Day:
            ensure(f"{channel}.image_{day}", _state(day.title(), role="weather.chart.url"))

    return ensure.created


# =============================================================================
# Phase 2: values
# =============================================================================


def write_values(
    store: ObjectStore,
    entries: list[RawRegionEntry],
    last_update: str | None,
    locale: Locale = Locale.EN,
    tz: str = DEFAULT_TIMEZONE,
) -> WriteStats:
    """
    Overwrite every leaf value from the current dataset.

    Args:
        store: Object store (schema must already exist).
        entries: Filtered region entries.
        last_update: Dataset ``last_update`` used for the ``info`` dates.
        locale: Text locale.
        tz: Zone of the upstream timestamps.
    """
    stats = WriteStats()

    def put(obj_id: str, value: Any) -> None:
        try:
            store.write(obj_id, value, ack=True)
            stats.written += 1
        except PersistenceError as e:
            stats.failed += 1
            logger.error("Error setting state %s: %s", obj_id, e)

    for entry in entries:
        device = device_id(entry)
        for species, forecast in entry.pollen.items():
            for day in Day:
                code = forecast.code_for(day)
                put(f"{device}.{species}.index_{day}", risk_number(code))
                put(f"{device}.{species}.text_{day}", risk_text(code, species, locale))

        for day in Day:
            put(
                f"{device}.{SUMMARY_CHANNEL}.json_index_{day}",
                json.dumps(index_summary(entry, day, locale)),
            )
            put(
                f"{device}.{SUMMARY_CHANNEL}.json_riskindex_{day}",
                json.dumps(bucket_summary(entry, day, locale)),
            )
            for number, species_names in species_by_bucket(entry, day).items():
                put(f"{device}.riskindex_{day}.riskindex_{number}", ", ".join(species_names))

    # Images don't depend on the region: one write per species per cycle.
    species_seen = dict.fromkeys(s for entry in entries for s in entry.pollen)
    for species in species_seen:
        for day in Day:
            put(f"{IMAGES_DEVICE}.{species}.image_{day}", image_url(day, species))

    try:
        today, tomorrow = forecast_dates(last_update, tz)
    except MalformedTimestampError as e:
        logger.warning("Skipping info dates: %s", e)
    else:
        put(f"{INFO_DEVICE}.today", today)
        put(f"{INFO_DEVICE}.tomorrow", tomorrow)

    return stats


def project(
    store: ObjectStore,
    entries: list[RawRegionEntry],
    last_update: str | None,
    locale: Locale = Locale.EN,
    tz: str = DEFAULT_TIMEZONE,
) -> WriteStats:
    """Run both projection phases."""
    ensure_schema(store, entries)
    return write_values(store, entries, last_update, locale, tz)
