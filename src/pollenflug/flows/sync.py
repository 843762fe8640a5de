"""
Prefect flow for one pollen sync cycle.

Fetches the DWD pollen dataset (unless one is passed in), removes region
devices that disappeared upstream, then projects every region into the object
tree and saves it.

Run locally:
    python -m pollenflug.flows.sync
"""

from __future__ import annotations

from pathlib import Path
from typing import Any

from prefect import flow, task
from prefect.cache_policies import NO_CACHE

from pollenflug.config import get_settings
from pollenflug.datasources import dwd
from pollenflug.errors import MalformedTimestampError, TransportError
from pollenflug.project import WriteStats, ensure_schema, write_values
from pollenflug.reconcile import ReconcileResult, apply_reconciliation
from pollenflug.regions import filter_regions
from pollenflug.schemas import Locale, RawDataset, RawRegionEntry
from pollenflug.store import DataStore, ObjectStore
from pollenflug.timestamps import DEFAULT_TIMEZONE, parse_timestamp

# Data store with tiered directories
store = DataStore(get_settings().data_dir)

# Relative paths within the store
DATASET_PATH = Path("live/s31fg.json")


@task(name="fetch-dataset")
def fetch_dataset(url: str | None = None, timeout: float = 5.0) -> RawDataset | None:
    """Fetch the DWD pollen dataset, None if the request failed."""
    try:
        return dwd.fetch_pollen_dataset(url, timeout=timeout)
    except TransportError as e:
        print(f"Fetch failed: {e}")
        return None


@task(name="save-dataset")
def save_dataset(dataset: RawDataset, tz: str = DEFAULT_TIMEZONE) -> Path:
    """Keep the raw dataset in the live tier, valid until its next update."""
    try:
        valid_until = parse_timestamp(dataset.next_update, tz)
    except MalformedTimestampError:
        valid_until = None
    return store.write(
        DATASET_PATH,
        dataset.model_dump(by_alias=True),
        source=dwd.DWD_SOURCE,
        valid_until=valid_until,
        last_update=dataset.last_update,
    )


@task(name="reconcile-devices", cache_policy=NO_CACHE)
def reconcile_devices(objects: ObjectStore, entries: list[RawRegionEntry]) -> ReconcileResult:
    """Delete region devices no longer in the dataset, prune retired states."""
    return apply_reconciliation(objects, entries)


@task(name="ensure-schema", cache_policy=NO_CACHE)
def ensure_objects(objects: ObjectStore, entries: list[RawRegionEntry]) -> int:
    """Create missing devices, channels and states."""
    return ensure_schema(objects, entries)


@task(name="write-values", cache_policy=NO_CACHE)
def write_states(
    objects: ObjectStore,
    entries: list[RawRegionEntry],
    last_update: str,
    locale: Locale,
    tz: str,
) -> WriteStats:
    """Overwrite all state values from the dataset."""
    return write_values(objects, entries, last_update, locale, tz)


@flow(name="sync-pollen", log_prints=True)
def sync_pollen(
    dataset: RawDataset | None = None,
    url: str | None = None,
    region: str = "*",
    locale: Locale = Locale.EN,
    tz: str = DEFAULT_TIMEZONE,
) -> dict[str, Any]:
    """
    Run one fetch → reconcile → project cycle.

    Args:
        dataset: Already fetched dataset; fetched from ``url`` when None.
        url: Endpoint override.
        region: Region selector (``*`` = all).
        locale: Text locale.
        tz: Zone of the upstream timestamps.

    Returns:
        Summary dict. ``fetched`` is False when no dataset could be obtained,
        in which case nothing was touched.
    """
    if dataset is None:
        print("Requesting DWD pollen information now.")
        dataset = fetch_dataset(url)
    if dataset is None:
        return {"fetched": False}

    path = save_dataset(dataset, tz)
    print(f"Saved dataset (last update {dataset.last_update}) to {path}")

    entries = filter_regions(dataset, region)
    objects = ObjectStore(store)

    reconciled = reconcile_devices(objects, entries)
    if reconciled.deleted:
        print(f"Deleted {len(reconciled.deleted)} region devices: {', '.join(reconciled.deleted)}")

    created = ensure_objects(objects, entries)
    stats = write_states(objects, entries, dataset.last_update, locale, tz)
    saved = objects.flush()
    print(f"Wrote {stats.written} states for {len(entries)} regions to {saved}")

    return {
        "fetched": True,
        "last_update": dataset.last_update,
        "next_update": dataset.next_update,
        "regions": len(entries),
        "deleted": reconciled.deleted,
        "delete_failed": reconciled.failed,
        "pruned": reconciled.pruned_states,
        "created": created,
        "written": stats.written,
        "write_failed": stats.failed,
    }


if __name__ == "__main__":
    result = sync_pollen()
    print(f"Flow complete: {result}")
