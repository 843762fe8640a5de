"""Reconciliation of persisted region devices against a fetched dataset.

A region device that no longer appears upstream is deleted with its whole
subtree. Devices that stay get swept for states left behind by older schema
versions (day-after-tomorrow fields and the flattened ``json_text_*`` summary).
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from pollenflug.errors import PersistenceError
from pollenflug.regions import check_unique, device_id
from pollenflug.store import ObjectKind

if TYPE_CHECKING:
    from collections.abc import Iterable

    from pollenflug.schemas import RawRegionEntry
    from pollenflug.store import ObjectStore

logger = logging.getLogger(__name__)

INFO_DEVICE = "info"
IMAGES_DEVICE = "images"
PERMANENT_DEVICES = frozenset({INFO_DEVICE, IMAGES_DEVICE})

OBSOLETE_SUFFIXES = ("_dayaftertomorrow", "_dayafter_to")
OBSOLETE_PREFIX = "json_text_"


@dataclass
class ReconcilePlan:
    """Top-level ids to delete."""

    to_delete: set[str] = field(default_factory=set)


@dataclass
class ReconcileResult:
    """Outcome of applying a plan against the store."""

    deleted: list[str] = field(default_factory=list)
    failed: list[str] = field(default_factory=list)
    pruned_states: int = 0


def reconcile(persisted_ids: Iterable[str], entries: Iterable[RawRegionEntry]) -> ReconcilePlan:
    """
    Compute which persisted top-level ids are orphaned.

    Args:
        persisted_ids: Top-level object ids currently in the store.
        entries: Filtered region entries of the fresh dataset.

    Returns:
        Plan whose ``to_delete`` holds every id that is neither permanent nor
        the device id of a current entry.
    """
    keep = PERMANENT_DEVICES | {device_id(entry) for entry in entries}
    return ReconcilePlan(to_delete={pid for pid in persisted_ids if pid and pid not in keep})


def is_obsolete_state(state_id: str) -> bool:
    """Whether a state name belongs to a retired schema version."""
    name = state_id.rsplit(".", 1)[-1]
    return name.endswith(OBSOLETE_SUFFIXES) or name.startswith(OBSOLETE_PREFIX)


def prune_obsolete_states(store: ObjectStore, device: str) -> int:
    """Delete retired states anywhere below ``device``. Returns the count."""
    pruned = 0
    for state_id in store.list_descendants(device, ObjectKind.STATE):
        if not is_obsolete_state(state_id):
            continue
        try:
            store.delete_leaf(state_id)
            pruned += 1
        except PersistenceError as e:
            logger.error("Error deleting old state %s: %s", state_id, e)
    return pruned


def delete_device_recursive(store: ObjectStore, device: str) -> bool:
    """
    Delete a device with all of its channels and states.

    Children are re-queried from the store at each level. Channel states go
    first, then the channel, then states directly under the device, then the
    device itself. The first failure stops this device's deletion.

    Returns:
        True if the device node was removed.
    """
    try:
        for channel in store.list_children(device, ObjectKind.CHANNEL):
            for state in store.list_children(channel, ObjectKind.STATE):
                store.delete_leaf(state)
            store.delete_container(channel)
        for state in store.list_children(device, ObjectKind.STATE):
            store.delete_leaf(state)
        store.delete_container(device)
    except PersistenceError as e:
        logger.error("Error deleting device %s: %s", device, e)
        return False
    return True


def apply_reconciliation(store: ObjectStore, entries: list[RawRegionEntry]) -> ReconcileResult:
    """
    Bring the store's top-level devices in line with ``entries``.

    Retained devices are swept for obsolete states; orphaned devices are
    deleted recursively. Permanent devices are never touched by deletion.

    Raises:
        DuplicateRegionError: If two entries share a canonical identity.
    """
    check_unique(entries)
    result = ReconcileResult()

    persisted = store.list_children("")
    plan = reconcile(persisted, entries)

    for device in persisted:
        if device not in plan.to_delete:
            result.pruned_states += prune_obsolete_states(store, device)

    for device in sorted(plan.to_delete):
        if delete_device_recursive(store, device):
            logger.info("Deleted region device %s", device)
            result.deleted.append(device)
        else:
            result.failed.append(device)

    return result
