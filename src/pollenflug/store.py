"""Persistence for fetched datasets and the projected object tree.

Two layers:
  - ``DataStore``: JSON files wrapped in a metadata envelope with
    ``valid_until``, organized into tiers (``live/`` for the raw upstream
    dataset, ``derived/`` for the projected object tree).
  - ``ObjectStore``: the hierarchical device/channel/state tree the sync cycle
    reconciles and projects into. Ids are dot-separated
    (``region#31.Birke.index_today``). Create is create-if-absent, leaf values
    are overwritten, containers can only be deleted once empty.
"""

from __future__ import annotations

import json
from datetime import UTC, datetime
from enum import StrEnum
from pathlib import Path
from typing import Any

from pollenflug.errors import PersistenceError

OBJECTS_PATH = Path("derived/objects.json")


class DataStore:
    """Manages read/write of cached data files with TTL."""

    def __init__(self, base_dir: Path) -> None:
        self.base = base_dir

    def read(self, path: Path) -> dict[str, Any] | None:
        """Read data payload from a metadata-enveloped JSON file.

        Returns the ``data`` field, or None if the file doesn't exist.
        """
        full = self._resolve(path)
        if not full.exists():
            return None
        with full.open() as f:
            envelope: dict[str, Any] = json.load(f)
        return envelope.get("data", envelope)

    def read_raw(self, path: Path) -> dict[str, Any] | None:
        """Read the full envelope (meta + data) from a JSON file."""
        full = self._resolve(path)
        if not full.exists():
            return None
        with full.open() as f:
            result: dict[str, Any] = json.load(f)
        return result

    def write(
        self,
        path: Path,
        data: Any,
        source: str,
        valid_until: datetime | None = None,
        **params: Any,
    ) -> Path:
        """Write data wrapped in a metadata envelope.

        Args:
            path: Relative path under base_dir (e.g. ``live/s31fg.json``).
            data: Payload to store under the ``data`` key.
            source: Data source identifier (e.g. ``"opendata.dwd.de"``).
            valid_until: Expiry timestamp. None means derived/no-cache.
            **params: Extra metadata fields.

        Returns:
            Absolute path of the written file.
        """
        full = self._resolve(path)
        full.parent.mkdir(parents=True, exist_ok=True)

        meta: dict[str, Any] = {
            "source": source,
            "fetched_at": datetime.now(UTC).isoformat(),
        }
        if valid_until is not None:
            meta["valid_until"] = valid_until.isoformat()
        if params:
            meta.update(params)

        envelope = {"meta": meta, "data": data}
        with full.open("w") as f:
            json.dump(envelope, f, indent=2)

        return full

    def is_fresh(self, path: Path) -> bool:
        """Check if a file exists and its ``valid_until`` hasn't passed."""
        envelope = self.read_raw(path)
        if envelope is None:
            return False

        valid_until = envelope.get("meta", {}).get("valid_until")
        if valid_until is None:
            return False

        expiry = datetime.fromisoformat(valid_until)
        if expiry.tzinfo is None:
            expiry = expiry.replace(tzinfo=UTC)
        return datetime.now(UTC) < expiry

    def _resolve(self, path: Path) -> Path:
        full = self.base / path if not path.is_absolute() else path
        try:
            full.resolve().relative_to(self.base.resolve())
        except ValueError:
            msg = f"Path escapes store base directory: {path}"
            raise ValueError(msg) from None
        return full


class ObjectKind(StrEnum):
    """Node types of the object tree."""

    DEVICE = "device"
    CHANNEL = "channel"
    STATE = "state"


class ObjectStore:
    """Device/channel/state tree with create-if-absent semantics.

    Kept in memory; when backed by a ``DataStore`` the tree is loaded on
    construction and written back by ``flush()``.
    """

    def __init__(self, data_store: DataStore | None = None, path: Path = OBJECTS_PATH) -> None:
        self.data_store = data_store
        self.path = path
        self.objects: dict[str, dict[str, Any]] = {}
        self.states: dict[str, dict[str, Any]] = {}
        if data_store is not None:
            saved = data_store.read(path) or {}
            self.objects = dict(saved.get("objects", {}))
            self.states = dict(saved.get("states", {}))

    # -- queries --------------------------------------------------------------

    def get_object(self, obj_id: str) -> dict[str, Any] | None:
        """Return the descriptor of an object, or None."""
        return self.objects.get(obj_id)

    def read(self, obj_id: str) -> Any:
        """Return the current value of a state, or None if never written."""
        state = self.states.get(obj_id)
        return None if state is None else state["val"]

    def list_children(self, parent: str = "", kind: ObjectKind | None = None) -> list[str]:
        """Direct children of ``parent`` (top-level objects for ``""``)."""
        prefix = f"{parent}." if parent else ""
        children = []
        for obj_id, obj in self.objects.items():
            if not obj_id.startswith(prefix):
                continue
            if "." in obj_id[len(prefix) :]:
                continue
            if kind is None or obj.get("type") == kind:
                children.append(obj_id)
        return children

    def list_descendants(self, parent: str, kind: ObjectKind | None = None) -> list[str]:
        """All objects below ``parent`` at any depth."""
        prefix = f"{parent}."
        return [
            obj_id
            for obj_id, obj in self.objects.items()
            if obj_id.startswith(prefix) and (kind is None or obj.get("type") == kind)
        ]

    # -- mutations ------------------------------------------------------------

    def ensure_exists(self, obj_id: str, descriptor: dict[str, Any]) -> bool:
        """Create ``obj_id`` unless it already exists. Returns True if created."""
        if not obj_id or obj_id.startswith(".") or obj_id.endswith("."):
            msg = f"Invalid object id: {obj_id!r}"
            raise PersistenceError(msg)
        if obj_id in self.objects:
            return False
        self.objects[obj_id] = descriptor
        return True

    def write(self, obj_id: str, value: Any, *, ack: bool = True) -> None:
        """Overwrite the value of an existing state."""
        obj = self.objects.get(obj_id)
        if obj is None or obj.get("type") != ObjectKind.STATE:
            msg = f"No such state: {obj_id}"
            raise PersistenceError(msg)
        self.states[obj_id] = {
            "val": value,
            "ack": ack,
            "ts": datetime.now(UTC).isoformat(),
        }

    def delete_leaf(self, obj_id: str) -> None:
        """Remove a state object and its value."""
        obj = self.objects.get(obj_id)
        if obj is None or obj.get("type") != ObjectKind.STATE:
            msg = f"No such state: {obj_id}"
            raise PersistenceError(msg)
        del self.objects[obj_id]
        self.states.pop(obj_id, None)

    def delete_container(self, obj_id: str) -> None:
        """Remove an empty device or channel."""
        obj = self.objects.get(obj_id)
        if obj is None or obj.get("type") == ObjectKind.STATE:
            msg = f"No such container: {obj_id}"
            raise PersistenceError(msg)
        if self.list_descendants(obj_id):
            msg = f"Container is not empty: {obj_id}"
            raise PersistenceError(msg)
        del self.objects[obj_id]

    def flush(self) -> Path | None:
        """Write the tree back to the backing DataStore, if any."""
        if self.data_store is None:
            return None
        try:
            return self.data_store.write(
                self.path,
                {"objects": self.objects, "states": self.states},
                source="pollenflug",
            )
        except OSError as e:
            msg = f"Cannot write object tree to {self.path}: {e}"
            raise PersistenceError(msg) from e
