"""Error types raised across the sync cycle.

None of these are fatal to the process: the schedule controller catches them
at the cycle boundary and reschedules.
"""

from __future__ import annotations


class PollenflugError(Exception):
    """Base class for all pollenflug errors."""


class TransportError(PollenflugError):
    """The upstream dataset could not be fetched or decoded."""


class MalformedTimestampError(PollenflugError, ValueError):
    """An upstream ``last_update``/``next_update`` value could not be parsed."""


class PersistenceError(PollenflugError):
    """A create, write or delete against the object store failed."""


class DuplicateRegionError(PollenflugError, ValueError):
    """Two filtered entries resolve to the same canonical region identity."""

    def __init__(self, device_id: str) -> None:
        super().__init__(f"Duplicate region identity in dataset: {device_id}")
        self.device_id = device_id
