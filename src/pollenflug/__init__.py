"""Pollenflug - mirror of the DWD pollen-flight danger index.

Architecture::

    datasources/   External APIs (DWD open-data pollen dataset)
    translate.py   Raw risk codes -> index, localized text, chart image URL
    regions.py     Region selection and canonical device ids
    reconcile.py   Delete region devices that disappeared upstream
    project.py     Two-phase projection (ensure schema, write values)
    store.py       Tiered JSON cache and the device/channel/state object tree
    schedule.py    Self-adjusting poll loop driven by ``next_update``
    flows/         Prefect orchestration of one sync cycle
    services/      Shared utilities (HTTP client with retry)

Data flow: datasources -> regions -> reconcile -> project -> store
"""

__version__ = "0.1.0"

from pollenflug.config import Settings
from pollenflug.schemas import Day, Locale, RawDataset, RawRegionEntry, Species

__all__ = [
    "Day",
    "Locale",
    "RawDataset",
    "RawRegionEntry",
    "Settings",
    "Species",
    "__version__",
]
