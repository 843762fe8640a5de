"""Deutscher Wetterdienst (DWD) pollen-flight danger index.

Public API:
  - pollen: fetch_pollen_dataset (s31fg.json, all regions)
  - client: endpoint URL and source identifier
"""

from pollenflug.datasources.dwd.client import DWD_POLLEN_URL, DWD_SOURCE
from pollenflug.datasources.dwd.pollen import fetch_pollen_dataset

__all__ = [
    "DWD_POLLEN_URL",
    "DWD_SOURCE",
    "fetch_pollen_dataset",
]
