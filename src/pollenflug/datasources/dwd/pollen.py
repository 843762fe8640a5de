"""Pollen-flight danger index from the DWD open-data server."""

from __future__ import annotations

import requests

from pollenflug.datasources.dwd.client import DWD_POLLEN_URL
from pollenflug.errors import TransportError
from pollenflug.schemas import RawDataset
from pollenflug.services.http import DEFAULT_TIMEOUT, session


def fetch_pollen_dataset(
    url: str | None = None,
    *,
    timeout: float = DEFAULT_TIMEOUT,
) -> RawDataset:
    """
    Fetch and validate the current pollen dataset.

    Args:
        url: Endpoint override (defaults to ``DWD_POLLEN_URL``).
        timeout: Request timeout in seconds.

    Raises:
        TransportError: On network errors, timeouts, non-2xx responses or a
            body that isn't a valid dataset.
    """
    url = url or DWD_POLLEN_URL
    try:
        resp = session.get(url, timeout=timeout)
        resp.raise_for_status()
        return RawDataset.model_validate(resp.json())
    except (requests.RequestException, ValueError) as e:  # ValidationError is a ValueError
        msg = f"Error requesting URL {url} ({e})"
        raise TransportError(msg) from e
